"""
Leaderboard Tasks for Worker
These tasks are executed by RQ workers so the leaderboard snapshot is rebuilt
outside of a request.
"""

import logging

from reading_portal.db.session import SessionLocal
from reading_portal.services.leaderboard_service import refresh_leaderboard_cache

logger = logging.getLogger(__name__)


def refresh_leaderboard_task() -> dict:
    """
    Worker task to rebuild the cached leaderboard.

    Returns:
        Dictionary with the refresh result

    Note:
        This function is called by RQ workers.
        It is enqueued by enqueue_leaderboard_refresh() in queue.py
    """
    db = SessionLocal()
    try:
        logger.info("Starting leaderboard refresh")
        count = refresh_leaderboard_cache(db)
        return {
            "status": "success",
            "entries": count,
            "message": f"Leaderboard refreshed with {count} entries",
        }

    except Exception as e:
        logger.error(f"Unexpected error during leaderboard refresh: {e}", exc_info=True)
        return {
            "status": "error",
            "error": str(e),
            "message": "Leaderboard refresh failed",
        }

    finally:
        db.close()
