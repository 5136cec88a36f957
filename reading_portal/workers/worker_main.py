# reading_portal/workers/worker_main.py
"""
Runs the leaderboard worker:

    python -m reading_portal.workers.worker_main
"""
import logging

from rq import SimpleWorker

from reading_portal.core.logging_config import setup_logging
from reading_portal.workers.queue import LEADERBOARD_QUEUE_NAME, get_queue, get_redis_connection

logger = logging.getLogger(__name__)


def main():
    setup_logging()
    queue = get_queue(LEADERBOARD_QUEUE_NAME)
    logger.info(f"Worker listening on queue {queue.name!r}")

    # SimpleWorker runs jobs in-process; the refresh task opens its own session
    SimpleWorker([queue], connection=get_redis_connection()).work()


if __name__ == "__main__":
    main()
