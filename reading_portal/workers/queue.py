# reading_portal/workers/queue.py

from redis import Redis
from rq import Queue

from reading_portal.core.config import settings

LEADERBOARD_QUEUE_NAME = "leaderboard"

# a full rebuild reads every student's progress and submissions
_REFRESH_JOB_TIMEOUT = 300
_REFRESH_RESULT_TTL = 3600

_redis_conn: Redis | None = None


def get_redis_connection() -> Redis:
    global _redis_conn
    if _redis_conn is None:
        _redis_conn = Redis.from_url(settings.REDIS_URL)
    return _redis_conn


def get_queue(name: str) -> Queue:
    return Queue(name, connection=get_redis_connection())


def enqueue_leaderboard_refresh() -> str:
    from reading_portal.workers.tasks import refresh_leaderboard_task

    job = get_queue(LEADERBOARD_QUEUE_NAME).enqueue(
        refresh_leaderboard_task,
        job_timeout=_REFRESH_JOB_TIMEOUT,
        result_ttl=_REFRESH_RESULT_TTL,
        description="Rebuild leaderboard cache",
    )
    return job.id
