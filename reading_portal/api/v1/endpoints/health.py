# reading_portal/api/v1/endpoints/health.py
import logging

from fastapi import APIRouter, Depends, HTTPException
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from reading_portal.db.session import get_db
from reading_portal.workers.queue import get_redis_connection

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/live")
def liveness_probe():
    return {"status": "ok"}


@router.get("/db")
def db_health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        raise HTTPException(status_code=503, detail="Database unavailable")
    return {"status": "ok"}


@router.get("/queue")
def queue_health():
    """The leaderboard refresh needs Redis; submissions and grading do not."""
    try:
        get_redis_connection().ping()
    except RedisError as e:
        logger.error(f"Redis health check failed: {e}")
        raise HTTPException(status_code=503, detail="Queue unavailable")
    return {"status": "ok"}
