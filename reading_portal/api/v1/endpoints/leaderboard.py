# reading_portal/api/v1/endpoints/leaderboard.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from reading_portal.core.security import get_current_admin, get_current_user
from reading_portal.db.session import get_db
from reading_portal.models.user import User
from reading_portal.schemas.leaderboard import LeaderboardEntry, RefreshQueued
from reading_portal.services import leaderboard_service
from reading_portal.workers.queue import enqueue_leaderboard_refresh

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


@router.get("/", response_model=List[LeaderboardEntry])
def get_leaderboard(
    grade_level: int | None = None,
    cached: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Ranked students. ``cached=true`` reads the last snapshot built by the worker.
    """
    if cached:
        return leaderboard_service.get_cached_leaderboard(db, grade_level=grade_level)
    return leaderboard_service.compute_leaderboard(db, grade_level=grade_level)


@router.post("/refresh", response_model=RefreshQueued, status_code=status.HTTP_202_ACCEPTED)
def refresh_leaderboard(current_admin: User = Depends(get_current_admin)):
    try:
        job_id = enqueue_leaderboard_refresh()
    except RedisError as e:
        raise HTTPException(status_code=503, detail=f"Queue unavailable: {e}")
    return RefreshQueued(job_id=job_id)
