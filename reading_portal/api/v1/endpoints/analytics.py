# reading_portal/api/v1/endpoints/analytics.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from reading_portal.core.security import get_current_admin, require_permission
from reading_portal.db.session import get_db
from reading_portal.models.user import ROLE_ADMIN, User
from reading_portal.schemas.analytics import AdminAnalytics, GradeStats
from reading_portal.services import analytics_service

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/teacher", response_model=GradeStats)
def teacher_analytics(
    grade_level: int | None = None,
    db: Session = Depends(get_db),
    current_staff: User = Depends(require_permission("analytics_view_analytics")),
):
    if current_staff.role == ROLE_ADMIN:
        return analytics_service.grade_stats(db, grade_level=grade_level)
    return analytics_service.teacher_analytics(db, teacher=current_staff)


@router.get("/admin", response_model=AdminAnalytics)
def admin_analytics(
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    return analytics_service.admin_analytics(db)
