# reading_portal/api/v1/endpoints/permissions.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from reading_portal.core.permissions import FULL_ACCESS
from reading_portal.core.security import get_current_admin, get_current_teacher
from reading_portal.db.session import get_db
from reading_portal.models.user import ROLE_TEACHER, User
from reading_portal.schemas.permission import PermissionOverrideIn, TeacherPermissions
from reading_portal.services import permission_service, user_service

router = APIRouter(prefix="/permissions", tags=["permissions"])


def _teacher_permissions(db: Session, teacher: User) -> TeacherPermissions:
    return TeacherPermissions(
        teacher_id=teacher.id,
        teacher_name=teacher.name,
        permission_level=teacher.permission_level or FULL_ACCESS,
        overrides=permission_service.get_overrides(db, teacher=teacher),
        permissions=permission_service.get_effective_permissions(db, teacher=teacher),
    )


def _get_teacher(db: Session, teacher_id: int) -> User:
    teacher = user_service.get_user(db, teacher_id, role=ROLE_TEACHER)
    if not teacher:
        raise HTTPException(status_code=404, detail="Teacher not found")
    return teacher


@router.get("/me", response_model=TeacherPermissions)
def read_my_permissions(
    db: Session = Depends(get_db),
    current_teacher: User = Depends(get_current_teacher),
):
    return _teacher_permissions(db, current_teacher)


@router.get("/teachers/{teacher_id}", response_model=TeacherPermissions)
def read_teacher_permissions(
    teacher_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    return _teacher_permissions(db, _get_teacher(db, teacher_id))


@router.put("/teachers/{teacher_id}", response_model=TeacherPermissions)
def set_teacher_permission(
    teacher_id: int,
    obj_in: PermissionOverrideIn,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    """
    Admin switches a single permission on or off for a teacher, on top of the
    teacher's permission level.
    """
    teacher = _get_teacher(db, teacher_id)
    try:
        permission_service.set_override(
            db,
            teacher=teacher,
            permission_key=obj_in.permission_key,
            is_enabled=obj_in.is_enabled,
        )
    except permission_service.UnknownPermissionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _teacher_permissions(db, teacher)
