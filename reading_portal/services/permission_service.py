# reading_portal/services/permission_service.py
from typing import Dict

from sqlalchemy.orm import Session

from reading_portal.core.permissions import FULL_ACCESS, all_permission_keys, effective_permissions
from reading_portal.models.permission import TeacherPermissionOverride
from reading_portal.models.user import User


class UnknownPermissionError(Exception):
    pass


def get_overrides(db: Session, *, teacher: User) -> Dict[str, bool]:
    rows = (
        db.query(TeacherPermissionOverride)
        .filter(TeacherPermissionOverride.teacher_id == teacher.id)
        .all()
    )
    return {row.permission_key: row.is_enabled for row in rows}


def get_effective_permissions(db: Session, *, teacher: User) -> Dict[str, bool]:
    level = teacher.permission_level or FULL_ACCESS
    return effective_permissions(level, get_overrides(db, teacher=teacher))


def has_permission(db: Session, *, teacher: User, key: str) -> bool:
    return get_effective_permissions(db, teacher=teacher).get(key, False)


def set_override(
    db: Session,
    *,
    teacher: User,
    permission_key: str,
    is_enabled: bool,
) -> TeacherPermissionOverride:
    if permission_key not in all_permission_keys():
        raise UnknownPermissionError(f"unknown permission: {permission_key}")

    row = (
        db.query(TeacherPermissionOverride)
        .filter(
            TeacherPermissionOverride.teacher_id == teacher.id,
            TeacherPermissionOverride.permission_key == permission_key,
        )
        .first()
    )
    if row is None:
        row = TeacherPermissionOverride(teacher_id=teacher.id, permission_key=permission_key)
    row.is_enabled = is_enabled

    db.add(row)
    db.commit()
    db.refresh(row)
    return row
