# reading_portal/services/user_service.py
import logging
import secrets
import string
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from reading_portal.core.permissions import FULL_ACCESS
from reading_portal.models.permission import TeacherPermissionOverride
from reading_portal.models.user import ROLE_ADMIN, ROLE_STUDENT, ROLE_TEACHER, User
from reading_portal.schemas.user import StudentCreate, StudentUpdate, TeacherCreate, TeacherUpdate

logger = logging.getLogger(__name__)

ACCESS_CODE_ALPHABET = string.ascii_uppercase + string.digits
ACCESS_CODE_LENGTH = 8
_MAX_CODE_ATTEMPTS = 10


class UserError(Exception):
    pass


def generate_access_code(length: int = ACCESS_CODE_LENGTH) -> str:
    return "".join(secrets.choice(ACCESS_CODE_ALPHABET) for _ in range(length))


def _unused_access_code(db: Session) -> str:
    for _ in range(_MAX_CODE_ATTEMPTS):
        code = generate_access_code()
        if not db.query(User.id).filter(User.access_code == code).first():
            return code
    raise UserError("could not generate a unique access code")


def _save(db: Session, user: User) -> User:
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise UserError("access code or email already in use") from e
    db.refresh(user)
    return user


def register_student(db: Session, *, access_code: str, name: str) -> User:
    """First login of a student: they type their name once."""
    user = db.query(User).filter(User.access_code == access_code.strip()).first()
    if user is None:
        raise UserError("Invalid access code")
    if user.role != ROLE_STUDENT:
        raise UserError("Access code is not for a student")

    user.name = name.strip()
    user.is_registered = True
    return _save(db, user)


def create_student(db: Session, *, creator: User, obj_in: StudentCreate) -> User:
    grade_level = obj_in.grade_level
    if creator.role != ROLE_ADMIN:
        grade_level = creator.grade_level
    if grade_level is None:
        raise UserError("grade_level is required")

    student = User(
        name=obj_in.name.strip(),
        role=ROLE_STUDENT,
        access_code=_unused_access_code(db),
        grade_level=grade_level,
        is_registered=False,
        created_by_id=creator.id,
    )
    student = _save(db, student)
    logger.info(f"{creator.role} {creator.id} created student {student.id} in grade {grade_level}")
    return student


def list_students(db: Session, *, grade_level: int | None = None) -> List[User]:
    query = db.query(User).filter(User.role == ROLE_STUDENT)
    if grade_level is not None:
        query = query.filter(User.grade_level == grade_level)
    return query.order_by(User.name.asc(), User.id.asc()).all()


def get_user(db: Session, user_id: int, *, role: str | None = None) -> Optional[User]:
    user = db.get(User, user_id)
    if user is None or (role is not None and user.role != role):
        return None
    return user


def update_student(db: Session, *, db_obj: User, obj_in: StudentUpdate) -> User:
    update_data = obj_in.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in update_data.items():
        setattr(db_obj, field, value)
    return _save(db, db_obj)


def delete_user(db: Session, *, db_obj: User) -> None:
    db.query(TeacherPermissionOverride).filter(
        TeacherPermissionOverride.teacher_id == db_obj.id
    ).delete(synchronize_session=False)
    db.delete(db_obj)
    db.commit()


def create_teacher(db: Session, *, obj_in: TeacherCreate) -> User:
    teacher = User(
        name=obj_in.name.strip(),
        role=ROLE_TEACHER,
        email=obj_in.email,
        access_code=obj_in.access_code or _unused_access_code(db),
        grade_level=obj_in.assigned_grade,
        permission_level=obj_in.permission_level or FULL_ACCESS,
        is_registered=True,
    )
    teacher = _save(db, teacher)
    logger.info(f"Created teacher {teacher.id} for grade {teacher.grade_level}")
    return teacher


def list_teachers(db: Session) -> List[User]:
    return (
        db.query(User)
        .filter(User.role == ROLE_TEACHER)
        .order_by(User.created_at.desc(), User.id.desc())
        .all()
    )


def update_teacher(db: Session, *, db_obj: User, obj_in: TeacherUpdate) -> User:
    update_data = obj_in.model_dump(exclude_unset=True, exclude_none=True)
    if "assigned_grade" in update_data:
        update_data["grade_level"] = update_data.pop("assigned_grade")
    for field, value in update_data.items():
        setattr(db_obj, field, value)
    return _save(db, db_obj)
