# reading_portal/api/v1/endpoints/users.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from reading_portal.core.security import get_current_admin, get_current_user, require_permission
from reading_portal.db.session import get_db
from reading_portal.models.user import ROLE_ADMIN, ROLE_STUDENT, ROLE_TEACHER, User
from reading_portal.schemas.auth import UserPublic
from reading_portal.schemas.user import (
    StudentCreate,
    StudentPublic,
    StudentUpdate,
    TeacherCreate,
    TeacherPublic,
    TeacherUpdate,
)
from reading_portal.services import user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserPublic)
def read_me(current_user: User = Depends(get_current_user)):
    return current_user


def _get_student_in_scope(db: Session, student_id: int, staff: User) -> User:
    student = user_service.get_user(db, student_id, role=ROLE_STUDENT)
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")
    if staff.role != ROLE_ADMIN and student.grade_level != staff.grade_level:
        raise HTTPException(status_code=403, detail="Student is not in your grade")
    return student


@router.post("/students", response_model=StudentPublic, status_code=status.HTTP_201_CREATED)
def create_student(
    obj_in: StudentCreate,
    db: Session = Depends(get_db),
    current_staff: User = Depends(require_permission("students_create_students")),
):
    """
    Teacher creates a student in their grade; an access code is generated.
    """
    try:
        return user_service.create_student(db, creator=current_staff, obj_in=obj_in)
    except user_service.UserError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/students", response_model=List[StudentPublic])
def list_students(
    grade_level: int | None = None,
    db: Session = Depends(get_db),
    current_staff: User = Depends(require_permission("students_view_students")),
):
    if current_staff.role == ROLE_TEACHER:
        grade_level = current_staff.grade_level
    return user_service.list_students(db, grade_level=grade_level)


@router.put("/students/{student_id}", response_model=StudentPublic)
def update_student(
    student_id: int,
    obj_in: StudentUpdate,
    db: Session = Depends(get_db),
    current_staff: User = Depends(require_permission("students_edit_students")),
):
    student = _get_student_in_scope(db, student_id, current_staff)
    if current_staff.role != ROLE_ADMIN:
        # teachers cannot move students to another grade
        obj_in.grade_level = None
    try:
        return user_service.update_student(db, db_obj=student, obj_in=obj_in)
    except user_service.UserError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/students/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_student(
    student_id: int,
    db: Session = Depends(get_db),
    current_staff: User = Depends(require_permission("students_delete_students")),
):
    student = _get_student_in_scope(db, student_id, current_staff)
    user_service.delete_user(db, db_obj=student)
    return None


@router.post("/teachers", response_model=TeacherPublic, status_code=status.HTTP_201_CREATED)
def create_teacher(
    obj_in: TeacherCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    try:
        return user_service.create_teacher(db, obj_in=obj_in)
    except user_service.UserError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/teachers", response_model=List[TeacherPublic])
def list_teachers(
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    return user_service.list_teachers(db)


@router.put("/teachers/{teacher_id}", response_model=TeacherPublic)
def update_teacher(
    teacher_id: int,
    obj_in: TeacherUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    teacher = user_service.get_user(db, teacher_id, role=ROLE_TEACHER)
    if not teacher:
        raise HTTPException(status_code=404, detail="Teacher not found")
    try:
        return user_service.update_teacher(db, db_obj=teacher, obj_in=obj_in)
    except user_service.UserError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/teachers/{teacher_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_teacher(
    teacher_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    teacher = user_service.get_user(db, teacher_id, role=ROLE_TEACHER)
    if not teacher:
        raise HTTPException(status_code=404, detail="Teacher not found")
    user_service.delete_user(db, db_obj=teacher)
    return None
