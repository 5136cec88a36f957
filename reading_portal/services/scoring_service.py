# reading_portal/services/scoring_service.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from reading_portal.models.story import Story
from reading_portal.models.submission import STATUS_TEACHER_GRADED, Submission
from reading_portal.models.user import ROLE_ADMIN, User
from reading_portal.services.grading import InvalidGradeError, validate_override  # noqa: F401

logger = logging.getLogger(__name__)


class ScoringError(Exception):
    pass


def get_submission_and_student(
    db: Session,
    submission_id: int,
) -> tuple[Submission, User]:
    submission: Optional[Submission] = db.get(Submission, submission_id)
    if submission is None:
        raise ScoringError(f"submission {submission_id} not found")

    student: Optional[User] = db.get(User, submission.student_id)
    if student is None:
        raise ScoringError(
            f"student {submission.student_id} for submission {submission_id} not found"
        )

    return submission, student


def can_grade(grader: User, student: User) -> bool:
    """Admins grade everything, teachers the students of their grade."""
    return grader.role == ROLE_ADMIN or student.grade_level == grader.grade_level


def override_grade(
    db: Session,
    *,
    submission: Submission,
    grader: User,
    grade: int | None = None,
    voice_grade: int | None = None,
    feedback: str | None = None,
) -> Submission:
    """
    Teacher/admin sets the written grade and/or the voice grade.

    - values are checked before anything is written
    - a grade that is not supplied keeps its previous value
    - status -> 'teacher_graded'; re-grading just overwrites (last write wins)
    """
    validate_override(grade, voice_grade)

    if grade is not None:
        submission.grade = grade
    if voice_grade is not None:
        submission.voice_grade = voice_grade
    if feedback is not None:
        submission.feedback = feedback.strip() or None

    submission.graded_by_id = grader.id
    submission.graded_at = datetime.now(timezone.utc)
    submission.grading_status = STATUS_TEACHER_GRADED

    db.add(submission)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(submission)

    logger.info(
        f"Submission {submission.id} graded by {grader.role} {grader.id}: "
        f"grade={submission.grade}, voice_grade={submission.voice_grade}"
    )
    return submission


def _detail_query(db: Session):
    return (
        db.query(Submission, User, Story)
        .join(User, User.id == Submission.student_id)
        .join(Story, Story.id == Submission.story_id)
    )


def _apply_graded_filter(query, graded: bool | None):
    # "graded" here means a human grade exists; auto-graded rows still need review
    if graded is True:
        return query.filter(
            (Submission.grade.isnot(None)) | (Submission.voice_grade.isnot(None))
        )
    if graded is False:
        return query.filter(Submission.grade.is_(None), Submission.voice_grade.is_(None))
    return query


def list_submissions_for_grade(
    db: Session,
    *,
    grade_level: int | None,
    graded: bool | None = None,
    skip: int = 0,
    limit: int = 100,
) -> List[Tuple[Submission, User, Story]]:
    """
    Submissions of students in a grade, oldest first so the grading queue is
    worked in order. ``grade_level=None`` lists every grade (admin).
    """
    query = _detail_query(db)
    if grade_level is not None:
        query = query.filter(User.grade_level == grade_level)
    query = _apply_graded_filter(query, graded)
    return (
        query.order_by(Submission.submitted_at.asc(), Submission.id.asc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def list_submissions_for_teacher(
    db: Session,
    *,
    teacher: User,
    graded: bool | None = None,
    skip: int = 0,
    limit: int = 100,
) -> List[Tuple[Submission, User, Story]]:
    return list_submissions_for_grade(
        db,
        grade_level=teacher.grade_level,
        graded=graded,
        skip=skip,
        limit=limit,
    )
