# reading_portal/services/grading.py
"""
Grade rules shared by every view of a submission.
"""
from typing import Optional

from reading_portal.models.submission import (
    STATUS_AUTO_GRADED,
    STATUS_TEACHER_GRADED,
    STATUS_UNGRADED,
)

MIN_GRADE = 0
MAX_GRADE = 100

# grading_status -> what the student sees on the story card
_SUBMISSION_STATUS = {
    STATUS_UNGRADED: "pending",
    STATUS_AUTO_GRADED: "graded",
    STATUS_TEACHER_GRADED: "reviewed",
}


class InvalidGradeError(ValueError):
    pass


def final_grade(grade: Optional[int], voice_grade: Optional[int]) -> Optional[int]:
    """
    The displayed grade of a submission.

    Average of the written grade and the voice grade when both are set (halves
    round up), otherwise whichever one is set, otherwise None ("pending").
    """
    if grade is not None and voice_grade is not None:
        return (grade + voice_grade + 1) // 2
    if grade is not None:
        return grade
    return voice_grade


def check_grade_value(field: str, value: Optional[int]) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidGradeError(f"{field} must be an integer")
    if value < MIN_GRADE or value > MAX_GRADE:
        raise InvalidGradeError(f"{field} must be between {MIN_GRADE} and {MAX_GRADE}")


def validate_override(grade: Optional[int], voice_grade: Optional[int]) -> None:
    if grade is None and voice_grade is None:
        raise InvalidGradeError("grade or voice_grade is required")
    check_grade_value("grade", grade)
    check_grade_value("voice_grade", voice_grade)


def status_after_auto_grade(auto_grade: Optional[int]) -> str:
    return STATUS_AUTO_GRADED if auto_grade is not None else STATUS_UNGRADED


def submission_status(grading_status: Optional[str]) -> str:
    """Story-card status for a student; None means no submission yet."""
    if grading_status is None:
        return "not_submitted"
    return _SUBMISSION_STATUS.get(grading_status, "pending")
