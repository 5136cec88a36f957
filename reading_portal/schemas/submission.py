# reading_portal/schemas/submission.py
from datetime import datetime
from typing import Dict

from pydantic import BaseModel, Field

from reading_portal.services.grading import final_grade


class SubmissionCreate(BaseModel):
    story_id: int
    answers: Dict[str, str] = Field(default_factory=dict)
    # reference returned by POST /submissions/audio
    audio_url: str | None = None


class AudioUploadResult(BaseModel):
    audio_url: str


class SubmissionPublic(BaseModel):
    """
    What the student sees: their answers, the teacher's grades and the final
    grade. The auto-grade is a suggestion for the teacher and stays hidden.
    """
    id: int
    student_id: int
    story_id: int
    form_id: int | None = None
    answers: Dict[str, str]
    audio_url: str | None = None
    grading_status: str

    grade: int | None = None
    voice_grade: int | None = None
    feedback: str | None = None
    final_grade: int | None = None

    submitted_at: datetime | None = None
    graded_at: datetime | None = None

    model_config = {"from_attributes": True}


class SubmissionDetail(SubmissionPublic):
    """Teacher/admin view, with who the student is and what story it was."""
    auto_grade: int | None = None
    auto_feedback: str | None = None
    student_name: str | None = None
    student_grade_level: int | None = None
    story_title: str | None = None
    graded_by_id: int | None = None


def submission_public(sub) -> SubmissionPublic:
    out = SubmissionPublic.model_validate(sub)
    out.final_grade = final_grade(sub.grade, sub.voice_grade)
    return out


def submission_detail(sub, student, story) -> SubmissionDetail:
    out = SubmissionDetail.model_validate(sub)
    out.final_grade = final_grade(sub.grade, sub.voice_grade)
    out.student_name = student.name
    out.student_grade_level = student.grade_level
    out.story_title = story.title
    return out
