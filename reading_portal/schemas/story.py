# reading_portal/schemas/story.py
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

Difficulty = Literal["easy", "medium", "hard"]
SubmissionStatus = Literal["not_submitted", "pending", "graded", "reviewed"]


class StoryBase(BaseModel):
    title: str
    content: str
    difficulty: Difficulty = "easy"


class StoryCreate(StoryBase):
    # admins must pass it; teachers default to their assigned grade
    grade_level: int | None = Field(default=None, ge=1)


class StoryUpdate(BaseModel):
    title: str | None = None
    content: str | None = None
    difficulty: Difficulty | None = None


class StoryPublic(StoryBase):
    id: int
    grade_level: int
    created_by_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class StudentStory(StoryPublic):
    """Story as listed for a student, with where they are on it."""
    reading_status: str = "not_started"
    submission_status: SubmissionStatus = "not_submitted"
    has_form: bool = False


class ProgressUpdate(BaseModel):
    status: Literal["not_started", "in_progress", "completed"]


class ProgressPublic(BaseModel):
    student_id: int
    story_id: int
    status: str
    completed_at: datetime | None = None

    model_config = {"from_attributes": True}
