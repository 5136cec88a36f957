# reading_portal/schemas/generation.py
from typing import Dict, List

from pydantic import BaseModel, Field

from reading_portal.schemas.form import Question
from reading_portal.schemas.story import Difficulty


class QuestionGenerationRequest(BaseModel):
    story_title: str
    story_content: str
    difficulty: Difficulty
    grade_level: int = Field(ge=1)


class QuestionGenerationResult(BaseModel):
    questions: List[Question]


class AutoGradeRequest(BaseModel):
    questions: List[Question]
    answers: Dict[str, str] = Field(default_factory=dict)
    story_title: str
    story_content: str
    difficulty: Difficulty
    grade_level: int = Field(ge=1)


class AutoGradeResult(BaseModel):
    grade: int | None = None
    feedback: str | None = None
