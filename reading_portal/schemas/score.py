# reading_portal/schemas/score.py
from pydantic import BaseModel, Field, model_validator


class GradeOverride(BaseModel):
    """Teacher/admin grading. A grade left out keeps its previous value."""
    grade: int | None = Field(default=None, ge=0, le=100)
    voice_grade: int | None = Field(default=None, ge=0, le=100)
    feedback: str | None = None

    @model_validator(mode="after")
    def _at_least_one_grade(self):
        if self.grade is None and self.voice_grade is None:
            raise ValueError("grade or voice_grade is required")
        return self


class FeedbackSuggestion(BaseModel):
    feedback: str
