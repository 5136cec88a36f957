# reading_portal/schemas/form.py
from datetime import datetime
from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, Field, field_validator

SHORT_ANSWER = "short_answer"
LONG_ANSWER = "long_answer"
MULTIPLE_CHOICE = "multiple_choice"

QUESTION_TYPES = (SHORT_ANSWER, LONG_ANSWER, MULTIPLE_CHOICE)


class QuestionBase(BaseModel):
    id: str
    text: str = ""
    required: bool = True
    options: List[str] = Field(default_factory=list)


class _FreeTextQuestion(QuestionBase):
    @field_validator("options")
    @classmethod
    def _drop_options(cls, value: List[str]) -> List[str]:
        # choices only apply to multiple choice
        return []


class ShortAnswerQuestion(_FreeTextQuestion):
    type: Literal["short_answer"] = SHORT_ANSWER


class LongAnswerQuestion(_FreeTextQuestion):
    type: Literal["long_answer"] = LONG_ANSWER


class MultipleChoiceQuestion(QuestionBase):
    type: Literal["multiple_choice"] = MULTIPLE_CHOICE
    options: List[str] = Field(min_length=1)


Question = Annotated[
    Union[ShortAnswerQuestion, LongAnswerQuestion, MultipleChoiceQuestion],
    Field(discriminator="type"),
]


class FormBase(BaseModel):
    title: str
    description: str | None = None
    questions: List[Question] = Field(default_factory=list)


class FormCreate(FormBase):
    story_id: int


class FormUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    questions: List[Question] | None = None


class FormPublic(FormBase):
    id: int
    story_id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
