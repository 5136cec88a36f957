# reading_portal/api/v1/endpoints/generation.py
import logging

from fastapi import APIRouter, Depends, HTTPException

from reading_portal.core.security import get_current_staff, require_permission
from reading_portal.models.user import User
from reading_portal.schemas.generation import (
    AutoGradeRequest,
    AutoGradeResult,
    QuestionGenerationRequest,
    QuestionGenerationResult,
)
from reading_portal.services import llm_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/generation", tags=["generation"])


@router.post("/questions", response_model=QuestionGenerationResult)
def generate_questions(
    payload: QuestionGenerationRequest,
    current_staff: User = Depends(require_permission("content_create_forms")),
):
    """
    Draft questions for a story; the teacher reviews them before saving a form.
    """
    try:
        questions = llm_client.generate_questions(
            story_title=payload.story_title,
            story_content=payload.story_content,
            difficulty=payload.difficulty,
            grade_level=payload.grade_level,
        )
    except llm_client.QuestionGenerationError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return QuestionGenerationResult(questions=questions)


@router.post("/auto-grade", response_model=AutoGradeResult)
def auto_grade(
    payload: AutoGradeRequest,
    current_staff: User = Depends(get_current_staff),
):
    """
    Run the auto-grader on arbitrary answers, e.g. to preview a form.
    """
    try:
        grade, feedback = llm_client.auto_grade_submission(
            payload.questions,
            payload.answers,
            story_title=payload.story_title,
            story_content=payload.story_content,
            difficulty=payload.difficulty,
            grade_level=payload.grade_level,
        )
    except llm_client.AutoGradeError as e:
        logger.warning(f"Auto-grade preview failed: {e}")
        raise HTTPException(status_code=502, detail="Auto-grading is unavailable")
    return AutoGradeResult(grade=grade, feedback=feedback)
