# reading_portal/api/v1/endpoints/scores.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from reading_portal.core.security import get_current_admin, get_current_staff, require_permission
from reading_portal.db.session import get_db
from reading_portal.models.user import ROLE_TEACHER, User
from reading_portal.schemas.score import FeedbackSuggestion, GradeOverride
from reading_portal.schemas.submission import SubmissionDetail, submission_detail
from reading_portal.services import form_service, llm_client, scoring_service, story_service
from reading_portal.services.grading import final_grade

router = APIRouter(prefix="/scores", tags=["scores"])


def _get_gradable(db: Session, submission_id: int, grader: User):
    try:
        sub, student = scoring_service.get_submission_and_student(db, submission_id)
    except scoring_service.ScoringError:
        raise HTTPException(status_code=404, detail="Submission not found")

    # teachers only grade students of their grade
    if not scoring_service.can_grade(grader, student):
        raise HTTPException(status_code=403, detail="Not allowed to grade this submission")
    return sub, student


@router.get("/submissions", response_model=List[SubmissionDetail])
def list_submissions(
    graded: bool | None = None,
    db: Session = Depends(get_db),
    current_teacher: User = Depends(require_permission("grading_view_grades")),
    skip: int = 0,
    limit: int = 100,
):
    """
    Submissions of the teacher's grade. ``graded=false`` is the grading queue.
    """
    if current_teacher.role != ROLE_TEACHER:
        raise HTTPException(status_code=400, detail="Admins use /scores/grades/{grade_level}")
    rows = scoring_service.list_submissions_for_teacher(
        db, teacher=current_teacher, graded=graded, skip=skip, limit=limit
    )
    return [submission_detail(sub, student, story) for sub, student, story in rows]


@router.get("/grades/{grade_level}", response_model=List[SubmissionDetail])
def list_grade_submissions(
    grade_level: int,
    graded: bool | None = None,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
    skip: int = 0,
    limit: int = 100,
):
    rows = scoring_service.list_submissions_for_grade(
        db, grade_level=grade_level, graded=graded, skip=skip, limit=limit
    )
    return [submission_detail(sub, student, story) for sub, student, story in rows]


@router.get("/{submission_id}", response_model=SubmissionDetail)
def get_score(
    submission_id: int,
    db: Session = Depends(get_db),
    current_staff: User = Depends(get_current_staff),
):
    sub, student = _get_gradable(db, submission_id, current_staff)
    story = story_service.get_story(db, sub.story_id)
    return submission_detail(sub, student, story)


@router.put("/{submission_id}", response_model=SubmissionDetail)
def update_score(
    submission_id: int,
    score_in: GradeOverride,
    db: Session = Depends(get_db),
    current_staff: User = Depends(require_permission("grading_grade_submissions")),
):
    """
    Teacher/admin sets or overwrites the grade and/or voice grade:
      - a grade left out keeps its previous value
      - status -> 'teacher_graded'
    """
    sub, student = _get_gradable(db, submission_id, current_staff)
    try:
        updated = scoring_service.override_grade(
            db,
            submission=sub,
            grader=current_staff,
            grade=score_in.grade,
            voice_grade=score_in.voice_grade,
            feedback=score_in.feedback,
        )
    except scoring_service.InvalidGradeError as e:
        raise HTTPException(status_code=422, detail=str(e))
    story = story_service.get_story(db, updated.story_id)
    return submission_detail(updated, student, story)


@router.post("/{submission_id}/feedback-suggestion", response_model=FeedbackSuggestion)
def suggest_feedback(
    submission_id: int,
    db: Session = Depends(get_db),
    current_staff: User = Depends(get_current_staff),
):
    """
    Encouraging comment written by the LLM, for the teacher to edit and save.
    """
    sub, student = _get_gradable(db, submission_id, current_staff)
    story = story_service.get_story(db, sub.story_id)
    form = form_service.get_form(db, sub.form_id) if sub.form_id else None
    questions = form_service.load_questions(form) if form else []
    feedback = llm_client.generate_feedback(
        questions,
        sub.answers or {},
        story_title=story.title,
        student_name=student.name,
        grade=final_grade(sub.grade, sub.voice_grade),
    )
    return FeedbackSuggestion(feedback=feedback)
