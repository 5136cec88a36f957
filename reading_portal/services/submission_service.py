# reading_portal/services/submission_service.py
import logging
from typing import List, Mapping, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from reading_portal.core.config import settings
from reading_portal.models.form import Form
from reading_portal.models.story import Story
from reading_portal.models.submission import Submission
from reading_portal.models.user import User
from reading_portal.schemas.form import Question
from reading_portal.schemas.submission import SubmissionCreate
from reading_portal.services import audio_service, form_service, llm_client
from reading_portal.services.grading import status_after_auto_grade

logger = logging.getLogger(__name__)


class SubmissionError(Exception):
    pass


class AlreadySubmittedError(SubmissionError):
    pass


class InvalidRecordingError(SubmissionError):
    pass


class MissingAnswerError(SubmissionError):
    def __init__(self, question: Question):
        self.question = question
        super().__init__(f"Please answer the question: {question.text}")


def validate_answers(questions: List[Question], answers: Mapping[str, str]) -> None:
    """Raise MissingAnswerError for the first required question left blank."""
    for question in questions:
        if not question.required:
            continue
        answer = answers.get(question.id)
        if answer is None or not str(answer).strip():
            raise MissingAnswerError(question)


def get_existing_submission(db: Session, *, student_id: int, story_id: int) -> Optional[Submission]:
    return (
        db.query(Submission)
        .filter(Submission.student_id == student_id, Submission.story_id == story_id)
        .first()
    )


def _load_story_and_form(db: Session, *, student: User, story_id: int) -> Tuple[Story, Form]:
    story = db.get(Story, story_id)
    if story is None or story.grade_level != student.grade_level:
        raise SubmissionError(f"story {story_id} not found")

    form = form_service.get_form_for_story(db, story.id)
    if form is None:
        raise SubmissionError(f"story {story_id} has no form")
    return story, form


def _try_auto_grade(
    questions: List[Question],
    answers: Mapping[str, str],
    story: Story,
) -> Tuple[Optional[int], Optional[str]]:
    """Best effort: any failure means the submission goes in without an auto-grade."""
    if not settings.AUTO_GRADE_ENABLED:
        return None, None
    try:
        return llm_client.auto_grade_submission(
            questions,
            answers,
            story_title=story.title,
            story_content=story.content,
            difficulty=story.difficulty,
            grade_level=story.grade_level,
        )
    except Exception as e:
        logger.warning(f"Auto-grading failed for story {story.id}, storing ungraded: {e}", exc_info=True)
        return None, None


def create_submission(
    db: Session,
    *,
    student: User,
    obj_in: SubmissionCreate,
) -> Submission:
    """
    Student submits the form of a story.

    Order matters: the duplicate check, the answer validation and the
    recording check run before the auto-grader is called; the auto-grade
    result is an input to the insert.
    """
    if get_existing_submission(db, student_id=student.id, story_id=obj_in.story_id):
        raise AlreadySubmittedError(f"story {obj_in.story_id} was already submitted")

    story, form = _load_story_and_form(db, student=student, story_id=obj_in.story_id)
    questions = form_service.load_questions(form)
    answers = {str(k): v for k, v in obj_in.answers.items()}
    validate_answers(questions, answers)
    if obj_in.audio_url:
        try:
            audio_service.check_recording(obj_in.audio_url, student_id=student.id, story_id=story.id)
        except audio_service.AudioError as e:
            raise InvalidRecordingError(str(e)) from e

    auto_grade, auto_feedback = _try_auto_grade(questions, answers, story)

    submission = Submission(
        student_id=student.id,
        story_id=story.id,
        form_id=form.id,
        answers=answers,
        audio_url=obj_in.audio_url,
        auto_grade=auto_grade,
        auto_feedback=auto_feedback,
        grading_status=status_after_auto_grade(auto_grade),
    )

    db.add(submission)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        # lost a race with another submit for the same story
        raise AlreadySubmittedError(f"story {story.id} was already submitted") from e
    except Exception:
        db.rollback()
        raise
    db.refresh(submission)

    logger.info(
        f"Student {student.id} submitted story {story.id}: "
        f"status={submission.grading_status}, auto_grade={auto_grade}"
    )
    return submission


def get_submission(db: Session, submission_id: int) -> Optional[Submission]:
    return db.get(Submission, submission_id)


def list_submissions_for_student(
    db: Session,
    *,
    student: User,
    skip: int = 0,
    limit: int = 100,
) -> List[Submission]:
    """
    student: own submissions, newest first
    """
    return (
        db.query(Submission)
        .filter(Submission.student_id == student.id)
        .order_by(Submission.submitted_at.desc(), Submission.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
