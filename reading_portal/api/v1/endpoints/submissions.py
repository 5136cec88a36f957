# reading_portal/api/v1/endpoints/submissions.py
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from reading_portal.core.security import get_current_student, get_current_user
from reading_portal.db.session import get_db
from reading_portal.models.user import ROLE_STUDENT, User
from reading_portal.schemas.submission import (
    AudioUploadResult,
    SubmissionCreate,
    SubmissionPublic,
    submission_public,
)
from reading_portal.services import audio_service, scoring_service, story_service, submission_service

router = APIRouter(prefix="/submissions", tags=["submissions"])


@router.post("/audio", response_model=AudioUploadResult, status_code=status.HTTP_201_CREATED)
def upload_recording(
    story_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_student: User = Depends(get_current_student),
):
    """
    Student uploads their read-aloud recording before submitting the form.
    The returned audio_url goes into the submission.
    """
    story = story_service.get_story(db, story_id)
    if not story or story.grade_level != current_student.grade_level:
        file.file.close()
        raise HTTPException(status_code=404, detail="Story not found")

    try:
        audio_url = audio_service.stage_recording(
            file.file,
            content_type=file.content_type,
            student_id=current_student.id,
            story_id=story.id,
        )
    except audio_service.AudioError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return AudioUploadResult(audio_url=audio_url)


@router.post("/", response_model=SubmissionPublic, status_code=status.HTTP_201_CREATED)
def create_submission(
    obj_in: SubmissionCreate,
    db: Session = Depends(get_db),
    current_student: User = Depends(get_current_student),
):
    """
    Student submits the answers of a story's form; auto-grading runs first and
    never blocks the submission.
    """
    try:
        sub = submission_service.create_submission(db, student=current_student, obj_in=obj_in)
    except submission_service.AlreadySubmittedError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except submission_service.MissingAnswerError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except submission_service.InvalidRecordingError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except submission_service.SubmissionError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return submission_public(sub)


@router.get("/me", response_model=List[SubmissionPublic])
def list_my_submissions(
    db: Session = Depends(get_db),
    current_student: User = Depends(get_current_student),
    skip: int = 0,
    limit: int = 100,
):
    subs = submission_service.list_submissions_for_student(
        db, student=current_student, skip=skip, limit=limit
    )
    return [submission_public(sub) for sub in subs]


@router.get("/{submission_id}", response_model=SubmissionPublic)
def get_submission_for_student(
    submission_id: int,
    db: Session = Depends(get_db),
    current_student: User = Depends(get_current_student),
):
    sub = submission_service.get_submission(db, submission_id)
    if not sub or sub.student_id != current_student.id:
        raise HTTPException(status_code=404, detail="Submission not found")
    return submission_public(sub)


@router.get("/{submission_id}/audio")
def download_recording(
    submission_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        sub, student = scoring_service.get_submission_and_student(db, submission_id)
    except scoring_service.ScoringError:
        raise HTTPException(status_code=404, detail="Submission not found")

    if current_user.role == ROLE_STUDENT:
        allowed = sub.student_id == current_user.id
    else:
        allowed = scoring_service.can_grade(current_user, student)
    if not allowed:
        raise HTTPException(status_code=404, detail="Submission not found")

    if not sub.audio_url:
        raise HTTPException(status_code=404, detail="No recording for this submission")
    try:
        path = audio_service.resolve_recording(sub.audio_url)
    except audio_service.AudioError:
        raise HTTPException(status_code=404, detail="Recording not found")
    if not path.exists():
        raise HTTPException(status_code=404, detail="Recording not found")
    return FileResponse(path)
