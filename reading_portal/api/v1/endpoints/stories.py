# reading_portal/api/v1/endpoints/stories.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from reading_portal.core.security import (
    get_current_staff,
    get_current_student,
    get_current_user,
    require_permission,
)
from reading_portal.db.session import get_db
from reading_portal.models.story import Story
from reading_portal.models.user import ROLE_STUDENT, ROLE_TEACHER, User
from reading_portal.schemas.form import FormPublic
from reading_portal.schemas.story import (
    ProgressPublic,
    ProgressUpdate,
    StoryCreate,
    StoryPublic,
    StoryUpdate,
    StudentStory,
)
from reading_portal.services import form_service, story_service

router = APIRouter(prefix="/stories", tags=["stories"])


def _get_visible_story(db: Session, story_id: int, user: User) -> Story:
    story = story_service.get_story(db, story_id)
    # students only see stories of their own grade
    if not story or (user.role == ROLE_STUDENT and story.grade_level != user.grade_level):
        raise HTTPException(status_code=404, detail="Story not found")
    return story


def _get_managed_story(db: Session, story_id: int, user: User) -> Story:
    story = story_service.get_story(db, story_id)
    if not story:
        raise HTTPException(status_code=404, detail="Story not found")
    if not story_service.can_manage_story(user, story):
        raise HTTPException(status_code=403, detail="Not allowed to manage this story")
    return story


@router.post("/", response_model=StoryPublic, status_code=status.HTTP_201_CREATED)
def create_story(
    obj_in: StoryCreate,
    db: Session = Depends(get_db),
    current_staff: User = Depends(require_permission("content_create_stories")),
):
    """
    Teacher creates a story for their grade (admins pick the grade).
    """
    try:
        return story_service.create_story(db, author=current_staff, obj_in=obj_in)
    except story_service.StoryError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/", response_model=List[StoryPublic])
def list_stories(
    grade_level: int | None = None,
    db: Session = Depends(get_db),
    current_staff: User = Depends(get_current_staff),
    skip: int = 0,
    limit: int = 100,
):
    if current_staff.role == ROLE_TEACHER:
        grade_level = current_staff.grade_level
    if grade_level is None:
        raise HTTPException(status_code=400, detail="grade_level is required")
    return story_service.list_stories_for_grade(db, grade_level=grade_level, skip=skip, limit=limit)


@router.get("/assigned", response_model=List[StudentStory])
def list_my_stories(
    db: Session = Depends(get_db),
    current_student: User = Depends(get_current_student),
):
    """
    Stories of the student's grade with reading and submission status.
    """
    return story_service.list_stories_for_student(db, student=current_student)


@router.get("/{story_id}", response_model=StoryPublic)
def get_story(
    story_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _get_visible_story(db, story_id, current_user)


@router.get("/{story_id}/form", response_model=FormPublic)
def get_story_form(
    story_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    story = _get_visible_story(db, story_id, current_user)
    form = form_service.get_form_for_story(db, story.id)
    if not form:
        raise HTTPException(status_code=404, detail="This story has no form yet")
    return form


@router.put("/{story_id}/progress", response_model=ProgressPublic)
def update_reading_progress(
    story_id: int,
    obj_in: ProgressUpdate,
    db: Session = Depends(get_db),
    current_student: User = Depends(get_current_student),
):
    story = _get_visible_story(db, story_id, current_student)
    return story_service.update_progress(
        db, student=current_student, story=story, status=obj_in.status
    )


@router.put("/{story_id}", response_model=StoryPublic)
def update_story(
    story_id: int,
    obj_in: StoryUpdate,
    db: Session = Depends(get_db),
    current_staff: User = Depends(require_permission("content_edit_stories")),
):
    story = _get_managed_story(db, story_id, current_staff)
    return story_service.update_story(db, db_obj=story, obj_in=obj_in)


@router.delete("/{story_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_story(
    story_id: int,
    db: Session = Depends(get_db),
    current_staff: User = Depends(require_permission("content_delete_stories")),
):
    """
    Deletes the story together with its forms, reading progress and submissions.
    """
    story = _get_managed_story(db, story_id, current_staff)
    story_service.delete_story(db, db_obj=story)
    return None
