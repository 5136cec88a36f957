# reading_portal/services/story_service.py
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from reading_portal.models.form import Form
from reading_portal.models.story import Story, StoryProgress
from reading_portal.models.submission import Submission
from reading_portal.models.user import ROLE_ADMIN, User
from reading_portal.schemas.story import StoryCreate, StoryUpdate
from reading_portal.services.grading import submission_status


class StoryError(Exception):
    pass


def can_manage_story(user: User, story: Story) -> bool:
    """Admins manage every story, teachers the stories of their grade."""
    return user.role == ROLE_ADMIN or story.grade_level == user.grade_level


def create_story(
    db: Session,
    *,
    author: User,
    obj_in: StoryCreate,
) -> Story:
    grade_level = obj_in.grade_level
    if author.role != ROLE_ADMIN:
        grade_level = author.grade_level
    if grade_level is None:
        raise StoryError("grade_level is required")

    db_obj = Story(
        title=obj_in.title,
        content=obj_in.content,
        difficulty=obj_in.difficulty,
        grade_level=grade_level,
        created_by_id=author.id,
    )
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj


def get_story(db: Session, story_id: int) -> Optional[Story]:
    return db.get(Story, story_id)


def list_stories_for_grade(
    db: Session,
    *,
    grade_level: int,
    skip: int = 0,
    limit: int = 100,
) -> List[Story]:
    return (
        db.query(Story)
        .filter(Story.grade_level == grade_level)
        .order_by(Story.created_at.desc(), Story.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def list_stories_for_student(db: Session, *, student: User) -> List[dict]:
    """
    Stories of the student's grade, each with the student's reading status and
    submission status.
    """
    stories = list_stories_for_grade(db, grade_level=student.grade_level, limit=1000)
    story_ids = [s.id for s in stories]
    if not story_ids:
        return []

    progress = {
        p.story_id: p.status
        for p in db.query(StoryProgress).filter(
            StoryProgress.student_id == student.id,
            StoryProgress.story_id.in_(story_ids),
        )
    }
    graded = {
        story_id: status
        for story_id, status in db.query(Submission.story_id, Submission.grading_status).filter(
            Submission.student_id == student.id,
            Submission.story_id.in_(story_ids),
        )
    }
    with_form = {
        story_id
        for (story_id,) in db.query(Form.story_id).filter(Form.story_id.in_(story_ids)).distinct()
    }

    result = []
    for story in stories:
        result.append({
            "id": story.id,
            "title": story.title,
            "content": story.content,
            "difficulty": story.difficulty,
            "grade_level": story.grade_level,
            "created_by_id": story.created_by_id,
            "created_at": story.created_at,
            "updated_at": story.updated_at,
            "reading_status": progress.get(story.id, "not_started"),
            "submission_status": submission_status(graded.get(story.id)),
            "has_form": story.id in with_form,
        })
    return result


def update_story(
    db: Session,
    *,
    db_obj: Story,
    obj_in: StoryUpdate,
) -> Story:
    update_data = obj_in.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in update_data.items():
        setattr(db_obj, field, value)
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj


def delete_story(db: Session, *, db_obj: Story) -> None:
    # forms, progress and submissions go with it
    db.delete(db_obj)
    db.commit()


def update_progress(
    db: Session,
    *,
    student: User,
    story: Story,
    status: str,
) -> StoryProgress:
    progress = (
        db.query(StoryProgress)
        .filter(StoryProgress.student_id == student.id, StoryProgress.story_id == story.id)
        .first()
    )
    if progress is None:
        progress = StoryProgress(student_id=student.id, story_id=story.id)

    progress.status = status
    if status == "completed":
        # keep the first completion time
        progress.completed_at = progress.completed_at or datetime.now(timezone.utc)
    else:
        progress.completed_at = None

    db.add(progress)
    db.commit()
    db.refresh(progress)
    return progress
