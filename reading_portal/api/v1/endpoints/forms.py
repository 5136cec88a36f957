# reading_portal/api/v1/endpoints/forms.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from reading_portal.core.security import get_current_staff, require_permission
from reading_portal.db.session import get_db
from reading_portal.models.form import Form
from reading_portal.models.user import User
from reading_portal.schemas.form import FormCreate, FormPublic, FormUpdate
from reading_portal.services import form_service, story_service

router = APIRouter(prefix="/forms", tags=["forms"])


def _get_managed_form(db: Session, form_id: int, user: User) -> Form:
    form = form_service.get_form(db, form_id)
    if not form:
        raise HTTPException(status_code=404, detail="Form not found")
    story = story_service.get_story(db, form.story_id)
    if story is None or not story_service.can_manage_story(user, story):
        raise HTTPException(status_code=403, detail="Not allowed to manage this form")
    return form


@router.post("/", response_model=FormPublic, status_code=status.HTTP_201_CREATED)
def create_form(
    obj_in: FormCreate,
    db: Session = Depends(get_db),
    current_staff: User = Depends(require_permission("content_create_forms")),
):
    story = story_service.get_story(db, obj_in.story_id)
    if not story:
        raise HTTPException(status_code=404, detail="Story not found")
    if not story_service.can_manage_story(current_staff, story):
        raise HTTPException(status_code=403, detail="Not allowed to add a form to this story")
    try:
        return form_service.create_form(db, obj_in=obj_in)
    except form_service.FormError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/story/{story_id}", response_model=List[FormPublic])
def list_story_forms(
    story_id: int,
    db: Session = Depends(get_db),
    current_staff: User = Depends(get_current_staff),
):
    story = story_service.get_story(db, story_id)
    if not story or not story_service.can_manage_story(current_staff, story):
        raise HTTPException(status_code=404, detail="Story not found")
    return form_service.list_forms_for_story(db, story_id)


@router.get("/{form_id}", response_model=FormPublic)
def get_form(
    form_id: int,
    db: Session = Depends(get_db),
    current_staff: User = Depends(get_current_staff),
):
    return _get_managed_form(db, form_id, current_staff)


@router.put("/{form_id}", response_model=FormPublic)
def update_form(
    form_id: int,
    obj_in: FormUpdate,
    db: Session = Depends(get_db),
    current_staff: User = Depends(require_permission("content_edit_forms")),
):
    form = _get_managed_form(db, form_id, current_staff)
    try:
        return form_service.update_form(db, db_obj=form, obj_in=obj_in)
    except form_service.FormError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{form_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_form(
    form_id: int,
    db: Session = Depends(get_db),
    current_staff: User = Depends(require_permission("content_delete_forms")),
):
    form = _get_managed_form(db, form_id, current_staff)
    form_service.delete_form(db, db_obj=form)
    return None
