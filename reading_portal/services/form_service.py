# reading_portal/services/form_service.py
from typing import List, Optional

from pydantic import TypeAdapter
from sqlalchemy.orm import Session

from reading_portal.models.form import Form
from reading_portal.schemas.form import FormCreate, FormUpdate, Question

_questions_adapter = TypeAdapter(List[Question])


class FormError(Exception):
    pass


def dump_questions(questions: List[Question]) -> list:
    return [q.model_dump() for q in questions]


def load_questions(form: Form) -> List[Question]:
    return _questions_adapter.validate_python(form.questions or [])


def _check_unique_ids(questions: List[Question]) -> None:
    ids = [q.id for q in questions]
    if len(ids) != len(set(ids)):
        raise FormError("question ids must be unique within a form")


def create_form(db: Session, *, obj_in: FormCreate) -> Form:
    _check_unique_ids(obj_in.questions)
    db_obj = Form(
        story_id=obj_in.story_id,
        title=obj_in.title,
        description=obj_in.description,
        questions=dump_questions(obj_in.questions),
    )
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj


def get_form(db: Session, form_id: int) -> Optional[Form]:
    return db.get(Form, form_id)


def get_form_for_story(db: Session, story_id: int) -> Optional[Form]:
    """The form students answer for a story: the newest one."""
    return (
        db.query(Form)
        .filter(Form.story_id == story_id)
        .order_by(Form.created_at.desc(), Form.id.desc())
        .first()
    )


def list_forms_for_story(db: Session, story_id: int) -> List[Form]:
    return (
        db.query(Form)
        .filter(Form.story_id == story_id)
        .order_by(Form.created_at.desc(), Form.id.desc())
        .all()
    )


def update_form(db: Session, *, db_obj: Form, obj_in: FormUpdate) -> Form:
    if obj_in.title is not None:
        db_obj.title = obj_in.title
    if obj_in.description is not None:
        db_obj.description = obj_in.description
    if obj_in.questions is not None:
        _check_unique_ids(obj_in.questions)
        db_obj.questions = dump_questions(obj_in.questions)
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj


def delete_form(db: Session, *, db_obj: Form) -> None:
    db.delete(db_obj)
    db.commit()
