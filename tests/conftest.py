"""
Shared fixtures: an in-memory SQLite database per test, users of every role,
a story with a form, and a TestClient wired to the same session.
"""

import os

# Must be set before reading_portal is imported (settings and engine are module level)
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LLM_API_KEY", "test-key")

import pytest
from fastapi.testclient import TestClient
from openai import OpenAIError
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from reading_portal.core.config import settings
from reading_portal.core.security import token_for_user
from reading_portal.db.base import Base
from reading_portal.db.session import get_db
from reading_portal.main import app
from reading_portal.models.form import Form
from reading_portal.models.story import Story
from reading_portal.models.user import User
from reading_portal.services import llm_client

TEST_DATABASE_URL = "sqlite://"

FORM_QUESTIONS = [
    {"id": "q1", "text": "What is the hero's name?", "type": "short_answer", "required": True, "options": []},
    {"id": "q2", "text": "What is the lesson of the story?", "type": "long_answer", "required": True, "options": []},
    {
        "id": "q3",
        "text": "Where did the story happen?",
        "type": "multiple_choice",
        "required": False,
        "options": ["sea", "forest", "city"],
    },
]


class FakeLLM:
    """Stands in for llm_client._complete; records prompts, replies or raises."""

    def __init__(self):
        self.calls = []
        self.reply = "GRADE: 85\nFEEDBACK: Great work!"
        self.error = None

    def __call__(self, prompt, *, model, temperature, max_tokens):
        self.calls.append({"prompt": prompt, "model": model})
        if self.error is not None:
            raise self.error
        return self.reply

    def fail(self, message="service unavailable"):
        self.error = OpenAIError(message)


@pytest.fixture(autouse=True)
def fake_llm(monkeypatch):
    """No test talks to a real LLM."""
    fake = FakeLLM()
    monkeypatch.setattr(llm_client, "_complete", fake)
    monkeypatch.setattr(settings, "AUTO_GRADE_ENABLED", True)
    return fake


@pytest.fixture
def audio_dir(tmp_path, monkeypatch):
    """Recordings go to a per-test directory."""
    monkeypatch.setattr(settings, "AUDIO_STORAGE_DIR", str(tmp_path))
    return tmp_path


@pytest.fixture(scope="function")
def db_session():
    """Create a test database session."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


def _add(db, obj):
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@pytest.fixture
def test_admin(db_session):
    return _add(db_session, User(name="Admin", role="admin", access_code="ADMIN001"))


@pytest.fixture
def test_teacher(db_session):
    return _add(db_session, User(
        name="Test Teacher",
        role="teacher",
        access_code="TEACH001",
        grade_level=3,
        permission_level="full_access",
        is_registered=True,
    ))


@pytest.fixture
def other_teacher(db_session):
    return _add(db_session, User(
        name="Other Teacher",
        role="teacher",
        access_code="TEACH002",
        grade_level=4,
        permission_level="full_access",
        is_registered=True,
    ))


@pytest.fixture
def test_student(db_session):
    return _add(db_session, User(
        name="Test Student",
        role="student",
        access_code="STUD0001",
        grade_level=3,
        is_registered=True,
    ))


@pytest.fixture
def test_story(db_session, test_teacher):
    return _add(db_session, Story(
        title="The Brave Fisherman",
        content="Once upon a time a fisherman sailed into a storm and came home safe.",
        difficulty="easy",
        grade_level=3,
        created_by_id=test_teacher.id,
    ))


@pytest.fixture
def test_form(db_session, test_story):
    return _add(db_session, Form(
        story_id=test_story.id,
        title="Questions about the fisherman",
        questions=FORM_QUESTIONS,
    ))


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {token_for_user(user)}"}

    return _headers
