# reading_portal/models/story.py
from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from reading_portal.db.base_class import Base

DIFFICULTIES = ("easy", "medium", "hard")


class Story(Base):
    __tablename__ = "stories"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    difficulty = Column(String(10), nullable=False, default="easy")
    grade_level = Column(Integer, nullable=False, index=True)
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    # deleting a story removes everything hanging off it
    forms = relationship("Form", cascade="all, delete-orphan")
    progress = relationship("StoryProgress", cascade="all, delete-orphan")
    submissions = relationship("Submission", cascade="all, delete-orphan")


class StoryProgress(Base):
    __tablename__ = "story_progress"
    __table_args__ = (UniqueConstraint("student_id", "story_id", name="uq_progress_student_story"),)

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    story_id = Column(Integer, ForeignKey("stories.id", ondelete="CASCADE"), nullable=False, index=True)

    # not_started / in_progress / completed
    status = Column(String(20), nullable=False, default="not_started")
    completed_at = Column(DateTime(timezone=True), nullable=True)

    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
