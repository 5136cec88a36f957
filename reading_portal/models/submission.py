# reading_portal/models/submission.py
from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from reading_portal.db.base_class import Base

STATUS_UNGRADED = "ungraded"
STATUS_AUTO_GRADED = "auto_graded"
STATUS_TEACHER_GRADED = "teacher_graded"


class Submission(Base):
    __tablename__ = "submissions"
    __table_args__ = (
        UniqueConstraint("student_id", "story_id", name="uq_submission_student_story"),
    )

    id = Column(Integer, primary_key=True, index=True)

    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    story_id = Column(Integer, ForeignKey("stories.id", ondelete="CASCADE"), nullable=False, index=True)
    form_id = Column(Integer, ForeignKey("forms.id", ondelete="SET NULL"), nullable=True)

    # question id -> answer text
    answers = Column(JSON, nullable=False, default=dict)
    audio_url = Column(String(500), nullable=True)

    # ungraded / auto_graded / teacher_graded
    grading_status = Column(String(20), nullable=False, default=STATUS_UNGRADED, index=True)

    # auto grading (LLM)
    auto_grade = Column(Integer, nullable=True)
    auto_feedback = Column(Text, nullable=True)

    # teacher grading
    grade = Column(Integer, nullable=True)
    voice_grade = Column(Integer, nullable=True)
    feedback = Column(Text, nullable=True)
    graded_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    graded_at = Column(DateTime(timezone=True), nullable=True)

    submitted_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
