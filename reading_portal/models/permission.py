# reading_portal/models/permission.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from reading_portal.db.base_class import Base


class TeacherPermissionOverride(Base):
    __tablename__ = "teacher_permission_overrides"
    __table_args__ = (
        UniqueConstraint("teacher_id", "permission_key", name="uq_override_teacher_key"),
    )

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    permission_key = Column(String(64), nullable=False)
    is_enabled = Column(Boolean, nullable=False)

    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
