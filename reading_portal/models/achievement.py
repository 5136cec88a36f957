# reading_portal/models/achievement.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.sql import func

from reading_portal.db.base_class import Base


class AchievementTitle(Base):
    __tablename__ = "achievement_titles"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    icon = Column(String(20), nullable=True)
    min_stories_read = Column(Integer, nullable=False, default=0)
    min_forms_submitted = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class LeaderboardCacheEntry(Base):
    """Snapshot row written by the leaderboard refresh task."""

    __tablename__ = "leaderboard_cache"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    grade = Column(Integer, nullable=True)
    rank = Column(Integer, nullable=False)
    stories_read = Column(Integer, nullable=False, default=0)
    forms_submitted = Column(Integer, nullable=False, default=0)
    combined_score = Column(Integer, nullable=False, default=0)
    graded_submissions = Column(Integer, nullable=False, default=0)
    avg_grade = Column(Integer, nullable=True)
    total_score = Column(Integer, nullable=False, default=0)
    current_title = Column(String(100), nullable=True)

    refreshed_at = Column(DateTime(timezone=True), server_default=func.now())
