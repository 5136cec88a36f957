"""initial schema

Users, stories, forms, reading progress, submissions, permission overrides,
achievement titles and the leaderboard snapshot.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001_initial"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("access_code", sa.String(64), nullable=False, unique=True),
        sa.Column("email", sa.String(255), nullable=True, unique=True),
        sa.Column("grade_level", sa.Integer(), nullable=True),
        sa.Column("permission_level", sa.String(20), nullable=True),
        sa.Column("is_registered", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_by_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_role", "users", ["role"])
    op.create_index("ix_users_access_code", "users", ["access_code"])
    op.create_index("ix_users_grade_level", "users", ["grade_level"])

    op.create_table(
        "stories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("difficulty", sa.String(10), nullable=False),
        sa.Column("grade_level", sa.Integer(), nullable=False),
        sa.Column("created_by_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_stories_id", "stories", ["id"])
    op.create_index("ix_stories_grade_level", "stories", ["grade_level"])

    op.create_table(
        "forms",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("story_id", sa.Integer(), sa.ForeignKey("stories.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("questions", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_forms_id", "forms", ["id"])
    op.create_index("ix_forms_story_id", "forms", ["story_id"])

    op.create_table(
        "story_progress",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("student_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("story_id", sa.Integer(), sa.ForeignKey("stories.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("student_id", "story_id", name="uq_progress_student_story"),
    )
    op.create_index("ix_story_progress_id", "story_progress", ["id"])
    op.create_index("ix_story_progress_student_id", "story_progress", ["student_id"])
    op.create_index("ix_story_progress_story_id", "story_progress", ["story_id"])

    op.create_table(
        "submissions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("student_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("story_id", sa.Integer(), sa.ForeignKey("stories.id", ondelete="CASCADE"), nullable=False),
        sa.Column("form_id", sa.Integer(), sa.ForeignKey("forms.id", ondelete="SET NULL"), nullable=True),
        sa.Column("answers", sa.JSON(), nullable=False),
        sa.Column("audio_url", sa.String(500), nullable=True),
        sa.Column("grading_status", sa.String(20), nullable=False),
        sa.Column("auto_grade", sa.Integer(), nullable=True),
        sa.Column("auto_feedback", sa.Text(), nullable=True),
        sa.Column("grade", sa.Integer(), nullable=True),
        sa.Column("voice_grade", sa.Integer(), nullable=True),
        sa.Column("feedback", sa.Text(), nullable=True),
        sa.Column("graded_by_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("graded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("student_id", "story_id", name="uq_submission_student_story"),
    )
    op.create_index("ix_submissions_id", "submissions", ["id"])
    op.create_index("ix_submissions_student_id", "submissions", ["student_id"])
    op.create_index("ix_submissions_story_id", "submissions", ["story_id"])
    op.create_index("ix_submissions_grading_status", "submissions", ["grading_status"])

    op.create_table(
        "teacher_permission_overrides",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("teacher_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("permission_key", sa.String(64), nullable=False),
        sa.Column("is_enabled", sa.Boolean(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("teacher_id", "permission_key", name="uq_override_teacher_key"),
    )
    op.create_index("ix_teacher_permission_overrides_id", "teacher_permission_overrides", ["id"])
    op.create_index(
        "ix_teacher_permission_overrides_teacher_id", "teacher_permission_overrides", ["teacher_id"]
    )

    op.create_table(
        "achievement_titles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("icon", sa.String(20), nullable=True),
        sa.Column("min_stories_read", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("min_forms_submitted", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_achievement_titles_id", "achievement_titles", ["id"])

    op.create_table(
        "leaderboard_cache",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("student_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("grade", sa.Integer(), nullable=True),
        sa.Column("rank", sa.Integer(), nullable=False),
        sa.Column("stories_read", sa.Integer(), nullable=False),
        sa.Column("forms_submitted", sa.Integer(), nullable=False),
        sa.Column("combined_score", sa.Integer(), nullable=False),
        sa.Column("graded_submissions", sa.Integer(), nullable=False),
        sa.Column("avg_grade", sa.Integer(), nullable=True),
        sa.Column("total_score", sa.Integer(), nullable=False),
        sa.Column("current_title", sa.String(100), nullable=True),
        sa.Column("refreshed_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_leaderboard_cache_id", "leaderboard_cache", ["id"])
    op.create_index("ix_leaderboard_cache_student_id", "leaderboard_cache", ["student_id"])


def downgrade() -> None:
    for table in (
        "leaderboard_cache",
        "achievement_titles",
        "teacher_permission_overrides",
        "submissions",
        "story_progress",
        "forms",
        "stories",
        "users",
    ):
        op.drop_table(table)
