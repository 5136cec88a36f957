# reading_portal/schemas/leaderboard.py
from pydantic import BaseModel


class LeaderboardEntry(BaseModel):
    student_id: int
    name: str
    grade: int | None = None
    rank: int
    stories_read: int = 0
    forms_submitted: int = 0
    combined_score: int = 0
    graded_submissions: int = 0
    avg_grade: int | None = None
    total_score: int = 0
    current_title: str | None = None

    model_config = {"from_attributes": True}


class RefreshQueued(BaseModel):
    job_id: str
