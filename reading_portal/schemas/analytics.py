# reading_portal/schemas/analytics.py
from typing import List

from pydantic import BaseModel


class GradeStats(BaseModel):
    grade_level: int | None = None
    students: int = 0
    stories: int = 0
    forms: int = 0
    submissions: int = 0
    graded: int = 0
    pending: int = 0
    average_final_grade: float | None = None


class AdminAnalytics(GradeStats):
    teachers: int = 0
    per_grade: List[GradeStats] = []
