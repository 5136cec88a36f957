# reading_portal/services/leaderboard_service.py
"""
Leaderboard aggregation.

combined_score = stories read + forms submitted. Ranking is by combined score,
then average final grade, then name; students level on both scores share a
rank (1, 2, 2, 4).
"""
import logging
from collections import defaultdict
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from reading_portal.models.achievement import AchievementTitle, LeaderboardCacheEntry
from reading_portal.models.story import StoryProgress
from reading_portal.models.submission import Submission
from reading_portal.models.user import ROLE_STUDENT, User
from reading_portal.services.grading import final_grade

logger = logging.getLogger(__name__)


def current_title(
    titles: List[AchievementTitle],
    *,
    stories_read: int,
    forms_submitted: int,
) -> Optional[str]:
    """Highest title whose thresholds are both met."""
    earned = [
        t for t in titles
        if stories_read >= t.min_stories_read and forms_submitted >= t.min_forms_submitted
    ]
    if not earned:
        return None
    best = max(earned, key=lambda t: (t.min_stories_read + t.min_forms_submitted, t.id))
    return best.title


def _rounded_mean(total: int, count: int) -> Optional[int]:
    if count == 0:
        return None
    # halves round up
    return (2 * total + count) // (2 * count)


def compute_leaderboard(db: Session, *, grade_level: int | None = None) -> List[dict]:
    students_q = db.query(User).filter(User.role == ROLE_STUDENT)
    if grade_level is not None:
        students_q = students_q.filter(User.grade_level == grade_level)
    students = students_q.all()
    if not students:
        return []

    student_ids = [s.id for s in students]

    stories_read: Dict[int, int] = dict(
        db.query(StoryProgress.student_id, func.count(StoryProgress.id))
        .filter(StoryProgress.student_id.in_(student_ids), StoryProgress.status == "completed")
        .group_by(StoryProgress.student_id)
        .all()
    )

    submitted: Dict[int, int] = defaultdict(int)
    graded_count: Dict[int, int] = defaultdict(int)
    grade_total: Dict[int, int] = defaultdict(int)
    rows = (
        db.query(Submission.student_id, Submission.grade, Submission.voice_grade)
        .filter(Submission.student_id.in_(student_ids))
        .all()
    )
    for student_id, grade, voice_grade in rows:
        submitted[student_id] += 1
        final = final_grade(grade, voice_grade)
        if final is not None:
            graded_count[student_id] += 1
            grade_total[student_id] += final

    titles = db.query(AchievementTitle).all()

    entries = []
    for student in students:
        read = stories_read.get(student.id, 0)
        forms = submitted[student.id]
        entries.append({
            "student_id": student.id,
            "name": student.name,
            "grade": student.grade_level,
            "stories_read": read,
            "forms_submitted": forms,
            "combined_score": read + forms,
            "graded_submissions": graded_count[student.id],
            "avg_grade": _rounded_mean(grade_total[student.id], graded_count[student.id]),
            "total_score": grade_total[student.id],
            "current_title": current_title(titles, stories_read=read, forms_submitted=forms),
        })

    entries.sort(key=lambda e: (-e["combined_score"], -(e["avg_grade"] or 0), e["name"]))

    previous_key = None
    rank = 0
    for position, entry in enumerate(entries, start=1):
        key = (entry["combined_score"], entry["avg_grade"] or 0)
        if key != previous_key:
            rank = position
            previous_key = key
        entry["rank"] = rank

    return entries


def get_cached_leaderboard(db: Session, *, grade_level: int | None = None) -> List[LeaderboardCacheEntry]:
    query = db.query(LeaderboardCacheEntry)
    if grade_level is not None:
        query = query.filter(LeaderboardCacheEntry.grade == grade_level)
    return query.order_by(LeaderboardCacheEntry.rank.asc(), LeaderboardCacheEntry.name.asc()).all()


def refresh_leaderboard_cache(db: Session) -> int:
    """Replace the cached snapshot with a freshly computed leaderboard."""
    entries = compute_leaderboard(db)
    try:
        db.query(LeaderboardCacheEntry).delete(synchronize_session=False)
        db.add_all(LeaderboardCacheEntry(**entry) for entry in entries)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"Leaderboard cache refreshed with {len(entries)} entries")
    return len(entries)
