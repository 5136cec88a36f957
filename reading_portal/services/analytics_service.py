# reading_portal/services/analytics_service.py
from typing import Dict, List

from sqlalchemy.orm import Session

from reading_portal.models.form import Form
from reading_portal.models.story import Story
from reading_portal.models.submission import Submission
from reading_portal.models.user import ROLE_STUDENT, ROLE_TEACHER, User
from reading_portal.services.grading import final_grade


def grade_stats(db: Session, *, grade_level: int | None) -> Dict:
    """Counts for one grade, or for the whole school when grade_level is None."""
    students_q = db.query(User).filter(User.role == ROLE_STUDENT)
    stories_q = db.query(Story)
    forms_q = db.query(Form).join(Story, Story.id == Form.story_id)
    subs_q = (
        db.query(Submission.grade, Submission.voice_grade)
        .join(User, User.id == Submission.student_id)
    )
    if grade_level is not None:
        students_q = students_q.filter(User.grade_level == grade_level)
        stories_q = stories_q.filter(Story.grade_level == grade_level)
        forms_q = forms_q.filter(Story.grade_level == grade_level)
        subs_q = subs_q.filter(User.grade_level == grade_level)

    finals = [final_grade(grade, voice) for grade, voice in subs_q.all()]
    graded = [f for f in finals if f is not None]

    return {
        "grade_level": grade_level,
        "students": students_q.count(),
        "stories": stories_q.count(),
        "forms": forms_q.count(),
        "submissions": len(finals),
        "graded": len(graded),
        "pending": len(finals) - len(graded),
        "average_final_grade": round(sum(graded) / len(graded), 1) if graded else None,
    }


def teacher_analytics(db: Session, *, teacher: User) -> Dict:
    return grade_stats(db, grade_level=teacher.grade_level)


def admin_analytics(db: Session) -> Dict:
    levels: List[int] = sorted(
        {level for (level,) in db.query(User.grade_level).filter(User.grade_level.isnot(None)).distinct()}
        | {level for (level,) in db.query(Story.grade_level).distinct()}
    )
    result = grade_stats(db, grade_level=None)
    result["teachers"] = db.query(User).filter(User.role == ROLE_TEACHER).count()
    result["per_grade"] = [grade_stats(db, grade_level=level) for level in levels]
    return result
