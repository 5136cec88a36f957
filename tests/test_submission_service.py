"""
Submission intake: validation, duplicate blocking and best-effort auto-grading.
"""

import io

import pytest
from sqlalchemy.exc import OperationalError

from reading_portal.core.config import settings
from reading_portal.models.story import Story
from reading_portal.models.submission import Submission
from reading_portal.models.user import User
from reading_portal.schemas.submission import SubmissionCreate
from reading_portal.services import audio_service, submission_service
from reading_portal.services.submission_service import (
    AlreadySubmittedError,
    InvalidRecordingError,
    MissingAnswerError,
    SubmissionError,
)

COMPLETE_ANSWERS = {
    "q1": "The fisherman",
    "q2": "Be brave when things are hard",
}


def _submit(db, student, story, answers=None, audio_url=None):
    obj_in = SubmissionCreate(
        story_id=story.id,
        answers=COMPLETE_ANSWERS if answers is None else answers,
        audio_url=audio_url,
    )
    return submission_service.create_submission(db, student=student, obj_in=obj_in)


def _stage(student, story, data=b"reading-aloud"):
    return audio_service.stage_recording(
        io.BytesIO(data), content_type="audio/webm", student_id=student.id, story_id=story.id
    )


class TestCreateSubmission:
    def test_auto_graded_submission(self, db_session, test_student, test_story, test_form, fake_llm):
        fake_llm.reply = "GRADE: 88\nFEEDBACK: Very good"

        sub = _submit(db_session, test_student, test_story)

        assert sub.id is not None
        assert sub.grading_status == "auto_graded"
        assert sub.auto_grade == 88
        assert sub.auto_feedback == "Very good"
        assert sub.form_id == test_form.id
        assert sub.answers == COMPLETE_ANSWERS
        # teacher grades stay empty until someone overrides
        assert sub.grade is None
        assert sub.voice_grade is None

    def test_auto_grade_failure_does_not_block(
        self, db_session, audio_dir, test_student, test_story, test_form, fake_llm
    ):
        audio_url = _stage(test_student, test_story)
        fake_llm.fail()

        sub = _submit(db_session, test_student, test_story, audio_url=audio_url)

        assert sub.id is not None, "submission must be stored even when auto-grading fails"
        assert sub.grading_status == "ungraded"
        assert sub.auto_grade is None
        assert sub.auto_feedback is None
        assert sub.audio_url == audio_url

    def test_reply_without_grade_stays_ungraded(self, db_session, test_student, test_story, test_form, fake_llm):
        fake_llm.reply = "I could not grade this."

        sub = _submit(db_session, test_student, test_story)

        assert sub.grading_status == "ungraded"
        assert sub.auto_grade is None

    def test_auto_grade_disabled(self, db_session, test_student, test_story, test_form, fake_llm, monkeypatch):
        monkeypatch.setattr(settings, "AUTO_GRADE_ENABLED", False)

        sub = _submit(db_session, test_student, test_story)

        assert sub.grading_status == "ungraded"
        assert fake_llm.calls == []

    def test_optional_question_may_be_blank(self, db_session, test_student, test_story, test_form):
        sub = _submit(db_session, test_student, test_story, answers={**COMPLETE_ANSWERS, "q3": ""})
        assert sub.id is not None

    def test_missing_required_answer(self, db_session, test_student, test_story, test_form, fake_llm):
        with pytest.raises(MissingAnswerError) as exc_info:
            _submit(db_session, test_student, test_story, answers={"q1": "The fisherman", "q2": "   "})

        assert "What is the lesson of the story?" in str(exc_info.value)
        assert fake_llm.calls == [], "validation runs before auto-grading"
        assert db_session.query(Submission).count() == 0

    def test_duplicate_is_blocked_before_auto_grade(self, db_session, test_student, test_story, test_form, fake_llm):
        _submit(db_session, test_student, test_story)
        assert len(fake_llm.calls) == 1

        with pytest.raises(AlreadySubmittedError):
            _submit(db_session, test_student, test_story)

        assert len(fake_llm.calls) == 1, "duplicate must be rejected without calling the LLM"
        assert db_session.query(Submission).count() == 1

    def test_story_of_other_grade(self, db_session, test_student, fake_llm):
        story = Story(title="Grade 4 story", content="...", difficulty="easy", grade_level=4)
        db_session.add(story)
        db_session.commit()

        with pytest.raises(SubmissionError, match="not found"):
            _submit(db_session, test_student, story)
        assert fake_llm.calls == []

    def test_story_without_form(self, db_session, test_student, test_story):
        with pytest.raises(SubmissionError, match="no form"):
            _submit(db_session, test_student, test_story)


class TestValidateAnswers:
    def test_first_missing_question_is_reported(self, test_form):
        from reading_portal.services.form_service import load_questions

        questions = load_questions(test_form)
        with pytest.raises(MissingAnswerError) as exc_info:
            submission_service.validate_answers(questions, {})
        assert exc_info.value.question.id == "q1"


class TestListSubmissions:
    def test_student_sees_own_submissions(self, db_session, test_student, test_story, test_form):
        sub = _submit(db_session, test_student, test_story)

        subs = submission_service.list_submissions_for_student(db_session, student=test_student)

        assert [s.id for s in subs] == [sub.id]


class TestRecordingReference:
    def test_own_recording_is_accepted(self, db_session, audio_dir, test_student, test_story, test_form):
        audio_url = _stage(test_student, test_story)

        sub = _submit(db_session, test_student, test_story, audio_url=audio_url)

        assert sub.audio_url == audio_url
        assert audio_url.startswith(f"voice-recordings/{test_student.id}_{test_story.id}_")

    def test_recording_of_another_student_is_rejected(
        self, db_session, audio_dir, test_student, test_story, test_form, fake_llm
    ):
        classmate = User(name="Classmate", role="student", access_code="STUD0002", grade_level=3)
        db_session.add(classmate)
        db_session.commit()
        their_recording = _stage(test_student, test_story, data=b"someone-elses-voice")

        with pytest.raises(InvalidRecordingError):
            _submit(db_session, classmate, test_story, audio_url=their_recording)

        assert db_session.query(Submission).count() == 0
        assert fake_llm.calls == [], "recording is checked before auto-grading"

    def test_recording_of_another_story_is_rejected(self, db_session, audio_dir, test_student, test_story, test_form):
        other = Story(title="Another story", content="...", difficulty="easy", grade_level=3)
        db_session.add(other)
        db_session.commit()
        other_recording = _stage(test_student, other)

        with pytest.raises(InvalidRecordingError):
            _submit(db_session, test_student, test_story, audio_url=other_recording)

    def test_missing_file_is_rejected(self, db_session, audio_dir, test_student, test_story, test_form):
        made_up = f"voice-recordings/{test_student.id}_{test_story.id}_1.webm"

        with pytest.raises(InvalidRecordingError, match="not found"):
            _submit(db_session, test_student, test_story, audio_url=made_up)

    def test_path_outside_store_is_rejected(self, db_session, audio_dir, test_student, test_story, test_form):
        escape = f"voice-recordings/{test_student.id}_{test_story.id}_/../../../etc/passwd"

        with pytest.raises(InvalidRecordingError):
            _submit(db_session, test_student, test_story, audio_url=escape)


class TestPersistenceFailures:
    def test_failed_commit_stores_nothing_and_can_be_retried(
        self, db_session, test_student, test_story, test_form, monkeypatch
    ):
        real_commit = db_session.commit
        failures = []

        def commit_fails_once():
            if not failures:
                failures.append(True)
                raise OperationalError("INSERT INTO submissions", {}, Exception("database is locked"))
            real_commit()

        monkeypatch.setattr(db_session, "commit", commit_fails_once)

        with pytest.raises(OperationalError):
            _submit(db_session, test_student, test_story)
        assert db_session.query(Submission).count() == 0

        sub = _submit(db_session, test_student, test_story)

        assert sub.id is not None
        assert db_session.query(Submission).count() == 1

    def test_concurrent_duplicate_is_reported_as_already_submitted(
        self, db_session, test_student, test_story, test_form, monkeypatch
    ):
        # another request inserted its row after this one passed the duplicate check
        db_session.add(Submission(
            student_id=test_student.id,
            story_id=test_story.id,
            form_id=test_form.id,
            answers=COMPLETE_ANSWERS,
        ))
        db_session.commit()
        monkeypatch.setattr(submission_service, "get_existing_submission", lambda db, **kwargs: None)

        with pytest.raises(AlreadySubmittedError):
            _submit(db_session, test_student, test_story)

        assert db_session.query(Submission).count() == 1
