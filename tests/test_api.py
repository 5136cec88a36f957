"""
End-to-end checks through the HTTP API: auth, role guards, permissions and the
submit -> auto-grade -> teacher grade flow.
"""

import re

from redis.exceptions import RedisError

from reading_portal.api.v1.endpoints import health as health_endpoints
from reading_portal.api.v1.endpoints import leaderboard as leaderboard_endpoints
from reading_portal.models.user import User
from reading_portal.services import permission_service

API = "/api/v1"

ANSWERS = {"q1": "The fisherman", "q2": "Be brave when things are hard"}


class TestAuth:
    def test_login_with_access_code(self, client, test_student):
        resp = client.post(f"{API}/auth/login", json={"access_code": "STUD0001"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["role"] == "student"
        assert body["token_type"] == "bearer"

        me = client.get(f"{API}/users/me", headers={"Authorization": f"Bearer {body['access_token']}"})
        assert me.status_code == 200
        assert me.json()["name"] == "Test Student"

    def test_login_code_is_trimmed(self, client, test_teacher):
        resp = client.post(f"{API}/auth/login", json={"access_code": "  TEACH001 "})
        assert resp.status_code == 200
        assert resp.json()["role"] == "teacher"

    def test_invalid_code(self, client, test_student):
        resp = client.post(f"{API}/auth/login", json={"access_code": "WRONG123"})
        assert resp.status_code == 401

    def test_oauth2_form_login(self, client, test_admin):
        resp = client.post(f"{API}/auth/token", data={"username": "x", "password": "ADMIN001"})
        assert resp.status_code == 200
        assert resp.json()["role"] == "admin"

    def test_register_student(self, client, db_session, test_student):
        test_student.is_registered = False
        db_session.commit()

        resp = client.post(f"{API}/auth/register", json={"access_code": "STUD0001", "name": "Sara"})

        assert resp.status_code == 200
        db_session.refresh(test_student)
        assert test_student.name == "Sara"
        assert test_student.is_registered is True

    def test_register_rejects_teacher_code(self, client, test_teacher):
        resp = client.post(f"{API}/auth/register", json={"access_code": "TEACH001", "name": "X"})
        assert resp.status_code == 400

    def test_missing_or_bad_token(self, client):
        assert client.get(f"{API}/users/me").status_code == 401
        bad = client.get(f"{API}/users/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert bad.status_code == 401


class TestRoleGuards:
    def test_student_cannot_grade(self, client, auth_headers, test_student):
        resp = client.put(f"{API}/scores/1", json={"grade": 90}, headers=auth_headers(test_student))
        assert resp.status_code == 403

    def test_teacher_cannot_manage_teachers(self, client, auth_headers, test_teacher):
        resp = client.get(f"{API}/users/teachers", headers=auth_headers(test_teacher))
        assert resp.status_code == 403

    def test_teacher_cannot_submit(self, client, auth_headers, test_teacher, test_story, test_form):
        resp = client.post(
            f"{API}/submissions/",
            json={"story_id": test_story.id, "answers": ANSWERS},
            headers=auth_headers(test_teacher),
        )
        assert resp.status_code == 403

    def test_permission_override_blocks_teacher(self, client, db_session, auth_headers, test_teacher):
        permission_service.set_override(
            db_session, teacher=test_teacher, permission_key="content_create_stories", is_enabled=False
        )

        resp = client.post(
            f"{API}/stories/",
            json={"title": "T", "content": "C", "difficulty": "easy"},
            headers=auth_headers(test_teacher),
        )

        assert resp.status_code == 403
        assert "content_create_stories" in resp.json()["detail"]

    def test_read_only_teacher_can_view_not_grade(self, client, db_session, auth_headers, test_teacher):
        test_teacher.permission_level = "read_only"
        db_session.commit()

        assert client.get(f"{API}/scores/submissions", headers=auth_headers(test_teacher)).status_code == 200
        resp = client.put(f"{API}/scores/1", json={"grade": 50}, headers=auth_headers(test_teacher))
        assert resp.status_code == 403

    def test_admin_sets_permission(self, client, auth_headers, test_admin, test_teacher):
        resp = client.put(
            f"{API}/permissions/teachers/{test_teacher.id}",
            json={"permission_key": "analytics_export_data", "is_enabled": False},
            headers=auth_headers(test_admin),
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["overrides"] == {"analytics_export_data": False}
        assert body["permissions"]["analytics_export_data"] is False
        assert body["permissions"]["analytics_view_reports"] is True

    def test_admin_unknown_permission(self, client, auth_headers, test_admin, test_teacher):
        resp = client.put(
            f"{API}/permissions/teachers/{test_teacher.id}",
            json={"permission_key": "nope", "is_enabled": True},
            headers=auth_headers(test_admin),
        )
        assert resp.status_code == 400


class TestSubmissionFlow:
    def test_teacher_creates_story_and_form(self, client, auth_headers, test_teacher):
        headers = auth_headers(test_teacher)

        story = client.post(
            f"{API}/stories/",
            # grade_level is ignored for teachers
            json={"title": "The Moon", "content": "The moon was shy.", "difficulty": "medium", "grade_level": 6},
            headers=headers,
        )
        assert story.status_code == 201
        assert story.json()["grade_level"] == 3

        form = client.post(
            f"{API}/forms/",
            json={
                "story_id": story.json()["id"],
                "title": "Moon questions",
                "questions": [
                    {"id": "q1", "text": "Who was shy?", "type": "short_answer"},
                    {"id": "q2", "text": "Pick one", "type": "multiple_choice", "options": ["a", "b"]},
                ],
            },
            headers=headers,
        )
        assert form.status_code == 201
        assert [q["type"] for q in form.json()["questions"]] == ["short_answer", "multiple_choice"]

    def test_duplicate_question_ids_rejected(self, client, auth_headers, test_teacher, test_story):
        resp = client.post(
            f"{API}/forms/",
            json={
                "story_id": test_story.id,
                "title": "Dupes",
                "questions": [{"id": "q1", "type": "short_answer"}, {"id": "q1", "type": "long_answer"}],
            },
            headers=auth_headers(test_teacher),
        )
        assert resp.status_code == 400

    def test_multiple_choice_without_options_rejected(self, client, auth_headers, test_teacher, test_story):
        resp = client.post(
            f"{API}/forms/",
            json={
                "story_id": test_story.id,
                "title": "No choices",
                "questions": [{"id": "q1", "text": "Pick one", "type": "multiple_choice"}],
            },
            headers=auth_headers(test_teacher),
        )
        assert resp.status_code == 422

    def test_submit_grade_and_view(self, client, auth_headers, fake_llm, test_student, test_teacher, test_story, test_form):
        fake_llm.reply = "GRADE: 72\nFEEDBACK: Good effort"
        student_headers = auth_headers(test_student)

        # before submitting
        stories = client.get(f"{API}/stories/assigned", headers=student_headers).json()
        assert stories[0]["submission_status"] == "not_submitted"
        assert stories[0]["has_form"] is True

        resp = client.post(
            f"{API}/submissions/",
            json={"story_id": test_story.id, "answers": ANSWERS},
            headers=student_headers,
        )
        assert resp.status_code == 201
        sub = resp.json()
        assert sub["grading_status"] == "auto_graded"
        # the auto-grade is for the teacher; students only see teacher grades
        assert "auto_grade" not in sub
        assert "auto_feedback" not in sub
        assert sub["final_grade"] is None

        stories = client.get(f"{API}/stories/assigned", headers=student_headers).json()
        assert stories[0]["submission_status"] == "graded"

        again = client.post(
            f"{API}/submissions/",
            json={"story_id": test_story.id, "answers": ANSWERS},
            headers=student_headers,
        )
        assert again.status_code == 409

        teacher_headers = auth_headers(test_teacher)
        bad = client.put(f"{API}/scores/{sub['id']}", json={"grade": 101}, headers=teacher_headers)
        assert bad.status_code == 422

        graded = client.put(
            f"{API}/scores/{sub['id']}",
            json={"grade": 80, "voice_grade": 91, "feedback": "Lovely reading"},
            headers=teacher_headers,
        )
        assert graded.status_code == 200
        detail = graded.json()
        assert detail["grading_status"] == "teacher_graded"
        assert detail["auto_grade"] == 72
        assert detail["auto_feedback"] == "Good effort"
        assert detail["final_grade"] == 86
        assert detail["student_name"] == "Test Student"
        assert detail["story_title"] == "The Brave Fisherman"

        mine = client.get(f"{API}/submissions/me", headers=student_headers).json()
        assert "auto_grade" not in mine[0]
        assert mine[0]["final_grade"] == 86
        assert mine[0]["feedback"] == "Lovely reading"

        stories = client.get(f"{API}/stories/assigned", headers=student_headers).json()
        assert stories[0]["submission_status"] == "reviewed"

    def test_missing_answer_names_question(self, client, auth_headers, test_student, test_story, test_form):
        resp = client.post(
            f"{API}/submissions/",
            json={"story_id": test_story.id, "answers": {"q1": "The fisherman"}},
            headers=auth_headers(test_student),
        )
        assert resp.status_code == 422
        assert resp.json()["detail"] == "Please answer the question: What is the lesson of the story?"

    def test_auto_grade_outage_still_accepts(self, client, auth_headers, fake_llm, test_student, test_story, test_form):
        fake_llm.fail()

        resp = client.post(
            f"{API}/submissions/",
            json={"story_id": test_story.id, "answers": ANSWERS},
            headers=auth_headers(test_student),
        )

        assert resp.status_code == 201
        assert resp.json()["grading_status"] == "ungraded"

    def test_teacher_of_other_grade_cannot_grade(
        self, client, db_session, auth_headers, test_student, other_teacher, test_story, test_form
    ):
        created = client.post(
            f"{API}/submissions/",
            json={"story_id": test_story.id, "answers": ANSWERS},
            headers=auth_headers(test_student),
        ).json()

        resp = client.put(f"{API}/scores/{created['id']}", json={"grade": 90}, headers=auth_headers(other_teacher))
        assert resp.status_code == 403

    def test_feedback_suggestion(self, client, auth_headers, fake_llm, test_student, test_teacher, test_story, test_form):
        created = client.post(
            f"{API}/submissions/",
            json={"story_id": test_story.id, "answers": ANSWERS},
            headers=auth_headers(test_student),
        ).json()
        fake_llm.reply = "Great reading, keep going!"

        resp = client.post(
            f"{API}/scores/{created['id']}/feedback-suggestion", headers=auth_headers(test_teacher)
        )

        assert resp.status_code == 200
        assert resp.json()["feedback"] == "Great reading, keep going!"


class TestAudio:
    def test_upload_and_download(self, client, auth_headers, audio_dir, test_student, test_teacher, test_story, test_form):
        headers = auth_headers(test_student)
        upload = client.post(
            f"{API}/submissions/audio",
            params={"story_id": test_story.id},
            files={"file": ("reading.webm", b"fake-audio-bytes", "audio/webm")},
            headers=headers,
        )
        assert upload.status_code == 201
        audio_url = upload.json()["audio_url"]
        assert audio_url.startswith("voice-recordings/")
        assert (audio_dir / audio_url).read_bytes() == b"fake-audio-bytes"

        sub = client.post(
            f"{API}/submissions/",
            json={"story_id": test_story.id, "answers": ANSWERS, "audio_url": audio_url},
            headers=headers,
        ).json()

        download = client.get(f"{API}/submissions/{sub['id']}/audio", headers=auth_headers(test_teacher))
        assert download.status_code == 200
        assert download.content == b"fake-audio-bytes"

    def test_cannot_submit_classmates_recording(
        self, client, db_session, auth_headers, audio_dir, test_student, test_story, test_form
    ):
        classmate = User(name="Classmate", role="student", access_code="STUD0002", grade_level=3)
        db_session.add(classmate)
        db_session.commit()
        upload = client.post(
            f"{API}/submissions/audio",
            params={"story_id": test_story.id},
            files={"file": ("reading.webm", b"their-voice", "audio/webm")},
            headers=auth_headers(test_student),
        )

        resp = client.post(
            f"{API}/submissions/",
            json={"story_id": test_story.id, "answers": ANSWERS, "audio_url": upload.json()["audio_url"]},
            headers=auth_headers(classmate),
        )

        assert resp.status_code == 400
        assert client.get(f"{API}/submissions/me", headers=auth_headers(classmate)).json() == []

    def test_rejects_non_audio(self, client, auth_headers, audio_dir, test_student, test_story):
        resp = client.post(
            f"{API}/submissions/audio",
            params={"story_id": test_story.id},
            files={"file": ("notes.txt", b"hello", "text/plain")},
            headers=auth_headers(test_student),
        )
        assert resp.status_code == 400


class TestStudentsAndLeaderboard:
    def test_teacher_creates_student_with_access_code(self, client, auth_headers, test_teacher):
        resp = client.post(
            f"{API}/users/students",
            json={"name": "New Kid", "grade_level": 5},
            headers=auth_headers(test_teacher),
        )

        assert resp.status_code == 201
        body = resp.json()
        assert body["grade_level"] == 3
        assert len(body["access_code"]) == 8
        assert re.fullmatch(r"[A-Z0-9]{8}", body["access_code"])

        login = client.post(f"{API}/auth/login", json={"access_code": body["access_code"]})
        assert login.status_code == 200

    def test_leaderboard(self, client, auth_headers, test_student):
        resp = client.get(f"{API}/leaderboard/", headers=auth_headers(test_student))

        assert resp.status_code == 200
        assert resp.json()[0]["name"] == "Test Student"
        assert resp.json()[0]["rank"] == 1

    def test_refresh_without_redis(self, client, auth_headers, test_admin, monkeypatch):
        def unavailable():
            raise RedisError("connection refused")

        monkeypatch.setattr(leaderboard_endpoints, "enqueue_leaderboard_refresh", unavailable)

        resp = client.post(f"{API}/leaderboard/refresh", headers=auth_headers(test_admin))
        assert resp.status_code == 503

    def test_refresh_queued(self, client, auth_headers, test_admin, monkeypatch):
        monkeypatch.setattr(leaderboard_endpoints, "enqueue_leaderboard_refresh", lambda: "job-1")

        resp = client.post(f"{API}/leaderboard/refresh", headers=auth_headers(test_admin))

        assert resp.status_code == 202
        assert resp.json() == {"job_id": "job-1"}


class TestHealth:
    def test_live(self, client):
        assert client.get(f"{API}/health/live").json() == {"status": "ok"}

    def test_db(self, client):
        assert client.get(f"{API}/health/db").status_code == 200

    def test_queue_unavailable(self, client, monkeypatch):
        class DownRedis:
            def ping(self):
                raise RedisError("connection refused")

        monkeypatch.setattr(health_endpoints, "get_redis_connection", lambda: DownRedis())

        resp = client.get(f"{API}/health/queue")

        assert resp.status_code == 503
        assert resp.json()["detail"] == "Queue unavailable"

    def test_queue_ok(self, client, monkeypatch):
        class UpRedis:
            def ping(self):
                return True

        monkeypatch.setattr(health_endpoints, "get_redis_connection", lambda: UpRedis())

        assert client.get(f"{API}/health/queue").json() == {"status": "ok"}
