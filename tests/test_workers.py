"""
Leaderboard refresh job: enqueueing and the task run by the RQ worker.
"""

from reading_portal.models.achievement import LeaderboardCacheEntry
from reading_portal.workers import queue, tasks


class TestRefreshLeaderboardTask:
    def test_success(self, db_session, test_student, monkeypatch):
        monkeypatch.setattr(tasks, "SessionLocal", lambda: db_session)

        result = tasks.refresh_leaderboard_task()

        assert result["status"] == "success"
        assert result["entries"] == 1
        assert db_session.query(LeaderboardCacheEntry).count() == 1

    def test_failure_is_reported(self, db_session, monkeypatch):
        def broken(db):
            raise RuntimeError("database is gone")

        monkeypatch.setattr(tasks, "SessionLocal", lambda: db_session)
        monkeypatch.setattr(tasks, "refresh_leaderboard_cache", broken)

        result = tasks.refresh_leaderboard_task()

        assert result["status"] == "error"
        assert "database is gone" in result["error"]


class TestEnqueueRefresh:
    def test_job_goes_to_leaderboard_queue(self, monkeypatch):
        enqueued = []

        class FakeQueue:
            def enqueue(self, func, **kwargs):
                enqueued.append((func, kwargs))

                class Job:
                    id = "job-42"

                return Job()

        names = []

        def fake_get_queue(name):
            names.append(name)
            return FakeQueue()

        monkeypatch.setattr(queue, "get_queue", fake_get_queue)

        assert queue.enqueue_leaderboard_refresh() == "job-42"
        assert names == [queue.LEADERBOARD_QUEUE_NAME]
        func, kwargs = enqueued[0]
        assert func is tasks.refresh_leaderboard_task
        assert kwargs["job_timeout"] > 0
