# =============================================================================
# tests/test_dashboard.py - Admin Dashboard Tests
# =============================================================================

from datetime import datetime, timedelta, timezone

from core.services.dashboard_service import (
    DashboardService,
    low_content_alerts,
    session_activity,
    sort_alerts,
)


NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
TODAY = NOW.replace(hour=0)


class TestHelpers:

    def test_session_activity(self):
        sessions = [
            {"questions_answered": 10, "correct_answers": 7, "started_at": NOW.isoformat()},
            {"questions_answered": 10, "correct_answers": 8, "started_at": (NOW - timedelta(days=2)).isoformat()},
            {"questions_answered": None, "correct_answers": None, "started_at": None},
        ]

        activity = session_activity(sessions, TODAY)

        assert activity == {
            "totalSessions": 3,
            "totalAnswered": 20,
            "averageAccuracy": 75,
            "sessionsToday": 1,
        }

    def test_session_activity_empty(self):
        assert session_activity([], TODAY)["averageAccuracy"] == 0

    def test_low_content_per_topic(self):
        alerts = low_content_alerts([{"id": "t1", "name": "Sets", "total_questions": 1}], NOW.isoformat())

        assert len(alerts) == 1
        assert alerts[0]["type"] == "info"
        assert alerts[0]["message"] == 'Topic "Sets" has only 1 question'

    def test_low_content_aggregated(self):
        topics = [{"id": f"t{i}", "name": f"T{i}", "total_questions": 0} for i in range(4)]

        alerts = low_content_alerts(topics, NOW.isoformat())

        assert [a["id"] for a in alerts] == ["topics-low-content-aggregate"]
        assert alerts[0]["type"] == "warning"

    def test_sort_alerts(self):
        alerts = [
            {"id": "info", "type": "info", "createdAt": NOW.isoformat()},
            {"id": "old-error", "type": "error", "createdAt": (NOW - timedelta(days=1)).isoformat()},
            {"id": "warning", "type": "warning", "createdAt": NOW.isoformat()},
            {"id": "new-error", "type": "error", "createdAt": NOW.isoformat()},
        ]
        assert [a["id"] for a in sort_alerts(alerts)] == ["new-error", "old-error", "warning", "info"]


class TestDashboardService:

    def test_stats(self, fake_db, catalog):
        fake_db.add("users", {"email": "a@example.com", "role": "student"})
        fake_db.add("users", {"email": "b@example.com", "role": "admin"})
        fake_db.add("questions", {"subject_id": catalog["subject"]["id"], "status": "published"})
        fake_db.add("questions", {"subject_id": catalog["subject"]["id"], "status": "draft"})

        result = DashboardService.get_stats()
        stats = result["stats"]

        assert stats["users"]["total"] == 2
        assert stats["users"]["byRole"]["admin"] == 1
        assert stats["users"]["byRole"]["student"] == 1
        assert stats["content"]["totalTopics"] == 2
        assert stats["content"]["publishedQuestions"] == 1
        assert stats["content"]["draftQuestions"] == 1
        assert len(result["recentUsers"]) == 2

    def test_alerts(self, fake_db, catalog):
        fake_db.add("import_reports", {"filename": "bad.csv", "status": "failed"})
        stale = (datetime.now(timezone.utc) - timedelta(hours=3)).isoformat()
        fake_db.add("import_reports", {"filename": "slow.csv", "status": "processing", "started_at": stale})
        fake_db.add("questions", {"status": "published", "explanation": None})
        for _ in range(11):
            fake_db.add("questions", {"status": "draft", "explanation": "x"})

        alerts = DashboardService.get_alerts()
        ids = [a["id"] for a in alerts]

        assert [a["type"] for a in alerts[:2]] == ["error", "error"]
        assert "questions-missing-explanation" in ids
        assert "questions-pending-review" in ids
        # both catalogue topics have no questions
        assert f"topic-low-content-{catalog['algebra']['id']}" in ids
