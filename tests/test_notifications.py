# =============================================================================
# tests/test_notifications.py - Notification Service Tests
# =============================================================================

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from app.auth.models import UserRole
from app.exceptions import NotificationNotFoundError
from core.models.notification import NotificationType
from core.services.notification_service import NotificationService, start_of_today


def yesterday() -> str:
    return (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()


class TestReading:

    def test_list_newest_first_and_unread_filter(self, fake_db, student):
        user_id = str(student.id)
        fake_db.add("notifications", {"user_id": user_id, "read": True, "created_at": "2024-01-01T00:00:00+00:00"})
        fake_db.add("notifications", {"user_id": user_id, "read": False, "created_at": "2024-01-02T00:00:00+00:00"})
        fake_db.add("notifications", {"user_id": str(uuid4()), "read": False})

        everything = NotificationService.list_notifications(student.id)
        unread = NotificationService.list_notifications(student.id, unread_only=True)

        assert [n["created_at"][:10] for n in everything] == ["2024-01-02", "2024-01-01"]
        assert len(unread) == 1
        assert NotificationService.unread_count(student.id) == 1

    def test_mark_read_only_own(self, fake_db, student):
        mine = fake_db.add("notifications", {"user_id": str(student.id), "read": False})
        theirs = fake_db.add("notifications", {"user_id": str(uuid4()), "read": False})

        updated = NotificationService.mark_read(mine["id"], student.id)
        assert updated["read"] is True
        assert updated["read_at"]

        with pytest.raises(NotificationNotFoundError):
            NotificationService.mark_read(theirs["id"], student.id)

    def test_mark_all_read(self, fake_db, student):
        for _ in range(3):
            fake_db.add("notifications", {"user_id": str(student.id), "read": False})

        assert NotificationService.mark_all_read(student.id) == 3
        assert NotificationService.unread_count(student.id) == 0


class TestEvents:

    @pytest.mark.parametrize("score,title", [(92.5, "🌟 Excellent Work!"), (60, "👍 Good Job!")])
    def test_session_completed(self, fake_db, student, score, title):
        created = NotificationService.notify_session_completed(
            student.id, {"id": "s1", "score_percentage": score, "mode": "test"}
        )
        assert created["title"] == title
        assert created["type"] == "session_completed"
        assert "test session" in created["message"]

    def test_low_score_not_announced(self, fake_db, student):
        assert NotificationService.notify_session_completed(student.id, {"score_percentage": 59}) is None
        assert fake_db.rows("notifications") == []

    def test_streak_milestones_only(self, fake_db, student):
        assert NotificationService.notify_streak_milestone(student.id, 6) is None
        created = NotificationService.notify_streak_milestone(student.id, 7)
        assert created["title"] == "🔥 7-Day Streak!"

    def test_failures_are_swallowed(self, fake_db, student):
        fake_db.failing_tables.add("notifications")
        assert NotificationService.notify_streak_milestone(student.id, 30) is None

    def test_role_broadcast(self, fake_db):
        fake_db.add("users", {"role": "admin", "status": "active"})
        fake_db.add("users", {"role": "admin", "status": "suspended"})
        fake_db.add("users", {"role": "student", "status": "active"})

        sent = NotificationService.create_notification_for_role(
            UserRole.ADMIN, NotificationType.SYSTEM_ALERT, "Heads up", "Storage is nearly full"
        )

        assert sent == 1
        assert fake_db.rows("notifications")[0]["type"] == "system_alert"


class TestDailyReminders:

    def test_skips_students_who_practised_or_were_reminded(self, fake_db):
        idle = fake_db.add("users", {"role": "student", "status": "active"})
        practised = fake_db.add("users", {"role": "student", "status": "active"})
        reminded = fake_db.add("users", {"role": "student", "status": "active"})
        stale = fake_db.add("users", {"role": "student", "status": "active"})
        fake_db.add("users", {"role": "tutor", "status": "active"})

        fake_db.add("sessions", {
            "user_id": practised["id"], "status": "completed",
            "completed_at": datetime.now(timezone.utc).isoformat(),
        })
        fake_db.add("notifications", {"user_id": reminded["id"], "type": "daily_reminder"})
        fake_db.add("sessions", {"user_id": stale["id"], "status": "completed", "completed_at": yesterday()})

        result = NotificationService.send_daily_reminders()

        assert result == {"sent": 2, "skipped": 2, "total": 4, "errors": []}
        recipients = {
            n["user_id"] for n in fake_db.rows("notifications") if n.get("title") == "📚 Time to Practice!"
        }
        assert recipients == {idle["id"], stale["id"]}

    def test_start_of_today_is_midnight_utc(self):
        assert start_of_today().endswith("T00:00:00+00:00")
