# =============================================================================
# core/services/notification_service.py - In-App Notifications
# =============================================================================
# Creates and serves rows of the notifications table:
# - Reading: list, unread count, mark read (own only), mark all read
# - Writing: create_notification, create_notification_for_role
# - Event helpers: session completed, streak milestone, goal achieved,
#   achievement unlocked, import completed
# - Daily reminders for students who haven't practised today
#
# Event notifications are best-effort: the action that triggered them
# succeeds even if the insert fails.
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from app.auth.models import UserRole, UserStatus
from app.exceptions import NotificationNotFoundError
from core.models.notification import NotificationType
from core.models.session import SessionStatus
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

STREAK_MILESTONES = (7, 14, 30, 50, 100)

EXCELLENT_SCORE = 80
GOOD_SCORE = 60

DAILY_REMINDER_TITLE = "📚 Time to Practice!"
DAILY_REMINDER_MESSAGE = "Don't forget to practice today! Even 10 minutes can make a difference."


def start_of_today() -> str:
    """Midnight UTC today, as an ISO timestamp."""
    now = datetime.now(timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0).isoformat()


class NotificationService:
    """Service for notification operations."""

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    @staticmethod
    def list_notifications(
        user_id: UUID | str,
        limit: int = 50,
        unread_only: bool = False,
    ) -> list[dict[str, Any]]:
        client = SupabaseClient.get_client()
        query = (
            client.table("notifications")
            .select("*")
            .eq("user_id", str(user_id))
        )
        if unread_only:
            query = query.eq("read", False)
        response = query.order("created_at", desc=True).limit(limit).execute()
        return [{**n, "read_at": n.get("read_at")} for n in response.data or []]

    @staticmethod
    def unread_count(user_id: UUID | str) -> int:
        return SupabaseClient.count_rows("notifications", user_id=user_id, read=False)

    @staticmethod
    def mark_read(notification_id: UUID | str, user_id: UUID | str) -> dict[str, Any]:
        """
        Mark one of the caller's notifications as read.

        Raises:
            NotificationNotFoundError: Unknown id or someone else's notification
        """
        notification = SupabaseClient.fetch_by_id("notifications", notification_id)
        if not notification or str(notification.get("user_id")) != str(user_id):
            raise NotificationNotFoundError(str(notification_id))

        client = SupabaseClient.get_client()
        update = {"read": True, "read_at": datetime.now(timezone.utc).isoformat()}
        response = (
            client.table("notifications")
            .update(update)
            .eq("id", str(notification_id))
            .execute()
        )
        return response.data[0] if response.data else {**notification, **update}

    @staticmethod
    def mark_all_read(user_id: UUID | str) -> int:
        """Mark every unread notification of a user as read. Returns how many."""
        client = SupabaseClient.get_client()
        response = (
            client.table("notifications")
            .update({"read": True, "read_at": datetime.now(timezone.utc).isoformat()})
            .eq("user_id", str(user_id))
            .eq("read", False)
            .execute()
        )
        count = len(response.data or [])
        logger.info(f"Marked {count} notifications read for user {user_id}")
        return count

    # -------------------------------------------------------------------------
    # Writing
    # -------------------------------------------------------------------------

    @staticmethod
    def create_notification(
        user_id: UUID | str,
        notification_type: NotificationType,
        title: str,
        message: str,
        data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        client = SupabaseClient.get_client()
        response = client.table("notifications").insert({
            "user_id": str(user_id),
            "type": notification_type.value,
            "title": title,
            "message": message,
            "data": data or None,
        }).execute()
        logger.debug(f"Created {notification_type.value} notification for user {user_id}")
        return response.data[0]

    @staticmethod
    def create_notification_for_role(
        role: UserRole,
        notification_type: NotificationType,
        title: str,
        message: str,
        data: dict[str, Any] | None = None,
    ) -> int:
        """Notify every active user with a role. Returns how many were notified."""
        client = SupabaseClient.get_client()
        users = (
            client.table("users")
            .select("id")
            .eq("role", role.value)
            .eq("status", UserStatus.ACTIVE.value)
            .execute()
        ).data or []
        if not users:
            return 0

        client.table("notifications").insert([
            {
                "user_id": user["id"],
                "type": notification_type.value,
                "title": title,
                "message": message,
                "data": data or None,
            }
            for user in users
        ]).execute()
        logger.info(f"Sent {notification_type.value} notification to {len(users)} {role.value} users")
        return len(users)

    @staticmethod
    def _safe_create(user_id: UUID | str, *args: Any, **kwargs: Any) -> dict[str, Any] | None:
        try:
            return NotificationService.create_notification(user_id, *args, **kwargs)
        except Exception as e:
            logger.error(f"Failed to create notification for user {user_id}: {e}")
            return None

    # -------------------------------------------------------------------------
    # Event Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def notify_session_completed(user_id: UUID | str, session: dict[str, Any]) -> dict[str, Any] | None:
        """Congratulate scores of 60% and above."""
        score = session.get("score_percentage") or 0
        mode = session.get("mode", "practice")
        data = {"session_id": session.get("id"), "score_percentage": score}

        if score >= EXCELLENT_SCORE:
            return NotificationService._safe_create(
                user_id, NotificationType.SESSION_COMPLETED, "🌟 Excellent Work!",
                f"You scored {round(score)}% on your {mode} session. Outstanding performance!",
                data,
            )
        if score >= GOOD_SCORE:
            return NotificationService._safe_create(
                user_id, NotificationType.SESSION_COMPLETED, "👍 Good Job!",
                f"You scored {round(score)}% on your {mode} session. Keep practicing!",
                data,
            )
        return None

    @staticmethod
    def notify_streak_milestone(user_id: UUID | str, streak_count: int) -> dict[str, Any] | None:
        if streak_count not in STREAK_MILESTONES:
            return None
        return NotificationService._safe_create(
            user_id, NotificationType.STREAK_MILESTONE, f"🔥 {streak_count}-Day Streak!",
            f"Amazing! You've maintained a {streak_count}-day learning streak. Keep it up!",
            {"streak_count": streak_count},
        )

    @staticmethod
    def notify_goal_achieved(user_id: UUID | str, goal: dict[str, Any]) -> dict[str, Any] | None:
        """Message depends on the goal type; value is the goal's current_value."""
        goal_type = goal.get("goal_type")
        value = goal.get("current_value") or 0
        if goal_type == "weekly_study_time":
            message = f"🎯 Weekly Goal Achieved! You've studied {value // 60} hours this week!"
        elif goal_type in ("daily_questions", "weekly_questions"):
            message = f"🎯 Goal Achieved! You've answered {value} questions!"
        elif goal_type == "accuracy_target":
            message = f"🎯 Accuracy Goal Achieved! You've reached {value}% accuracy!"
        elif goal_type == "streak_target":
            message = f"🎯 Streak Goal Achieved! You've practised {value} days in a row!"
        else:
            return None
        return NotificationService._safe_create(
            user_id, NotificationType.GOAL_ACHIEVED, "Goal Achieved!", message,
            {"goal_type": goal_type, "achieved_value": value},
        )

    @staticmethod
    def notify_achievement_unlocked(user_id: UUID | str, achievement: dict[str, Any]) -> dict[str, Any] | None:
        return NotificationService._safe_create(
            user_id, NotificationType.ACHIEVEMENT_UNLOCKED, "🎉 Achievement Unlocked!",
            f'You\'ve unlocked "{achievement["name"]}"! {achievement.get("description") or ""}'.rstrip(),
            {"achievement_id": achievement["id"]},
        )

    @staticmethod
    def notify_import_completed(admin_id: UUID | str, filename: str, successful: int, failed: int) -> dict[str, Any] | None:
        return NotificationService._safe_create(
            admin_id, NotificationType.IMPORT_COMPLETED, "Import Completed",
            f'Import "{filename}" completed: {successful} successful, {failed} failed',
            {"filename": filename, "successful_rows": successful, "failed_rows": failed},
        )

    # -------------------------------------------------------------------------
    # Daily Reminders
    # -------------------------------------------------------------------------

    @staticmethod
    def send_daily_reminders() -> dict[str, Any]:
        """
        Remind active students who haven't completed a session today.

        Students already reminded today are skipped.

        Returns:
            {"sent", "skipped", "total", "errors"}
        """
        client = SupabaseClient.get_client()
        today = start_of_today()

        students = (
            client.table("users")
            .select("id")
            .eq("status", UserStatus.ACTIVE.value)
            .eq("role", UserRole.STUDENT.value)
            .execute()
        ).data or []

        sent = 0
        skipped = 0
        errors: list[str] = []

        for student in students:
            user_id = student["id"]
            try:
                practised = (
                    client.table("sessions")
                    .select("id")
                    .eq("user_id", user_id)
                    .eq("status", SessionStatus.COMPLETED.value)
                    .gte("completed_at", today)
                    .limit(1)
                    .execute()
                ).data
                reminded = (
                    client.table("notifications")
                    .select("id")
                    .eq("user_id", user_id)
                    .eq("type", NotificationType.DAILY_REMINDER.value)
                    .gte("created_at", today)
                    .limit(1)
                    .execute()
                ).data

                if practised or reminded:
                    skipped += 1
                    continue

                NotificationService.create_notification(
                    user_id, NotificationType.DAILY_REMINDER,
                    DAILY_REMINDER_TITLE, DAILY_REMINDER_MESSAGE,
                )
                sent += 1
            except Exception as e:
                logger.error(f"Daily reminder failed for user {user_id}: {e}")
                errors.append(f"User {user_id}: {e}")

        logger.info(f"Daily reminders: {sent} sent, {skipped} skipped, {len(errors)} errors")
        return {"sent": sent, "skipped": skipped, "total": len(students), "errors": errors}
