# =============================================================================
# core/models/notification.py - Notification Schemas
# =============================================================================

from enum import Enum


class NotificationType(str, Enum):
    """Values accepted by notifications.type."""
    ACHIEVEMENT_UNLOCKED = "achievement_unlocked"
    STREAK_MILESTONE = "streak_milestone"
    SESSION_COMPLETED = "session_completed"
    GOAL_ACHIEVED = "goal_achieved"
    DAILY_REMINDER = "daily_reminder"
    NEW_CONTENT = "new_content"
    STUDENT_PROGRESS = "student_progress"
    STUDENT_ACHIEVEMENT = "student_achievement"
    NEW_SIGNUP = "new_signup"
    IMPORT_COMPLETED = "import_completed"
    SYSTEM_ALERT = "system_alert"
    CONTENT_REVIEW = "content_review"
