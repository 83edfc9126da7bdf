# =============================================================================
# core/services/achievement_service.py - Achievement Awarding
# =============================================================================
# Achievements are catalogue rows (achievements) with a requirement:
# - questions_answered: lifetime answers >= requirement_value
# - streak: current streak >= requirement_value
# - accuracy: lifetime accuracy >= requirement_value, with at least
#   ACCURACY_MIN_QUESTIONS answers
# Earned ones live in user_achievements, unique per (user, achievement).
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from core.services.goal_service import ACCURACY_MIN_QUESTIONS
from core.services.notification_service import NotificationService
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


def requirement_met(achievement: dict[str, Any], stats: dict[str, Any]) -> bool:
    """Whether stats (ProgressService.get_stats shape) satisfy an achievement."""
    required = achievement.get("requirement_value") or 0
    answered = stats.get("questionsAnswered") or 0
    kind = achievement.get("requirement_type")

    if kind == "questions_answered":
        return answered >= required
    if kind == "streak":
        return (stats.get("currentStreak") or 0) >= required
    if kind == "accuracy":
        return answered >= ACCURACY_MIN_QUESTIONS and (stats.get("accuracy") or 0) >= required
    return False


class AchievementService:

    @staticmethod
    def list_achievements() -> list[dict[str, Any]]:
        client = SupabaseClient.get_client()
        response = client.table("achievements").select("*").order("requirement_value").execute()
        return response.data or []

    @staticmethod
    def list_user_achievements(user_id: UUID | str) -> list[dict[str, Any]]:
        """Earned achievements, newest first, each joined with its catalogue row."""
        client = SupabaseClient.get_client()
        response = (
            client.table("user_achievements")
            .select("*, achievement:achievements(*)")
            .eq("user_id", str(user_id))
            .order("earned_at", desc=True)
            .execute()
        )
        return response.data or []

    @staticmethod
    def award(user_id: UUID | str, achievement: dict[str, Any]) -> dict[str, Any]:
        client = SupabaseClient.get_client()
        response = client.table("user_achievements").upsert(
            {"user_id": str(user_id), "achievement_id": str(achievement["id"])},
            on_conflict="user_id,achievement_id",
        ).execute()
        logger.info(f"Awarded achievement '{achievement.get('name')}' to user {user_id}")
        NotificationService.notify_achievement_unlocked(user_id, achievement)
        return response.data[0] if response.data else {}

    @staticmethod
    def check_and_award(user_id: UUID | str, stats: dict[str, Any]) -> list[dict[str, Any]]:
        """
        Award every achievement the stats now satisfy and the user lacks.

        Returns:
            The achievements awarded by this call
        """
        earned = {str(ua["achievement_id"]) for ua in AchievementService.list_user_achievements(user_id)}
        awarded = []
        for achievement in AchievementService.list_achievements():
            if str(achievement["id"]) in earned or not requirement_met(achievement, stats):
                continue
            AchievementService.award(user_id, achievement)
            awarded.append(achievement)
        return awarded
