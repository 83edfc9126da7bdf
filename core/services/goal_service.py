# =============================================================================
# core/services/goal_service.py - Student Learning Goals
# =============================================================================
# One goal per type per student, stored in user_goals.
#
# Counting goals (study time, daily/weekly questions) accumulate as
# sessions finish and restart when their period ends. Accuracy and streak
# goals track the student's running stats instead. A goal that reaches its
# target is marked achieved once and triggers one goal_achieved
# notification.
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from core.models.goal import GoalSet, GoalType
from core.services.notification_service import NotificationService
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

# Accuracy goals only count once the student has this many answers
ACCURACY_MIN_QUESTIONS = 20


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _period_fields(goal_type: GoalType, start: datetime) -> dict[str, Any]:
    period = goal_type.period
    return {
        "period_start": start.isoformat(),
        "period_end": (start + period).isoformat() if period else None,
    }


def period_expired(goal: dict[str, Any], now: datetime | None = None) -> bool:
    """True when a periodic goal's period_end has passed."""
    period_end = goal.get("period_end")
    if not period_end:
        return False
    end = datetime.fromisoformat(str(period_end).replace("Z", "+00:00"))
    return end <= (now or _now())


class GoalService:

    @staticmethod
    def list_goals(user_id: UUID | str) -> list[dict[str, Any]]:
        client = SupabaseClient.get_client()
        response = (
            client.table("user_goals")
            .select("*")
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
            .execute()
        )
        return response.data or []

    @staticmethod
    def get_goal(user_id: UUID | str, goal_type: GoalType) -> dict[str, Any] | None:
        client = SupabaseClient.get_client()
        response = (
            client.table("user_goals")
            .select("*")
            .eq("user_id", str(user_id))
            .eq("goal_type", goal_type.value)
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    @staticmethod
    def set_goal(user_id: UUID | str, payload: GoalSet) -> dict[str, Any]:
        """
        Create the goal, or change its target.

        Changing the target resets progress and starts a new period.
        """
        now = _now()
        values = {
            "target_value": payload.target_value,
            "current_value": 0,
            "achieved": False,
            "achieved_at": None,
            "updated_at": now.isoformat(),
            **_period_fields(payload.goal_type, now),
        }

        client = SupabaseClient.get_client()
        existing = GoalService.get_goal(user_id, payload.goal_type)
        if existing:
            response = client.table("user_goals").update(values).eq("id", existing["id"]).execute()
            goal = response.data[0] if response.data else {**existing, **values}
        else:
            response = client.table("user_goals").insert({
                "user_id": str(user_id),
                "goal_type": payload.goal_type.value,
                **values,
            }).execute()
            goal = response.data[0]

        logger.info(f"User {user_id} set {payload.goal_type.value} goal to {payload.target_value}")
        return goal

    # -------------------------------------------------------------------------
    # Progress
    # -------------------------------------------------------------------------

    @staticmethod
    def _save_progress(goal: dict[str, Any], value: int, extra: dict[str, Any] | None = None) -> tuple[dict[str, Any], bool]:
        """Write current_value; returns (goal, newly_achieved)."""
        now = _now()
        update: dict[str, Any] = {"current_value": value, "updated_at": now.isoformat(), **(extra or {})}
        newly_achieved = not update.get("achieved", goal.get("achieved")) and value >= goal["target_value"]
        if newly_achieved:
            update["achieved"] = True
            update["achieved_at"] = now.isoformat()

        client = SupabaseClient.get_client()
        response = client.table("user_goals").update(update).eq("id", goal["id"]).execute()
        return (response.data[0] if response.data else {**goal, **update}), newly_achieved

    @staticmethod
    def add_progress(user_id: UUID | str, goal_type: GoalType, amount: int) -> tuple[dict[str, Any] | None, bool]:
        """
        Add to a counting goal.

        An expired period is restarted before the amount is added. Achieved
        goals in a running period are left alone.

        Returns:
            (goal or None if the user has no such goal, newly_achieved)
        """
        goal = GoalService.get_goal(user_id, goal_type)
        if not goal:
            return None, False

        extra: dict[str, Any] = {}
        current = goal.get("current_value") or 0
        if period_expired(goal):
            extra = {"achieved": False, "achieved_at": None, **_period_fields(goal_type, _now())}
            current = 0
            logger.debug(f"Restarted {goal_type.value} goal period for user {user_id}")
        elif goal.get("achieved"):
            return goal, False

        return GoalService._save_progress(goal, current + amount, extra)

    @staticmethod
    def track_value(user_id: UUID | str, goal_type: GoalType, value: int) -> tuple[dict[str, Any] | None, bool]:
        """Set a stat-based goal (accuracy, streak) to the latest value."""
        goal = GoalService.get_goal(user_id, goal_type)
        if not goal or goal.get("achieved"):
            return goal, False
        return GoalService._save_progress(goal, value)

    @staticmethod
    def record_session(
        user_id: UUID | str,
        questions_answered: int,
        study_minutes: int,
        stats: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Apply a finished session to every goal and notify achievements.

        Args:
            stats: Output of ProgressService.get_stats after the session;
                accuracy and streak goals are skipped without it

        Returns:
            Goals achieved by this session
        """
        updates: list[tuple[GoalType, str, int]] = [
            (GoalType.WEEKLY_QUESTIONS, "add", questions_answered),
            (GoalType.DAILY_QUESTIONS, "add", questions_answered),
        ]
        if study_minutes > 0:
            updates.append((GoalType.WEEKLY_STUDY_TIME, "add", study_minutes))
        if stats:
            updates.append((GoalType.STREAK_TARGET, "track", stats.get("currentStreak") or 0))
            if (stats.get("questionsAnswered") or 0) >= ACCURACY_MIN_QUESTIONS:
                updates.append((GoalType.ACCURACY_TARGET, "track", int(stats.get("accuracy") or 0)))

        achieved: list[dict[str, Any]] = []
        for goal_type, how, value in updates:
            if how == "add":
                goal, newly_achieved = GoalService.add_progress(user_id, goal_type, value)
            else:
                goal, newly_achieved = GoalService.track_value(user_id, goal_type, value)
            if newly_achieved:
                achieved.append(goal)
                NotificationService.notify_goal_achieved(user_id, goal)

        if achieved:
            logger.info(f"User {user_id} achieved goals: {[g['goal_type'] for g in achieved]}")
        return achieved
