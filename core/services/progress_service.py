# =============================================================================
# core/services/progress_service.py - Student Stats and Analytics
# =============================================================================
# Reads and updates the learning statistics shown on the student
# dashboard:
# - users: running totals, streak, last active date, XP
# - user_progress: per-topic attempted/correct/accuracy
# - Analytics over a period: daily activity, subject performance,
#   strongest and weakest topics
# =============================================================================

import logging
from collections import OrderedDict
from datetime import date, datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from app.exceptions import BadRequestError, UserNotFoundError
from core.services.notification_service import NotificationService
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

# Days covered by each analytics period; "All" charts the last 90 days
PERIOD_DAYS = {"7D": 7, "30D": 30, "90D": 90, "All": 90}

# Session rows scanned for analytics
SESSION_SCAN_LIMIT = {"7D": 500, "30D": 500, "90D": 500, "All": 1000}

STRENGTH_COUNT = 5

GRADE_BANDS = (
    (90, "Excellent"),
    (80, "Very Good"),
    (70, "Good"),
    (60, "Fair"),
    (50, "Pass"),
)


def grade_label(percentage: float) -> str:
    """
    Label for a score percentage.

    Example:
        grade_label(85)  # "Very Good"
    """
    for threshold, label in GRADE_BANDS:
        if percentage >= threshold:
            return label
    return "Needs Improvement"


def score_percentage(correct: int, total: int) -> float:
    """correct / total * 100, or 0 for an empty session."""
    return (correct / total) * 100 if total > 0 else 0.0


def accuracy(correct: int, attempted: int) -> float:
    return round(correct / attempted * 100, 2) if attempted > 0 else 0.0


def activity_dates(days: int, today: date | None = None) -> list[str]:
    """ISO dates for the last `days` days, oldest first, ending today."""
    today = today or datetime.now(timezone.utc).date()
    return [(today - timedelta(days=days - 1 - i)).isoformat() for i in range(days)]


def daily_activity(sessions: list[dict[str, Any]], dates: list[str]) -> list[dict[str, Any]]:
    """Questions answered per day, from each session's started_at date."""
    totals: "OrderedDict[str, int]" = OrderedDict((d, 0) for d in dates)
    for session in sessions:
        started = str(session.get("started_at") or "")[:10]
        if started in totals:
            totals[started] += session.get("questions_answered") or 0
    return [{"date": d, "questionsAnswered": n} for d, n in totals.items()]


def subject_performance(progress: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Aggregate per-topic progress rows into per-subject accuracy."""
    by_subject: "OrderedDict[str, dict[str, Any]]" = OrderedDict()
    for row in progress:
        subject_id = row.get("subject_id")
        entry = by_subject.setdefault(subject_id, {
            "subjectId": subject_id,
            "questionsAttempted": 0,
            "questionsCorrect": 0,
            "accuracy": 0.0,
        })
        entry["questionsAttempted"] += row.get("questions_attempted") or 0
        entry["questionsCorrect"] += row.get("questions_correct") or 0
        entry["accuracy"] = accuracy(entry["questionsCorrect"], entry["questionsAttempted"])
    return list(by_subject.values())


def strengths_and_weaknesses(progress: list[dict[str, Any]], count: int = STRENGTH_COUNT) -> tuple[list, list]:
    """
    Topic ids with the highest and lowest accuracy.

    Rows without an accuracy value are ignored.
    """
    rated = [p for p in progress if p.get("accuracy_percentage") is not None]
    rated.sort(key=lambda p: p["accuracy_percentage"], reverse=True)
    strengths = [p["topic_id"] for p in rated[:count]]
    weaknesses = [p["topic_id"] for p in reversed(rated[-count:])] if rated else []
    return strengths, weaknesses


class ProgressService:
    """Service for student statistics and analytics."""

    @staticmethod
    def _profile(user_id: UUID | str) -> dict[str, Any]:
        profile = SupabaseClient.fetch_by_id("users", user_id)
        if not profile:
            raise UserNotFoundError(str(user_id))
        return profile

    @staticmethod
    def get_stats(user_id: UUID | str) -> dict[str, Any]:
        user = ProgressService._profile(user_id)
        answered = user.get("total_questions_answered") or 0
        correct = user.get("total_correct_answers") or 0
        return {
            "questionsAnswered": answered,
            "correctAnswers": correct,
            "accuracy": score_percentage(correct, answered),
            "studyTimeMinutes": user.get("total_study_time_minutes") or 0,
            "currentStreak": user.get("streak_count") or 0,
            "lastActiveDate": user.get("last_active_date"),
            "xpPoints": user.get("xp_points") or 0,
        }

    @staticmethod
    def get_progress(user_id: UUID | str) -> list[dict[str, Any]]:
        client = SupabaseClient.get_client()
        response = client.table("user_progress").select("*").eq("user_id", str(user_id)).execute()
        return response.data or []

    @staticmethod
    def get_analytics(user_id: UUID | str, period: str = "7D") -> dict[str, Any]:
        """
        Dashboard analytics for one period.

        Raises:
            BadRequestError: Unknown period
        """
        if period not in PERIOD_DAYS:
            raise BadRequestError(
                f"Invalid period: {period}",
                code="INVALID_PERIOD",
                suggestion=f"Use one of: {', '.join(PERIOD_DAYS)}",
            )

        stats = ProgressService.get_stats(user_id)
        progress = ProgressService.get_progress(user_id)

        client = SupabaseClient.get_client()
        query = (
            client.table("sessions")
            .select("id, started_at, questions_answered, status")
            .eq("user_id", str(user_id))
        )
        if period != "All":
            since = datetime.now(timezone.utc) - timedelta(days=PERIOD_DAYS[period])
            query = query.gte("started_at", since.isoformat())
        sessions = (
            query.order("started_at", desc=True).limit(SESSION_SCAN_LIMIT[period]).execute()
        ).data or []

        strengths, weaknesses = strengths_and_weaknesses(progress)
        return {
            "totalStats": stats,
            "weeklyActivity": daily_activity(sessions, activity_dates(PERIOD_DAYS[period])),
            "subjectPerformance": subject_performance(progress),
            "strengths": strengths,
            "weaknesses": weaknesses,
        }

    # -------------------------------------------------------------------------
    # Updates on session completion
    # -------------------------------------------------------------------------

    @staticmethod
    def record_session_totals(
        user_id: UUID | str,
        questions_answered: int,
        correct_answers: int,
        study_minutes: int,
    ) -> dict[str, Any]:
        """
        Add a finished session to the user's running totals.

        XP is awarded through the award_xp RPC when available.
        """
        user = ProgressService._profile(user_id)
        client = SupabaseClient.get_client()

        xp_earned = 0
        try:
            xp_earned = client.rpc("award_xp", {
                "user_uuid": str(user_id),
                "correct_answers_count": correct_answers,
                "is_daily_challenge": False,
            }).execute().data or 0
        except Exception as e:
            logger.warning(f"award_xp failed for user {user_id}: {e}")

        update = {
            "total_questions_answered": (user.get("total_questions_answered") or 0) + questions_answered,
            "total_correct_answers": (user.get("total_correct_answers") or 0) + correct_answers,
            "total_study_time_minutes": (user.get("total_study_time_minutes") or 0) + study_minutes,
        }
        response = client.table("users").update(update).eq("id", str(user_id)).execute()
        updated = response.data[0] if response.data else {**user, **update}
        return {"user": updated, "xpEarned": xp_earned}

    @staticmethod
    def update_streak(user_id: UUID | str) -> int:
        """
        Run the update_user_streak RPC and send milestone notifications.

        Returns:
            The user's streak after the update
        """
        client = SupabaseClient.get_client()
        client.rpc("update_user_streak", {"user_uuid": str(user_id)}).execute()

        profile = SupabaseClient.fetch_by_id("users", user_id, columns="id, streak_count")
        streak = (profile or {}).get("streak_count") or 0
        if streak > 0:
            NotificationService.notify_streak_milestone(user_id, streak)
        return streak

    @staticmethod
    def update_topic_progress(
        user_id: UUID | str,
        subject_id: str,
        topic_id: str,
        attempted: int,
        correct: int,
    ) -> dict[str, Any]:
        """Accumulate a session's results into the user's topic progress row."""
        client = SupabaseClient.get_client()
        existing = (
            client.table("user_progress")
            .select("questions_attempted, questions_correct")
            .eq("user_id", str(user_id))
            .eq("topic_id", str(topic_id))
            .limit(1)
            .execute()
        ).data
        previous = existing[0] if existing else {}

        total_attempted = (previous.get("questions_attempted") or 0) + attempted
        total_correct = (previous.get("questions_correct") or 0) + correct

        response = client.table("user_progress").upsert(
            {
                "user_id": str(user_id),
                "subject_id": str(subject_id),
                "topic_id": str(topic_id),
                "questions_attempted": total_attempted,
                "questions_correct": total_correct,
                "accuracy_percentage": accuracy(total_correct, total_attempted),
                "last_practiced_at": datetime.now(timezone.utc).isoformat(),
            },
            on_conflict="user_id,topic_id",
        ).execute()
        return response.data[0] if response.data else {}
