# =============================================================================
# core/services/dashboard_service.py - Admin Dashboard
# =============================================================================
# Headline numbers and system alerts for the admin portal home page.
# =============================================================================

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from app.auth.models import UserRole
from core.models.import_report import ImportStatus
from core.models.question import QuestionStatus
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

RECENT_SESSION_SCAN = 1000
RECENT_ITEMS = 10

LOW_CONTENT_THRESHOLD = 5
LOW_CONTENT_AGGREGATE_AFTER = 3
DRAFT_ALERT_THRESHOLD = 10
FAILED_IMPORT_ALERTS = 5
STUCK_IMPORT_ALERTS = 3
STUCK_IMPORT_AGE = timedelta(hours=1)

SEVERITY_ORDER = {"error": 0, "warning": 1, "info": 2}


def _plural(count: int) -> str:
    return "" if count == 1 else "s"


def session_activity(sessions: list[dict[str, Any]], today_start: datetime) -> dict[str, Any]:
    """Totals over recent sessions; sessionsToday counts starts since today_start."""
    answered = sum(s.get("questions_answered") or 0 for s in sessions)
    correct = sum(s.get("correct_answers") or 0 for s in sessions)
    today = 0
    for session in sessions:
        started = session.get("started_at")
        if started and _parse_time(started) >= today_start:
            today += 1
    return {
        "totalSessions": len(sessions),
        "totalAnswered": answered,
        "averageAccuracy": round(correct / answered * 100) if answered else 0,
        "sessionsToday": today,
    }


def low_content_alerts(topics: list[dict[str, Any]], now_iso: str) -> list[dict[str, Any]]:
    """
    One aggregate warning for many thin topics, otherwise an info alert per topic.
    """
    if not topics:
        return []
    if len(topics) > LOW_CONTENT_AGGREGATE_AFTER:
        return [{
            "id": "topics-low-content-aggregate",
            "type": "warning",
            "message": f"{len(topics)} topics have fewer than {LOW_CONTENT_THRESHOLD} questions",
            "action": "/admin/content/topics?filter=low-content",
            "createdAt": now_iso,
        }]
    alerts = []
    for topic in topics:
        count = topic.get("total_questions") or 0
        alerts.append({
            "id": f"topic-low-content-{topic['id']}",
            "type": "info",
            "message": f"Topic \"{topic.get('name')}\" has only {count} question{_plural(count)}",
            "action": f"/admin/questions?topic={topic['id']}",
            "createdAt": now_iso,
        })
    return alerts


def sort_alerts(alerts: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Errors first, then warnings, then info; newest first within a severity."""
    newest_first = sorted(alerts, key=lambda a: _parse_time(a.get("createdAt")), reverse=True)
    return sorted(newest_first, key=lambda a: SEVERITY_ORDER.get(a.get("type"), len(SEVERITY_ORDER)))


def _parse_time(value: str | None) -> datetime:
    if not value:
        return datetime.min.replace(tzinfo=timezone.utc)
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class DashboardService:
    """Service for the admin dashboard."""

    @staticmethod
    def get_stats() -> dict[str, Any]:
        client = SupabaseClient.get_client()
        now = datetime.now(timezone.utc)
        week_ago = now - timedelta(days=7)
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)

        def count(table: str, build=None) -> int:
            query = client.table(table).select("id", count="exact")
            if build:
                query = build(query)
            return query.limit(1).execute().count or 0

        by_role = {role.value: SupabaseClient.count_rows("users", role=role.value) for role in UserRole}

        sessions = (
            client.table("sessions")
            .select("id, questions_answered, correct_answers, started_at")
            .order("started_at", desc=True)
            .limit(RECENT_SESSION_SCAN)
            .execute()
        ).data or []

        recent_imports = (
            client.table("import_reports")
            .select("id, filename, status, total_rows, successful_rows, created_at")
            .order("created_at", desc=True)
            .limit(RECENT_ITEMS)
            .execute()
        ).data or []

        recent_users = (
            client.table("users")
            .select("id, full_name, email, role, created_at")
            .order("created_at", desc=True)
            .limit(RECENT_ITEMS)
            .execute()
        ).data or []

        return {
            "stats": {
                "users": {
                    "total": count("users"),
                    "active": count("users", lambda q: q.gte("last_active_date", week_ago.isoformat())),
                    "newThisMonth": count("users", lambda q: q.gte("created_at", month_start.isoformat())),
                    "byRole": by_role,
                },
                "content": {
                    "totalSubjects": count("subjects"),
                    "totalTopics": count("topics"),
                    "totalQuestions": count("questions"),
                    "publishedQuestions": SupabaseClient.count_rows("questions", status=QuestionStatus.PUBLISHED.value),
                    "draftQuestions": SupabaseClient.count_rows("questions", status=QuestionStatus.DRAFT.value),
                },
                "activity": session_activity(sessions, today_start),
            },
            "recentImports": recent_imports,
            "recentUsers": recent_users,
        }

    @staticmethod
    def get_alerts() -> list[dict[str, Any]]:
        """
        Content and import problems that need an admin's attention.
        """
        client = SupabaseClient.get_client()
        now = datetime.now(timezone.utc)
        now_iso = now.isoformat()
        alerts: list[dict[str, Any]] = []

        failed_imports = (
            client.table("import_reports")
            .select("id, filename, created_at")
            .eq("status", ImportStatus.FAILED.value)
            .order("created_at", desc=True)
            .limit(FAILED_IMPORT_ALERTS)
            .execute()
        ).data or []
        for report in failed_imports:
            alerts.append({
                "id": f"import-failed-{report['id']}",
                "type": "error",
                "message": f"Import \"{report.get('filename')}\" failed",
                "action": "/admin/import/history",
                "createdAt": report.get("created_at"),
            })

        missing_explanations = (
            client.table("questions")
            .select("id", count="exact")
            .eq("status", QuestionStatus.PUBLISHED.value)
            .is_("explanation", "null")
            .limit(1)
            .execute()
        ).count or 0
        if missing_explanations:
            alerts.append({
                "id": "questions-missing-explanation",
                "type": "warning",
                "message": (
                    f"{missing_explanations} published question{_plural(missing_explanations)} "
                    "missing explanations"
                ),
                "action": "/admin/questions?filter=missing-explanation",
                "createdAt": now_iso,
            })

        thin_topics = (
            client.table("topics")
            .select("id, name, total_questions, subject_id")
            .lt("total_questions", LOW_CONTENT_THRESHOLD)
            .eq("status", "active")
            .execute()
        ).data or []
        alerts.extend(low_content_alerts(thin_topics, now_iso))

        drafts = SupabaseClient.count_rows("questions", status=QuestionStatus.DRAFT.value)
        if drafts > DRAFT_ALERT_THRESHOLD:
            alerts.append({
                "id": "questions-pending-review",
                "type": "info",
                "message": f"{drafts} questions pending review in draft status",
                "action": "/admin/questions?status=draft",
                "createdAt": now_iso,
            })

        stuck = (
            client.table("import_reports")
            .select("id, filename, started_at")
            .eq("status", ImportStatus.PROCESSING.value)
            .lt("started_at", (now - STUCK_IMPORT_AGE).isoformat())
            .limit(STUCK_IMPORT_ALERTS)
            .execute()
        ).data or []
        for report in stuck:
            alerts.append({
                "id": f"import-stuck-{report['id']}",
                "type": "error",
                "message": f"Import \"{report.get('filename')}\" has been processing for over an hour",
                "action": "/admin/import/history",
                "createdAt": report.get("started_at"),
            })

        logger.debug(f"Dashboard alerts: {len(alerts)}")
        return sort_alerts(alerts)
