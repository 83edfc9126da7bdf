# =============================================================================
# core/services/profile_service.py - Self-Service Profile
# =============================================================================
# What a signed-in user reads and changes about themselves: their profile
# fields and the subjects they chose to focus on
# (user_subject_preferences).
# =============================================================================

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from app.exceptions import BadRequestError, SubjectNotFoundError, UserNotFoundError
from core.models.common import CatalogStatus
from core.models.profile import ProfileUpdate
from core.models.question import QuestionStatus
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = (
    "id, email, full_name, role, status, grade, avatar_url, streak_count, "
    "last_active_date, xp_points, total_questions_answered, total_correct_answers, "
    "total_study_time_minutes, created_at, updated_at"
)


class ProfileService:

    @staticmethod
    def get_profile(user_id: UUID | str) -> dict[str, Any]:
        profile = SupabaseClient.fetch_by_id("users", user_id, columns=PROFILE_COLUMNS)
        if not profile:
            raise UserNotFoundError(str(user_id))
        return profile

    @staticmethod
    def update_profile(user_id: UUID | str, payload: ProfileUpdate) -> dict[str, Any]:
        """
        Apply the fields present in the payload.

        Raises:
            BadRequestError: Nothing to update
            UserNotFoundError: No profile row
        """
        changes = payload.model_dump(mode="json", exclude_unset=True)
        if not changes:
            raise BadRequestError(
                "No fields to update",
                code="NO_CHANGES",
                suggestion="Send at least one of: full_name, grade, avatar_url",
            )

        profile = ProfileService.get_profile(user_id)
        changes["updated_at"] = datetime.now(timezone.utc).isoformat()

        client = SupabaseClient.get_client()
        response = client.table("users").update(changes).eq("id", str(user_id)).execute()
        logger.info(f"User {user_id} updated profile fields {sorted(changes)}")
        return response.data[0] if response.data else {**profile, **changes}

    # -------------------------------------------------------------------------
    # Subject Preferences
    # -------------------------------------------------------------------------

    @staticmethod
    def get_subject_preferences(user_id: UUID | str) -> list[str]:
        client = SupabaseClient.get_client()
        response = (
            client.table("user_subject_preferences")
            .select("subject_id")
            .eq("user_id", str(user_id))
            .execute()
        )
        return [str(row["subject_id"]) for row in response.data or []]

    @staticmethod
    def set_subject_preferences(user_id: UUID | str, subject_ids: list[UUID | str]) -> list[str]:
        """
        Replace the preference list.

        Raises:
            SubjectNotFoundError: An id is not an active subject
        """
        wanted = list(dict.fromkeys(str(s) for s in subject_ids))
        client = SupabaseClient.get_client()

        if wanted:
            active = (
                client.table("subjects")
                .select("id")
                .in_("id", wanted)
                .eq("status", CatalogStatus.ACTIVE.value)
                .execute()
            ).data or []
            missing = set(wanted) - {str(s["id"]) for s in active}
            if missing:
                raise SubjectNotFoundError(sorted(missing)[0])

        client.table("user_subject_preferences").delete().eq("user_id", str(user_id)).execute()
        if wanted:
            client.table("user_subject_preferences").insert(
                [{"user_id": str(user_id), "subject_id": subject_id} for subject_id in wanted]
            ).execute()

        logger.info(f"User {user_id} now prefers {len(wanted)} subjects")
        return wanted

    @staticmethod
    def preferred_subjects(user_id: UUID | str) -> list[dict[str, Any]]:
        """Active preferred subjects by name, with their published question counts."""
        preferred = ProfileService.get_subject_preferences(user_id)
        if not preferred:
            return []

        client = SupabaseClient.get_client()
        subjects = (
            client.table("subjects")
            .select("*")
            .in_("id", preferred)
            .eq("status", CatalogStatus.ACTIVE.value)
            .order("name")
            .execute()
        ).data or []

        questions = (
            client.table("questions")
            .select("subject_id")
            .eq("status", QuestionStatus.PUBLISHED.value)
            .in_("subject_id", preferred)
            .execute()
        ).data or []
        counts = Counter(str(q["subject_id"]) for q in questions)

        return [{**s, "total_questions": counts.get(str(s["id"]), 0)} for s in subjects]
