# =============================================================================
# core/services/subject_service.py - Subject Business Logic
# =============================================================================
# Handles subject CRUD for the admin portal and the read-only catalogue
# students browse. Separates HTTP concerns from database/business logic.
#
# Subjects with topics or questions are never hard-deleted; they can only
# be archived (status "inactive").
# =============================================================================

import logging
from collections import Counter
from typing import Any
from uuid import UUID

from app.auth.models import StaffUser
from app.dependencies import RequestMeta
from app.exceptions import (
    BadRequestError,
    ConflictError,
    DeleteBlockedError,
    SubjectNotFoundError,
    TopicNotFoundError,
)
from core.models.audit import AuditAction, AuditEntity
from core.models.common import CatalogStatus
from core.models.subject import SubjectCreate, SubjectUpdate
from core.services.audit_service import AuditService
from lib.supabase_client import SupabaseClient
from lib.utils import is_uuid, slugify

logger = logging.getLogger(__name__)

SUBJECT_SORT_COLUMNS = ("name", "display_order", "created_at", "total_questions")


class SubjectService:
    """
    Service for subject management operations.

    Provides a clean interface between API routes and database.
    """

    # -------------------------------------------------------------------------
    # Admin
    # -------------------------------------------------------------------------

    @staticmethod
    def list_subjects(
        search: str | None = None,
        status: str | None = None,
        sort_by: str = "display_order",
        sort_order: str = "asc",
    ) -> list[dict[str, Any]]:
        """
        List subjects with topic and question counts.

        Returns:
            Subject dicts, each with topic_count and question_count
        """
        client = SupabaseClient.get_client()

        query = client.table("subjects").select("*")
        if status:
            query = query.eq("status", status)
        if search and search.strip():
            query = query.ilike("name", f"%{search.strip()}%")

        sort_column = sort_by if sort_by in SUBJECT_SORT_COLUMNS else "display_order"
        subjects = query.order(sort_column, desc=sort_order == "desc").execute().data or []

        topic_counts = SupabaseClient.count_by("topics", "subject_id")
        question_counts = SupabaseClient.count_by("questions", "subject_id")

        return [
            {
                **subject,
                "topic_count": topic_counts.get(subject["id"], 0),
                "question_count": question_counts.get(subject["id"], 0),
            }
            for subject in subjects
        ]

    @staticmethod
    def create_subject(
        payload: SubjectCreate,
        admin: StaffUser,
        meta: RequestMeta | None = None,
    ) -> dict[str, Any]:
        """
        Create a subject.

        Raises:
            BadRequestError: If name or slug is blank
            ConflictError: If another subject has the same name or slug
        """
        client = SupabaseClient.get_client()

        name = payload.name.strip()
        if not name:
            raise BadRequestError("Subject name is required", code="NAME_REQUIRED")
        slug = slugify(payload.slug or name)
        if not slug:
            raise BadRequestError("Subject slug cannot be empty", code="INVALID_SLUG")

        existing = (
            client.table("subjects")
            .select("id")
            .or_(f"name.ilike.{name},slug.eq.{slug}")
            .limit(1)
            .execute()
        )
        if existing.data:
            raise ConflictError(
                "A subject with this name already exists",
                code="SUBJECT_EXISTS",
                suggestion="Choose a different name or slug",
            )

        row = {
            "name": name,
            "slug": slug,
            "description": (payload.description or "").strip() or None,
            "icon": payload.icon or None,
            "color": payload.color or None,
            "exam_types": payload.exam_types or [],
            "status": payload.status.value,
            "display_order": SupabaseClient.next_display_order("subjects"),
            "total_questions": 0,
        }

        response = client.table("subjects").insert(row).execute()
        subject = response.data[0]
        logger.info(f"Created subject {subject['id']} ({name})")

        AuditService.log_action(
            admin.id, AuditAction.CREATE, AuditEntity.SUBJECT, subject["id"],
            {"name": subject["name"], "slug": subject["slug"]}, meta,
        )
        return {**subject, "topic_count": 0, "question_count": 0}

    @staticmethod
    def get_subject_detail(subject_id: str | UUID) -> dict[str, Any]:
        """
        Subject with its topics and counts.

        Returns:
            {"subject": {...}, "topics": [...]}
        """
        subject = SupabaseClient.fetch_by_id("subjects", subject_id)
        if not subject:
            raise SubjectNotFoundError(str(subject_id))

        client = SupabaseClient.get_client()
        topics = (
            client.table("topics")
            .select("*")
            .eq("subject_id", str(subject_id))
            .order("display_order")
            .execute()
        ).data or []

        questions = (
            client.table("questions")
            .select("topic_id")
            .eq("subject_id", str(subject_id))
            .execute()
        ).data or []
        per_topic = Counter(q["topic_id"] for q in questions)

        return {
            "subject": {
                **subject,
                "topic_count": len(topics),
                "question_count": len(questions),
            },
            "topics": [
                {**topic, "question_count": per_topic.get(topic["id"], 0)}
                for topic in topics
            ],
        }

    @staticmethod
    def update_subject(
        subject_id: str | UUID,
        payload: SubjectUpdate,
        admin: StaffUser,
        meta: RequestMeta | None = None,
    ) -> dict[str, Any]:
        """
        Update supplied fields of a subject.

        A name change also regenerates the slug unless one is given.
        """
        existing = SupabaseClient.fetch_by_id("subjects", subject_id)
        if not existing:
            raise SubjectNotFoundError(str(subject_id))

        client = SupabaseClient.get_client()
        fields = payload.model_dump(exclude_unset=True)
        update: dict[str, Any] = {}

        if "name" in fields:
            name = (fields["name"] or "").strip()
            if not name:
                raise BadRequestError("Subject name cannot be empty", code="NAME_REQUIRED")
            duplicate = (
                client.table("subjects")
                .select("id")
                .ilike("name", name)
                .neq("id", str(subject_id))
                .limit(1)
                .execute()
            )
            if duplicate.data:
                raise ConflictError("A subject with this name already exists", code="SUBJECT_EXISTS")
            update["name"] = name
            update["slug"] = slugify(name)

        if fields.get("slug"):
            slug = slugify(fields["slug"])
            duplicate = (
                client.table("subjects")
                .select("id")
                .eq("slug", slug)
                .neq("id", str(subject_id))
                .limit(1)
                .execute()
            )
            if duplicate.data:
                raise ConflictError("A subject with this slug already exists", code="SLUG_EXISTS")
            update["slug"] = slug

        for key in ("icon", "color"):
            if key in fields:
                update[key] = fields[key] or None
        if "description" in fields:
            update["description"] = (fields["description"] or "").strip() or None
        if "exam_types" in fields:
            update["exam_types"] = fields["exam_types"] or []
        if fields.get("status") is not None:
            update["status"] = CatalogStatus(fields["status"]).value
        if fields.get("display_order") is not None:
            update["display_order"] = fields["display_order"]

        if not update:
            raise BadRequestError("No valid update fields provided", code="NO_CHANGES")

        response = client.table("subjects").update(update).eq("id", str(subject_id)).execute()
        updated = response.data[0] if response.data else {**existing, **update}
        logger.info(f"Updated subject {subject_id}: {list(update)}")

        AuditService.log_action(
            admin.id, AuditAction.UPDATE, AuditEntity.SUBJECT, subject_id,
            {"before": existing, "after": updated, "changes": update}, meta,
        )
        return updated

    @staticmethod
    def delete_subject(
        subject_id: str | UUID,
        admin: StaffUser,
        archive: bool = False,
        meta: RequestMeta | None = None,
    ) -> dict[str, Any]:
        """
        Delete a subject, or archive it when it still has content.

        Raises:
            DeleteBlockedError: If it has topics or questions and archive is False
        """
        subject = SupabaseClient.fetch_by_id("subjects", subject_id)
        if not subject:
            raise SubjectNotFoundError(str(subject_id))

        client = SupabaseClient.get_client()
        topic_count = SupabaseClient.count_rows("topics", subject_id=subject_id)
        question_count = SupabaseClient.count_rows("questions", subject_id=subject_id)
        counts = {"topicCount": topic_count, "questionCount": question_count}

        if topic_count or question_count:
            if not archive:
                raise DeleteBlockedError("subject", counts)

            response = (
                client.table("subjects")
                .update({"status": CatalogStatus.INACTIVE.value})
                .eq("id", str(subject_id))
                .execute()
            )
            logger.info(f"Archived subject {subject_id} ({counts})")
            AuditService.log_action(
                admin.id, AuditAction.STATUS_CHANGE, AuditEntity.SUBJECT, subject_id,
                {"action": "archived", "reason": "Subject has associated topics or questions", **counts},
                meta,
            )
            return {
                "archived": True,
                "deleted": False,
                "subject": response.data[0] if response.data else None,
                "message": "Subject archived successfully (has associated content)",
            }

        client.table("subjects").delete().eq("id", str(subject_id)).execute()
        logger.info(f"Deleted subject {subject_id}")
        AuditService.log_action(
            admin.id, AuditAction.DELETE, AuditEntity.SUBJECT, subject_id,
            {"deletedSubject": subject}, meta,
        )
        return {"archived": False, "deleted": True, "message": "Subject deleted successfully"}

    # -------------------------------------------------------------------------
    # Public Catalogue
    # -------------------------------------------------------------------------

    @staticmethod
    def list_active_subjects() -> list[dict[str, Any]]:
        """Active subjects in display order."""
        client = SupabaseClient.get_client()
        response = (
            client.table("subjects")
            .select("*")
            .eq("status", CatalogStatus.ACTIVE.value)
            .order("display_order")
            .execute()
        )
        return response.data or []

    @staticmethod
    def get_subject(id_or_slug: str) -> dict[str, Any]:
        """Fetch an active subject by UUID or slug."""
        client = SupabaseClient.get_client()
        column = "id" if is_uuid(id_or_slug) else "slug"
        response = (
            client.table("subjects")
            .select("*")
            .eq(column, id_or_slug)
            .eq("status", CatalogStatus.ACTIVE.value)
            .limit(1)
            .execute()
        )
        if not response.data:
            raise SubjectNotFoundError(id_or_slug)
        return response.data[0]

    @staticmethod
    def list_active_topics(subject_id: str | UUID) -> list[dict[str, Any]]:
        """Active topics of one subject in display order."""
        client = SupabaseClient.get_client()
        response = (
            client.table("topics")
            .select("*")
            .eq("subject_id", str(subject_id))
            .eq("status", CatalogStatus.ACTIVE.value)
            .order("display_order")
            .execute()
        )
        return response.data or []

    @staticmethod
    def get_topic(topic_id: str | UUID) -> dict[str, Any]:
        topic = SupabaseClient.fetch_by_id("topics", topic_id)
        if not topic or topic.get("status") != CatalogStatus.ACTIVE.value:
            raise TopicNotFoundError(str(topic_id))
        return topic

