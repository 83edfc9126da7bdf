# =============================================================================
# core/services/topic_service.py - Topic Business Logic
# =============================================================================
# Handles topic CRUD and drag-and-drop reordering for the admin portal.
# Topic slugs are unique within their subject.
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
    NotFoundError,
    SubjectNotFoundError,
    TopicNotFoundError,
)
from core.models.audit import AuditAction, AuditEntity
from core.models.common import CatalogStatus, Difficulty
from core.models.question import QuestionStatus
from core.models.topic import TopicCreate, TopicReorderRequest, TopicUpdate
from core.services.audit_service import AuditService
from lib.supabase_client import SupabaseClient
from lib.utils import slugify

logger = logging.getLogger(__name__)

TOPIC_SORT_COLUMNS = ("name", "display_order", "created_at", "total_questions")


class TopicService:
    """Service for topic management operations."""

    @staticmethod
    def list_topics(
        subject_id: str | None = None,
        search: str | None = None,
        status: str | None = None,
        sort_by: str = "display_order",
        sort_order: str = "asc",
    ) -> list[dict[str, Any]]:
        """
        List topics with their subject's display fields and question count.
        """
        client = SupabaseClient.get_client()

        query = client.table("topics").select("*, subjects!inner(name, slug, color, icon)")
        if subject_id:
            query = query.eq("subject_id", subject_id)
        if status:
            query = query.eq("status", status)
        if search and search.strip():
            query = query.ilike("name", f"%{search.strip()}%")

        sort_column = sort_by if sort_by in TOPIC_SORT_COLUMNS else "display_order"
        topics = query.order(sort_column, desc=sort_order == "desc").execute().data or []
        question_counts = SupabaseClient.count_by("questions", "topic_id")

        return [_format_topic(topic, question_counts.get(topic["id"], 0)) for topic in topics]

    @staticmethod
    def create_topic(
        payload: TopicCreate,
        admin: StaffUser,
        meta: RequestMeta | None = None,
    ) -> dict[str, Any]:
        """
        Create a topic under an existing subject.

        Raises:
            SubjectNotFoundError: If the subject doesn't exist
            ConflictError: If the slug is already used in this subject
        """
        name = payload.name.strip()
        if not name:
            raise BadRequestError("Topic name is required", code="NAME_REQUIRED")

        subject = SupabaseClient.fetch_by_id("subjects", payload.subject_id, columns="id, name")
        if not subject:
            raise SubjectNotFoundError(str(payload.subject_id))

        client = SupabaseClient.get_client()
        slug = slugify(payload.slug or name)
        _ensure_unique_slug(client, str(payload.subject_id), slug)

        row = {
            "subject_id": str(payload.subject_id),
            "name": name,
            "slug": slug,
            "description": (payload.description or "").strip() or None,
            "difficulty": payload.difficulty.value if payload.difficulty else None,
            "status": payload.status.value,
            "display_order": SupabaseClient.next_display_order("topics", subject_id=payload.subject_id),
            "total_questions": 0,
        }
        topic = client.table("topics").insert(row).execute().data[0]
        logger.info(f"Created topic {topic['id']} ({name}) in subject {payload.subject_id}")

        AuditService.log_action(
            admin.id, AuditAction.CREATE, AuditEntity.TOPIC, topic["id"],
            {"name": name, "slug": slug, "subject_id": str(payload.subject_id)}, meta,
        )
        return {**topic, "subject_name": subject.get("name"), "question_count": 0}

    @staticmethod
    def get_topic_detail(topic_id: str | UUID) -> dict[str, Any]:
        """
        Topic with question statistics by difficulty, year and status.
        """
        client = SupabaseClient.get_client()
        topic = SupabaseClient.fetch_by_id(
            "topics", topic_id, columns="*, subjects!inner(id, name, slug, color, icon)"
        )
        if not topic:
            raise TopicNotFoundError(str(topic_id))

        questions = (
            client.table("questions")
            .select("id, difficulty, exam_year, status")
            .eq("topic_id", str(topic_id))
            .execute()
        ).data or []

        by_difficulty = {d.value: 0 for d in Difficulty}
        by_status = {s.value: 0 for s in QuestionStatus}
        by_year: Counter = Counter()
        for question in questions:
            if question.get("difficulty") in by_difficulty:
                by_difficulty[question["difficulty"]] += 1
            if question.get("status") in by_status:
                by_status[question["status"]] += 1
            if question.get("exam_year"):
                by_year[question["exam_year"]] += 1

        return {
            "topic": _format_topic(topic, len(questions)),
            "statistics": {
                "totalQuestions": len(questions),
                "byDifficulty": by_difficulty,
                "byYear": dict(sorted(by_year.items(), reverse=True)),
                "byStatus": by_status,
            },
        }

    @staticmethod
    def update_topic(
        topic_id: str | UUID,
        payload: TopicUpdate,
        admin: StaffUser,
        meta: RequestMeta | None = None,
    ) -> dict[str, Any]:
        """Update supplied fields of a topic."""
        existing = SupabaseClient.fetch_by_id("topics", topic_id)
        if not existing:
            raise TopicNotFoundError(str(topic_id))

        client = SupabaseClient.get_client()
        fields = payload.model_dump(exclude_unset=True)
        update: dict[str, Any] = {}

        subject_id = existing["subject_id"]
        if fields.get("subject_id"):
            subject_id = str(fields["subject_id"])
            if not SupabaseClient.fetch_by_id("subjects", subject_id, columns="id"):
                raise SubjectNotFoundError(subject_id)
            update["subject_id"] = subject_id

        if "name" in fields:
            name = (fields["name"] or "").strip()
            if not name:
                raise BadRequestError("Topic name cannot be empty", code="NAME_REQUIRED")
            update["name"] = name
            update["slug"] = slugify(name)
        if fields.get("slug"):
            update["slug"] = slugify(fields["slug"])
        if "slug" in update or "subject_id" in update:
            slug = update.get("slug", existing["slug"])
            _ensure_unique_slug(client, subject_id, slug, exclude_id=str(topic_id))

        if "description" in fields:
            update["description"] = (fields["description"] or "").strip() or None
        if "difficulty" in fields:
            update["difficulty"] = Difficulty(fields["difficulty"]).value if fields["difficulty"] else None
        if fields.get("status") is not None:
            update["status"] = CatalogStatus(fields["status"]).value
        if fields.get("display_order") is not None:
            update["display_order"] = fields["display_order"]

        if not update:
            raise BadRequestError("No valid update fields provided", code="NO_CHANGES")

        response = client.table("topics").update(update).eq("id", str(topic_id)).execute()
        updated = response.data[0] if response.data else {**existing, **update}
        logger.info(f"Updated topic {topic_id}: {list(update)}")

        AuditService.log_action(
            admin.id, AuditAction.UPDATE, AuditEntity.TOPIC, topic_id,
            {"before": existing, "after": updated, "changes": update}, meta,
        )
        return updated

    @staticmethod
    def delete_topic(
        topic_id: str | UUID,
        admin: StaffUser,
        archive: bool = False,
        meta: RequestMeta | None = None,
    ) -> dict[str, Any]:
        """
        Delete a topic, or archive it when questions still reference it.

        Raises:
            DeleteBlockedError: If it has questions and archive is False
        """
        topic = SupabaseClient.fetch_by_id("topics", topic_id)
        if not topic:
            raise TopicNotFoundError(str(topic_id))

        client = SupabaseClient.get_client()
        question_count = SupabaseClient.count_rows("questions", topic_id=topic_id)

        if question_count:
            if not archive:
                raise DeleteBlockedError("topic", {"questionCount": question_count})

            response = (
                client.table("topics")
                .update({"status": CatalogStatus.INACTIVE.value})
                .eq("id", str(topic_id))
                .execute()
            )
            logger.info(f"Archived topic {topic_id} ({question_count} questions)")
            AuditService.log_action(
                admin.id, AuditAction.STATUS_CHANGE, AuditEntity.TOPIC, topic_id,
                {"action": "archived", "questionCount": question_count}, meta,
            )
            return {
                "archived": True,
                "deleted": False,
                "topic": response.data[0] if response.data else None,
                "message": "Topic archived successfully (has associated questions)",
            }

        client.table("topics").delete().eq("id", str(topic_id)).execute()
        logger.info(f"Deleted topic {topic_id}")
        AuditService.log_action(
            admin.id, AuditAction.DELETE, AuditEntity.TOPIC, topic_id,
            {"deletedTopic": topic}, meta,
        )
        return {"archived": False, "deleted": True, "message": "Topic deleted successfully"}

    @staticmethod
    def reorder_topics(
        payload: TopicReorderRequest,
        admin: StaffUser,
        meta: RequestMeta | None = None,
    ) -> dict[str, Any]:
        """
        Apply new display_order values.

        Raises:
            NotFoundError: Listing ids that don't exist (or aren't in subject_id)
        """
        client = SupabaseClient.get_client()
        ids = [str(item.id) for item in payload.items]

        query = client.table("topics").select("id, subject_id").in_("id", ids)
        if payload.subject_id:
            query = query.eq("subject_id", str(payload.subject_id))
        found = {row["id"] for row in query.execute().data or []}

        missing = [topic_id for topic_id in ids if topic_id not in found]
        if missing:
            raise NotFoundError("topics", ", ".join(missing), code="TOPICS_NOT_FOUND")

        for item in payload.items:
            (
                client.table("topics")
                .update({"display_order": item.display_order})
                .eq("id", str(item.id))
                .execute()
            )

        logger.info(f"Reordered {len(ids)} topics")
        AuditService.log_action(
            admin.id, AuditAction.UPDATE, AuditEntity.TOPIC, None,
            {
                "operation": "reorder",
                "subject_id": str(payload.subject_id) if payload.subject_id else None,
                "items": [{"id": str(i.id), "display_order": i.display_order} for i in payload.items],
            },
            meta,
        )
        return {
            "message": f"Successfully reordered {len(ids)} topics",
            "updatedCount": len(ids),
        }


# =============================================================================
# Helpers
# =============================================================================

def _ensure_unique_slug(client, subject_id: str, slug: str, exclude_id: str | None = None) -> None:
    if not slug:
        raise BadRequestError("Topic slug cannot be empty", code="INVALID_SLUG")
    query = (
        client.table("topics")
        .select("id")
        .eq("subject_id", subject_id)
        .eq("slug", slug)
    )
    if exclude_id:
        query = query.neq("id", exclude_id)
    if query.limit(1).execute().data:
        raise ConflictError(
            "A topic with this name already exists in this subject",
            code="TOPIC_EXISTS",
            suggestion="Choose a different name or slug",
        )


def _format_topic(topic: dict[str, Any], question_count: int) -> dict[str, Any]:
    """Flatten the embedded subject relation into subject_* fields."""
    subject = topic.get("subjects")
    if isinstance(subject, list):
        subject = subject[0] if subject else None
    subject = subject or {}
    formatted = {k: v for k, v in topic.items() if k != "subjects"}
    formatted.update({
        "subject_name": subject.get("name", ""),
        "subject_slug": subject.get("slug", ""),
        "subject_color": subject.get("color", ""),
        "subject_icon": subject.get("icon", ""),
        "question_count": question_count,
    })
    return formatted
