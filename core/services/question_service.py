# =============================================================================
# core/services/question_service.py - Question Business Logic
# =============================================================================
# Handles question CRUD for the admin portal:
# - Filtered, paginated listing
# - Create / update with content validation
# - Quick edits, bulk status changes and soft deletes
# - Preview of how a question renders to students
#
# Deleting a question archives it; rows are never removed here.
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from app.auth.models import StaffUser
from app.dependencies import RequestMeta
from app.exceptions import (
    BadRequestError,
    QuestionNotFoundError,
    ValidationFailedError,
)
from core.models.audit import AuditAction, AuditEntity
from core.models.common import Difficulty
from core.models.question import (
    ANSWER_LETTERS,
    QUESTION_COLUMNS,
    BulkQuestionAction,
    QuestionContent,
    QuestionCreate,
    QuestionQuickUpdate,
    QuestionStatus,
    QuestionUpdate,
    options_map,
)
from core.services.audit_service import AuditService
from core.services.storage_service import StorageService
from lib.supabase_client import SupabaseClient
from lib.utils import build_pagination, capitalize_difficulty, paginate_range, parse_study_links

logger = logging.getLogger(__name__)

QUESTION_SORT_COLUMNS = ("created_at", "exam_year", "difficulty", "updated_at")

# Columns with embedded subject/topic/creator relations for listings
QUESTION_LIST_COLUMNS = (
    f"{QUESTION_COLUMNS}, subjects(id, name, slug), topics(id, name, slug), "
    "users:created_by(id, full_name)"
)

BULK_STATUS = {
    BulkQuestionAction.PUBLISH: (QuestionStatus.PUBLISHED, AuditAction.BULK_PUBLISH),
    BulkQuestionAction.ARCHIVE: (QuestionStatus.ARCHIVED, AuditAction.BULK_ARCHIVE),
    BulkQuestionAction.DRAFT: (QuestionStatus.DRAFT, AuditAction.UPDATE),
}

TEXT_FIELDS = (
    "question_text", "passage", "passage_id", "question_image_url", "image_alt_text",
    "option_a", "option_b", "option_c", "option_d", "option_e",
    "explanation", "hint", "hint1", "hint2", "hint3", "solution", "exam_type",
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _clean(value: Any) -> Any:
    """Trim strings; blank strings become None."""
    if isinstance(value, str):
        return value.strip() or None
    return value


# =============================================================================
# Validation
# =============================================================================

def validate_question(data: dict[str, Any], partial: bool = False) -> list[str]:
    """
    Content rules for a question payload.

    With partial=True only the supplied keys are checked, so an update
    can omit fields it doesn't change. `data` must already be cleaned
    (strings trimmed, blanks as None).

    Returns:
        List of human-readable errors; empty when valid
    """
    errors: list[str] = []

    def supplied(key: str) -> bool:
        return not partial or key in data

    required = {
        "subject_id": "Subject is required",
        "topic_id": "Topic is required",
        "question_text": "Question text is required",
        "option_a": "Option A is required",
        "option_b": "Option B is required",
        "exam_type": "Exam type is required",
    }
    for key, message in required.items():
        if supplied(key) and not data.get(key):
            errors.append(message)

    if supplied("correct_answer"):
        answer = data.get("correct_answer")
        if answer not in ANSWER_LETTERS:
            errors.append("Valid correct answer (A-E) is required")
        elif not partial and not options_map(data).get(answer):
            errors.append(f"Option {answer} must be provided when it's the correct answer")

    if supplied("difficulty") and data.get("difficulty") not in {d.value for d in Difficulty}:
        errors.append("Valid difficulty (Easy, Medium, Hard) is required")

    if not partial and data.get("question_image_url") and not data.get("image_alt_text"):
        errors.append("Image alt text is required when question image is provided")

    for key, label in (("image_width", "Image width"), ("image_height", "Image height")):
        value = data.get(key)
        if value is not None and value <= 0:
            errors.append(f"{label} must be a positive integer")

    if "status" in data and data["status"] is not None:
        if data["status"] not in {s.value for s in QuestionStatus}:
            errors.append("Invalid status")

    return errors


def _prepare(payload: QuestionContent, exclude_unset: bool) -> dict[str, Any]:
    """Dump a payload into a row dict with cleaned values."""
    data = payload.model_dump(exclude_unset=exclude_unset)
    row: dict[str, Any] = {}
    for key, value in data.items():
        if key in TEXT_FIELDS:
            row[key] = _clean(value)
        elif key in ("subject_id", "topic_id"):
            row[key] = str(value) if value else None
        elif key == "further_study_links":
            row[key] = parse_study_links(value)
        elif key == "correct_answer":
            row[key] = value.strip().upper() if value else None
        elif key == "difficulty":
            row[key] = capitalize_difficulty(value)
        else:
            row[key] = value
    return row


def _check_subject_and_topic(subject_id: str, topic_id: str | None) -> None:
    """Subject must exist and the topic must belong to it."""
    if not SupabaseClient.fetch_by_id("subjects", subject_id, columns="id"):
        raise BadRequestError("Invalid subject", code="INVALID_SUBJECT")
    if topic_id is None:
        return
    topic = SupabaseClient.fetch_by_id("topics", topic_id, columns="id, subject_id")
    if not topic or topic.get("subject_id") != subject_id:
        raise BadRequestError(
            "Invalid topic or topic does not belong to the selected subject",
            code="INVALID_TOPIC",
        )


def _flatten_relations(row: dict[str, Any]) -> dict[str, Any]:
    """Rename embedded relations to subject/topic/creator."""
    question = {k: v for k, v in row.items() if k not in ("subjects", "topics", "users")}
    question["subject"] = row.get("subjects")
    question["topic"] = row.get("topics")
    question["creator"] = row.get("users")
    return question


# =============================================================================
# Service
# =============================================================================

class QuestionService:
    """Service for question management operations."""

    @staticmethod
    def list_questions(
        page: int = 1,
        limit: int = 20,
        subject_id: str | None = None,
        topic_id: str | None = None,
        exam_type: str | None = None,
        year: int | None = None,
        difficulty: str | None = None,
        status: str | None = None,
        search: str | None = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> dict[str, Any]:
        """
        Paginated question listing.

        Returns:
            {"questions": [...], "pagination": {...}}
        """
        client = SupabaseClient.get_client()
        query = client.table("questions").select(QUESTION_LIST_COLUMNS, count="exact")

        filters = {
            "subject_id": subject_id,
            "topic_id": topic_id,
            "exam_type": exam_type,
            "exam_year": year,
            "difficulty": difficulty,
            "status": status,
        }
        for column, value in filters.items():
            if value is not None and value != "":
                query = query.eq(column, value)
        if search and search.strip():
            query = query.ilike("question_text", f"%{search.strip()}%")

        sort_column = sort_by if sort_by in QUESTION_SORT_COLUMNS else "created_at"
        start, end = paginate_range(page, limit)
        response = query.order(sort_column, desc=sort_order != "asc").range(start, end).execute()

        return {
            "questions": [_flatten_relations(row) for row in response.data or []],
            "pagination": build_pagination(response.count or 0, page, limit),
        }

    @staticmethod
    def create_question(
        payload: QuestionCreate,
        admin: StaffUser,
        meta: RequestMeta | None = None,
    ) -> dict[str, Any]:
        """
        Validate and insert a question.

        Raises:
            ValidationFailedError: If content rules fail
            BadRequestError: If the subject/topic pair is invalid
        """
        row = _prepare(payload, exclude_unset=False)
        row["status"] = payload.status or QuestionStatus.DRAFT.value

        errors = validate_question(row)
        if row["status"] not in (QuestionStatus.DRAFT.value, QuestionStatus.PUBLISHED.value):
            errors.append("Status must be draft or published")
        if errors:
            raise ValidationFailedError(errors)

        _check_subject_and_topic(row["subject_id"], row["topic_id"])

        row["created_by"] = str(admin.id)
        client = SupabaseClient.get_client()
        question = client.table("questions").insert(row).execute().data[0]
        logger.info(f"Created question {question['id']} in topic {row['topic_id']}")

        try:
            client.rpc(
                "increment_question_count",
                {"target_subject_id": row["subject_id"], "target_topic_id": row["topic_id"]},
            ).execute()
        except Exception as e:
            logger.warning(f"increment_question_count failed for {question['id']}: {e}")

        AuditService.log_action(
            admin.id, AuditAction.CREATE, AuditEntity.QUESTION, question["id"],
            {
                "subject_id": row["subject_id"],
                "topic_id": row["topic_id"],
                "difficulty": row["difficulty"],
                "status": row["status"],
            },
            meta,
        )
        return question

    @staticmethod
    def get_question_detail(question_id: str | UUID) -> dict[str, Any]:
        """
        Question with relations and usage statistics from session_answers.
        """
        question = SupabaseClient.fetch_by_id(
            "questions", question_id,
            columns=f"{QUESTION_COLUMNS}, subjects(id, name, slug), topics(id, name, slug), "
                    "users:created_by(id, full_name, email)",
        )
        if not question:
            raise QuestionNotFoundError(str(question_id))

        client = SupabaseClient.get_client()
        answers = (
            client.table("session_answers")
            .select("is_correct")
            .eq("question_id", str(question_id))
            .execute()
        ).data or []

        times_answered = len(answers)
        times_correct = sum(1 for a in answers if a.get("is_correct"))
        accuracy = round(times_correct / times_answered * 100) if times_answered else 0

        result = _flatten_relations(question)
        result["usage_stats"] = {
            "times_answered": times_answered,
            "times_correct": times_correct,
            "accuracy": accuracy,
        }
        return result

    @staticmethod
    def update_question(
        question_id: str | UUID,
        payload: QuestionUpdate,
        admin: StaffUser,
        meta: RequestMeta | None = None,
    ) -> dict[str, Any]:
        """
        Update supplied fields, validating only what changes.

        Raises:
            QuestionNotFoundError: If the question doesn't exist
            ValidationFailedError: If content rules fail
        """
        existing = SupabaseClient.fetch_by_id("questions", question_id, columns=QUESTION_COLUMNS)
        if not existing:
            raise QuestionNotFoundError(str(question_id))

        update = _prepare(payload, exclude_unset=True)
        if not update:
            raise BadRequestError("No valid update fields provided", code="NO_CHANGES")

        # Check the answer and image rules against the merged row
        merged = {**existing, **update}
        errors = validate_question(update, partial=True)
        if "correct_answer" in update or any(k.startswith("option_") for k in update):
            answer = merged.get("correct_answer")
            if answer in ANSWER_LETTERS and not options_map(merged).get(answer):
                errors.append(f"Option {answer} must be provided when it's the correct answer")
        if merged.get("question_image_url") and not merged.get("image_alt_text"):
            errors.append("Image alt text is required when question image is provided")
        if errors:
            raise ValidationFailedError(errors)

        if "subject_id" in update or "topic_id" in update:
            _check_subject_and_topic(merged["subject_id"], merged.get("topic_id"))

        update["updated_at"] = _now()
        client = SupabaseClient.get_client()
        response = client.table("questions").update(update).eq("id", str(question_id)).execute()
        updated = response.data[0] if response.data else merged
        logger.info(f"Updated question {question_id}: {list(update)}")

        AuditService.log_action(
            admin.id, AuditAction.UPDATE, AuditEntity.QUESTION, question_id,
            {"updated_fields": list(update), "before": existing, "after": updated},
            meta,
        )
        return updated

    @staticmethod
    def quick_update(
        question_id: str | UUID,
        payload: QuestionQuickUpdate,
        admin: StaffUser,
        meta: RequestMeta | None = None,
    ) -> dict[str, Any]:
        """
        Edit a limited field set from the question list.

        The answer letter is upper-cased and difficulty capitalised
        before validation.
        """
        existing = SupabaseClient.fetch_by_id("questions", question_id, columns=QUESTION_COLUMNS)
        if not existing:
            raise QuestionNotFoundError(str(question_id))

        update = {
            key: _clean(value) if isinstance(value, str) else value
            for key, value in payload.model_dump(exclude_unset=True).items()
        }
        if not update:
            raise BadRequestError("No valid fields to update", code="NO_CHANGES")

        errors: list[str] = []
        if "correct_answer" in update:
            update["correct_answer"] = (update["correct_answer"] or "").upper()
            if update["correct_answer"] not in ANSWER_LETTERS:
                errors.append("Invalid correct answer. Must be A, B, C, D, or E")
        if "difficulty" in update:
            update["difficulty"] = capitalize_difficulty(update["difficulty"])
            if update["difficulty"] not in {d.value for d in Difficulty}:
                errors.append("Invalid difficulty. Must be Easy, Medium, or Hard")
        if "status" in update and update["status"] not in {s.value for s in QuestionStatus}:
            errors.append("Invalid status. Must be draft, published, or archived")
        for key in ("question_text", "option_a", "option_b"):
            if key in update and not update[key]:
                errors.append(f"{key.replace('_', ' ').capitalize()} cannot be empty")
        if errors:
            raise ValidationFailedError(errors)

        update["updated_at"] = _now()
        client = SupabaseClient.get_client()
        response = client.table("questions").update(update).eq("id", str(question_id)).execute()
        updated = response.data[0] if response.data else {**existing, **update}

        AuditService.log_action(
            admin.id, AuditAction.UPDATE, AuditEntity.QUESTION, question_id,
            {"quick_update": True, "fields_updated": list(update), "before": existing, "after": update},
            meta,
        )
        return updated

    @staticmethod
    def delete_question(
        question_id: str | UUID,
        admin: StaffUser,
        meta: RequestMeta | None = None,
    ) -> dict[str, Any]:
        """
        Archive a question and remove its stored image.
        """
        existing = SupabaseClient.fetch_by_id(
            "questions", question_id, columns="id, subject_id, topic_id, status, question_image_url"
        )
        if not existing:
            raise QuestionNotFoundError(str(question_id))

        client = SupabaseClient.get_client()
        (
            client.table("questions")
            .update({"status": QuestionStatus.ARCHIVED.value, "updated_at": _now()})
            .eq("id", str(question_id))
            .execute()
        )
        logger.info(f"Archived question {question_id}")

        if existing.get("question_image_url"):
            StorageService.delete_question_image(existing["question_image_url"])

        AuditService.log_action(
            admin.id, AuditAction.DELETE, AuditEntity.QUESTION, question_id,
            {"previous_status": existing.get("status"), "soft_deleted": True},
            meta,
        )
        return {"message": "Question archived successfully"}

    @staticmethod
    def bulk_update_status(
        question_ids: list[UUID | str],
        action: BulkQuestionAction,
        admin: StaffUser,
        meta: RequestMeta | None = None,
    ) -> dict[str, Any]:
        """
        Publish, archive or return several questions to draft.

        Raises:
            BadRequestError: If any id doesn't exist
        """
        ids = [str(qid) for qid in question_ids]
        _ensure_all_exist(ids)

        new_status, audit_action = BULK_STATUS[action]
        client = SupabaseClient.get_client()
        response = (
            client.table("questions")
            .update({"status": new_status.value, "updated_at": _now()})
            .in_("id", ids)
            .execute()
        )
        affected = len(response.data or [])
        logger.info(f"Bulk {action.value}: {affected} questions")

        AuditService.log_action(
            admin.id, audit_action, AuditEntity.QUESTION, None,
            {"question_ids": ids, "new_status": new_status.value, "affected_count": affected},
            meta,
        )
        return {"affected": affected, "message": f"Successfully updated {affected} question(s) to {new_status.value}"}

    @staticmethod
    def bulk_delete(
        question_ids: list[UUID | str],
        admin: StaffUser,
        meta: RequestMeta | None = None,
    ) -> dict[str, Any]:
        """Archive several questions at once."""
        ids = [str(qid) for qid in question_ids]
        _ensure_all_exist(ids)

        client = SupabaseClient.get_client()
        response = (
            client.table("questions")
            .update({"status": QuestionStatus.ARCHIVED.value, "updated_at": _now()})
            .in_("id", ids)
            .execute()
        )
        affected = len(response.data or [])
        logger.info(f"Bulk archived {affected} questions")

        AuditService.log_action(
            admin.id, AuditAction.BULK_DELETE, AuditEntity.QUESTION, None,
            {"question_ids": ids, "affected_count": affected, "soft_deleted": True},
            meta,
        )
        return {"affected": affected, "message": f"Successfully archived {affected} question(s)"}

    @staticmethod
    def list_by_passage(passage_id: str) -> list[dict[str, Any]]:
        """All questions sharing a reading passage, oldest first."""
        passage_id = (passage_id or "").strip()
        if not passage_id:
            raise BadRequestError("passage_id query parameter is required", code="PASSAGE_ID_REQUIRED")

        client = SupabaseClient.get_client()
        response = (
            client.table("questions")
            .select(QUESTION_LIST_COLUMNS)
            .eq("passage_id", passage_id)
            .order("created_at")
            .execute()
        )
        return [_flatten_relations(row) for row in response.data or []]

    @staticmethod
    def build_preview(payload: QuestionContent) -> dict[str, Any]:
        """
        Render a question the way students see it, without saving.

        Returns:
            {"question_view", "solution_view", "validation"} where
            validation lists blocking errors and non-blocking warnings
        """
        data = _prepare(payload, exclude_unset=False)
        if not data.get("question_text"):
            raise BadRequestError("Question text is required for preview", code="QUESTION_TEXT_REQUIRED")

        answer = data.get("correct_answer")
        options = [
            {"label": letter, "text": text, "isCorrect": answer == letter}
            for letter, text in options_map(data).items()
            if text
        ]
        correct = next((o for o in options if o["isCorrect"]), None)

        errors = [
            e for e in validate_question(data)
            if e not in ("Subject is required", "Topic is required")
        ]
        warnings = []
        if not data.get("explanation"):
            warnings.append("No explanation provided")
        if not (data.get("hint") or data.get("hint1")):
            warnings.append("No hint provided")
        if not data.get("solution"):
            warnings.append("No solution provided")
        if len(options) < 4:
            warnings.append(f"Only {len(options)} options provided")

        return {
            "question_view": {
                "passage": data.get("passage"),
                "question_text": data["question_text"],
                "image": {
                    "url": data.get("question_image_url"),
                    "alt": data.get("image_alt_text"),
                    "width": data.get("image_width"),
                    "height": data.get("image_height"),
                } if data.get("question_image_url") else None,
                "options": options,
                "metadata": {
                    "difficulty": data.get("difficulty"),
                    "exam_type": data.get("exam_type"),
                    "exam_year": data.get("exam_year"),
                },
            },
            "solution_view": {
                "correct_answer": answer,
                "correct_option_text": correct["text"] if correct else None,
                "explanation": data.get("explanation"),
                "hints": [h for h in (data.get("hint1"), data.get("hint2"), data.get("hint3")) if h]
                         or ([data["hint"]] if data.get("hint") else []),
                "solution": data.get("solution"),
                "further_study_links": data.get("further_study_links") or [],
            },
            "validation": {
                "is_complete": not errors and correct is not None,
                "options_count": len(options),
                "has_passage": bool(data.get("passage")),
                "has_explanation": bool(data.get("explanation")),
                "has_hint": bool(data.get("hint") or data.get("hint1")),
                "has_solution": bool(data.get("solution")),
                "errors": errors,
                "warnings": warnings,
            },
        }


def _ensure_all_exist(ids: list[str]) -> None:
    client = SupabaseClient.get_client()
    rows = client.table("questions").select("id, status").in_("id", ids).execute().data or []
    found = {row["id"] for row in rows}
    missing = [qid for qid in ids if qid not in found]
    if missing:
        raise BadRequestError(
            f"Some questions not found: {', '.join(missing)}",
            code="QUESTIONS_NOT_FOUND",
            details={"missing_ids": missing},
        )
