# =============================================================================
# core/services/review_service.py - AI Question Review Workflow
# =============================================================================
# Runs the QuestionReviewer over questions and manages the resulting
# question_reviews rows:
# - create_review: one question, one pending (or failed) review
# - batch_review: several questions in sequence, paced for rate limits
# - decide: approve (copy proposals onto the question) or reject
# - history: paginated review list with question/reviewer/approver
#
# A question may have at most one pending review at a time.
# =============================================================================

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable
from uuid import UUID

from agents.models.review_result import ReviewResult, ValidationResult
from agents.question_reviewer import QuestionReviewer
from agents.review_validation import validate_review_result
from app.auth.models import StaffUser
from app.config import settings
from app.dependencies import RequestMeta
from app.exceptions import (
    BadRequestError,
    ConflictError,
    NotFoundError,
    QuestionNotFoundError,
    ReviewGenerationError,
    ReviewNotFoundError,
)
from core.models.audit import AuditAction, AuditEntity
from core.models.review import ReviewStatus, ReviewType
from core.services.audit_service import AuditService
from lib.supabase_client import SupabaseClient
from lib.utils import build_pagination, paginate_range

logger = logging.getLogger(__name__)

HISTORY_MAX_LIMIT = 100

HISTORY_COLUMNS = (
    "*, "
    "question:question_id(id, question_text, subject_id, topic_id), "
    "reviewer:reviewed_by(id, full_name, email), "
    "approver:approved_by(id, full_name, email)"
)


def get_reviewer() -> QuestionReviewer:
    """Build a reviewer from settings."""
    return QuestionReviewer()


def _subject_name(question: dict[str, Any]) -> str | None:
    subject = question.get("subjects")
    if isinstance(subject, list):
        subject = subject[0] if subject else None
    return (subject or {}).get("name")


def _review_row(
    question_id: str,
    reviewer_id: UUID | str,
    review_type: ReviewType,
    result: ReviewResult,
    validation: ValidationResult,
    model: str,
) -> dict[str, Any]:
    return {
        "question_id": question_id,
        "reviewed_by": str(reviewer_id),
        "review_type": review_type.value,
        "status": (ReviewStatus.PENDING if validation.is_valid else ReviewStatus.FAILED).value,
        "proposed_hint1": result.hint1,
        "proposed_hint2": result.hint2,
        "proposed_hint3": result.hint3,
        "proposed_solution": result.solution,
        "proposed_explanation": result.explanation,
        "model_used": model,
        "tokens_used": result.tokens_used,
        "review_duration_ms": result.duration_ms,
        "error_message": (
            None if validation.is_valid
            else f"Validation failed: {', '.join(validation.issues)}"
        ),
    }


class ReviewService:
    """Service for AI review generation and approval."""

    @staticmethod
    def _fetch_question(question_id: str | UUID) -> dict[str, Any] | None:
        return SupabaseClient.fetch_by_id("questions", question_id, columns="*, subjects:subject_id(name)")

    @staticmethod
    def has_pending_review(question_id: str | UUID) -> bool:
        client = SupabaseClient.get_client()
        response = (
            client.table("question_reviews")
            .select("id")
            .eq("question_id", str(question_id))
            .eq("status", ReviewStatus.PENDING.value)
            .limit(1)
            .execute()
        )
        return bool(response.data)

    @staticmethod
    def _record_failure(
        question_id: str,
        reviewer_id: UUID | str,
        review_type: ReviewType,
        model: str,
        duration_ms: int,
        error: str,
    ) -> dict[str, Any] | None:
        """Insert a failed review row; returns it, or None if the insert failed too."""
        client = SupabaseClient.get_client()
        try:
            response = client.table("question_reviews").insert({
                "question_id": question_id,
                "reviewed_by": str(reviewer_id),
                "review_type": review_type.value,
                "status": ReviewStatus.FAILED.value,
                "model_used": model,
                "review_duration_ms": duration_ms,
                "error_message": error,
            }).execute()
        except Exception as e:
            logger.error(f"Could not record failed review for question {question_id}: {e}")
            return None
        return response.data[0] if response.data else None

    @staticmethod
    async def _generate(
        question: dict[str, Any],
        admin: StaffUser,
        review_type: ReviewType,
        reviewer: QuestionReviewer,
    ) -> tuple[dict[str, Any], ValidationResult]:
        """
        Generate, validate and store one review.

        Raises:
            ReviewGenerationError: If generation failed (a failed row is stored)
        """
        question_id = str(question["id"])
        started = datetime.now(timezone.utc)

        try:
            result = await reviewer.review_question(question, _subject_name(question))
        except Exception as e:
            duration_ms = int((datetime.now(timezone.utc) - started).total_seconds() * 1000)
            error = str(e) or "Unknown error during review"
            logger.error(f"Review generation failed for question {question_id}: {error}")
            failed = ReviewService._record_failure(
                question_id, admin.id, review_type, reviewer.model, duration_ms, error
            )
            raise ReviewGenerationError(question_id, error, failed["id"] if failed else None) from e

        validation = validate_review_result(result)
        row = _review_row(question_id, admin.id, review_type, result, validation, reviewer.model)

        client = SupabaseClient.get_client()
        review = client.table("question_reviews").insert(row).execute().data[0]
        logger.info(
            f"Stored {review['status']} review {review['id']} for question {question_id} "
            f"({len(validation.issues)} issues)"
        )
        return review, validation

    # -------------------------------------------------------------------------
    # Generation
    # -------------------------------------------------------------------------

    @staticmethod
    async def create_review(
        question_id: str | UUID,
        admin: StaffUser,
        meta: RequestMeta | None = None,
        reviewer: QuestionReviewer | None = None,
    ) -> dict[str, Any]:
        """
        Review one question.

        Returns:
            The stored review row plus its validation result

        Raises:
            QuestionNotFoundError: Unknown question
            ConflictError: A pending review already exists
            ReviewGenerationError: The AI calls failed
        """
        question = ReviewService._fetch_question(question_id)
        if not question:
            raise QuestionNotFoundError(str(question_id))

        if ReviewService.has_pending_review(question_id):
            raise ConflictError(
                "A pending review already exists for this question",
                code="REVIEW_PENDING",
                suggestion="Approve or reject the pending review first",
            )

        reviewer = reviewer or get_reviewer()
        try:
            review, validation = await ReviewService._generate(question, admin, ReviewType.SINGLE, reviewer)
        except ReviewGenerationError as e:
            AuditService.log_action(
                admin.id, AuditAction.REVIEW_FAILED, AuditEntity.QUESTION, question_id,
                {"error": e.details.get("error")}, meta,
            )
            raise

        AuditService.log_action(
            admin.id, AuditAction.REVIEW_CREATED, AuditEntity.QUESTION, question_id,
            {
                "reviewId": review["id"],
                "validationIssues": validation.issues,
                "validationWarnings": validation.warnings,
            },
            meta,
        )
        return {**review, "validation": validation.to_dict()}

    @staticmethod
    async def batch_review(
        question_ids: list[str | UUID],
        admin: StaffUser,
        batch_size: int = 10,
        meta: RequestMeta | None = None,
        reviewer: QuestionReviewer | None = None,
        on_progress: Callable[[int, int], None] | None = None,
    ) -> dict[str, Any]:
        """
        Review questions one after another.

        Only the first batch_size ids are used. Questions with a pending
        review are skipped and reported as failures.

        Args:
            on_progress: Called with (processed, total) after each question

        Returns:
            {"results": [...], "summary": {total, successful, failed}}
        """
        batch_size = min(batch_size, settings.REVIEW_BATCH_MAX_SIZE)
        limited_ids = [str(qid) for qid in question_ids[:batch_size]]

        client = SupabaseClient.get_client()
        rows = (
            client.table("questions")
            .select("*, subjects:subject_id(name)")
            .in_("id", limited_ids)
            .execute()
        ).data or []
        by_id = {str(q["id"]): q for q in rows}
        questions = [by_id[qid] for qid in dict.fromkeys(limited_ids) if qid in by_id]
        if not questions:
            raise NotFoundError("questions", ", ".join(limited_ids), code="QUESTIONS_NOT_FOUND")

        reviewer = reviewer or get_reviewer()
        results: list[dict[str, Any]] = []

        for index, question in enumerate(questions):
            question_id = str(question["id"])

            if ReviewService.has_pending_review(question_id):
                results.append({
                    "questionId": question_id,
                    "success": False,
                    "error": "Pending review already exists",
                })
            else:
                try:
                    review, validation = await ReviewService._generate(
                        question, admin, ReviewType.BATCH, reviewer
                    )
                    results.append({
                        "questionId": question_id,
                        "success": True,
                        "reviewId": review["id"],
                        "validation": validation.to_dict(),
                    })
                except ReviewGenerationError as e:
                    results.append({
                        "questionId": question_id,
                        "success": False,
                        "error": e.details.get("error"),
                    })

                if index < len(questions) - 1:
                    await asyncio.sleep(settings.REVIEW_BATCH_DELAY_SECONDS)

            if on_progress:
                on_progress(index + 1, len(questions))

        successful = sum(1 for r in results if r["success"])
        summary = {"total": len(results), "successful": successful, "failed": len(results) - successful}
        logger.info(f"Batch review finished: {summary}")

        AuditService.log_action(
            admin.id, AuditAction.REVIEW_BATCH_CREATED, AuditEntity.QUESTION, None,
            {
                "totalQuestions": len(limited_ids),
                "successful": summary["successful"],
                "failed": summary["failed"],
            },
            meta,
        )
        return {"results": results, "summary": summary}

    # -------------------------------------------------------------------------
    # Decisions
    # -------------------------------------------------------------------------

    @staticmethod
    def decide(
        review_id: str | UUID,
        approved: bool,
        admin: StaffUser,
        rejection_reason: str | None = None,
        meta: RequestMeta | None = None,
    ) -> dict[str, Any]:
        """
        Approve or reject a pending review.

        Approval copies the non-empty proposals onto the question
        (hint mirrors hint1).

        Raises:
            ReviewNotFoundError: Unknown review
            BadRequestError: Review is no longer pending
        """
        review = SupabaseClient.fetch_by_id("question_reviews", review_id)
        if not review:
            raise ReviewNotFoundError(str(review_id))
        if review.get("status") != ReviewStatus.PENDING.value:
            raise BadRequestError(
                f"Review is already {review.get('status')}",
                code="REVIEW_NOT_PENDING",
            )

        client = SupabaseClient.get_client()
        now = datetime.now(timezone.utc).isoformat()

        if approved:
            proposals = {
                "hint1": review.get("proposed_hint1"),
                "hint2": review.get("proposed_hint2"),
                "hint3": review.get("proposed_hint3"),
                "hint": review.get("proposed_hint1"),
                "solution": review.get("proposed_solution"),
                "explanation": review.get("proposed_explanation"),
            }
            question_update = {key: value for key, value in proposals.items() if value}
            if question_update:
                (
                    client.table("questions")
                    .update(question_update)
                    .eq("id", str(review["question_id"]))
                    .execute()
                )

            update = {
                "status": ReviewStatus.APPROVED.value,
                "approved_by": str(admin.id),
                "approved_at": now,
            }
            action = AuditAction.REVIEW_APPROVED
            details = {"reviewId": str(review_id)}
            message = "Review approved and question updated"
        else:
            reason = (rejection_reason or "").strip() or "Rejected by admin"
            update = {
                "status": ReviewStatus.REJECTED.value,
                "approved_by": str(admin.id),
                "approved_at": now,
                "rejection_reason": reason,
            }
            action = AuditAction.REVIEW_REJECTED
            details = {"reviewId": str(review_id), "rejectionReason": reason}
            message = "Review rejected"

        response = client.table("question_reviews").update(update).eq("id", str(review_id)).execute()
        updated = response.data[0] if response.data else {**review, **update}
        logger.info(f"Review {review_id} {update['status']} by {admin.id}")

        AuditService.log_action(
            admin.id, action, AuditEntity.QUESTION, review["question_id"], details, meta,
        )
        return {"review": updated, "message": message}

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    @staticmethod
    def history(
        question_id: str | None = None,
        status: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict[str, Any]:
        """Reviews newest first, with pagination."""
        limit = min(limit, HISTORY_MAX_LIMIT)
        start, end = paginate_range(page, limit)

        client = SupabaseClient.get_client()
        query = (
            client.table("question_reviews")
            .select(HISTORY_COLUMNS, count="exact")
            .order("created_at", desc=True)
        )
        if question_id:
            query = query.eq("question_id", question_id)
        if status:
            query = query.eq("status", status)

        response = query.range(start, end).execute()
        return {
            "reviews": response.data or [],
            "pagination": build_pagination(response.count or 0, page, limit),
        }
