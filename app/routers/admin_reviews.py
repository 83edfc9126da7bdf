# =============================================================================
# app/routers/admin_reviews.py - AI Question Review Endpoints
# =============================================================================
# Generate AI hints, solutions and explanations for questions, then
# approve or reject the proposals.
# =============================================================================

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from app.auth import StaffUser, require_staff
from app.dependencies import RequestMetaDep
from core.models.review import BatchReviewRequest, ReviewCreateRequest, ReviewDecision, ReviewStatus
from core.services.review_service import ReviewService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_review(
    request: ReviewCreateRequest,
    meta: RequestMetaDep,
    staff: StaffUser = Depends(require_staff),
):
    """
    Review one question.

    The proposal is stored as pending when it passes validation, or as
    failed with the validation issues otherwise.
    """
    review = await ReviewService.create_review(request.question_id, staff, meta)
    return {"review": review}


@router.post("/batch")
async def batch_review(
    request: BatchReviewRequest,
    meta: RequestMetaDep,
    staff: StaffUser = Depends(require_staff),
):
    """
    Review several questions one after another.

    With background=true the batch is queued and a task id is returned;
    poll GET /api/v1/tasks/{task_id} for progress.
    """
    question_ids = [str(qid) for qid in request.question_ids]

    if request.background:
        try:
            from workers.tasks import review_questions_batch

            task = review_questions_batch.delay(
                question_ids, staff.model_dump(mode="json"), request.batch_size
            )
        except Exception as e:
            logger.error(f"Error submitting review batch: {e}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Failed to queue review batch. Is Redis running? Error: {e}",
            )
        return {
            "task_id": task.id,
            "status": "PENDING",
            "message": "Review batch queued. Use GET /api/v1/tasks/{task_id} to check status.",
        }

    return await ReviewService.batch_review(
        question_ids, staff, batch_size=request.batch_size, meta=meta
    )


@router.get("/history")
async def review_history(
    staff: StaffUser = Depends(require_staff),
    question_id: Annotated[UUID | None, Query()] = None,
    status_filter: Annotated[ReviewStatus | None, Query(alias="status")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
):
    return ReviewService.history(
        question_id=str(question_id) if question_id else None,
        status=status_filter.value if status_filter else None,
        page=page,
        limit=limit,
    )


@router.post("/{review_id}/approve")
async def decide_review(
    review_id: Annotated[UUID, Path(description="Review UUID")],
    request: ReviewDecision,
    meta: RequestMetaDep,
    staff: StaffUser = Depends(require_staff),
):
    """
    Approve or reject a pending review.

    Approval copies the proposed hints, solution and explanation onto
    the question.
    """
    return ReviewService.decide(
        review_id, request.approved, staff, rejection_reason=request.rejection_reason, meta=meta
    )
