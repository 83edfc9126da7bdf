# =============================================================================
# core/models/review.py - Question Review Schemas
# =============================================================================
# An AI review proposes hints, a worked solution and an explanation for a
# question. Proposals stay "pending" until an admin approves them, at
# which point they are copied onto the question.
# =============================================================================

from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class ReviewStatus(str, Enum):
    """
    Possible states for a review.

    - pending: Generated and validated, awaiting a decision
    - approved: Content copied onto the question
    - rejected: Discarded by an admin
    - failed: Generation or validation failed
    """
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    FAILED = "failed"


class ReviewType(str, Enum):
    SINGLE = "single"
    BATCH = "batch"


class ReviewCreateRequest(BaseModel):
    question_id: UUID = Field(..., description="Question to review")


class BatchReviewRequest(BaseModel):
    """
    Review several questions one after another.

    Only the first batch_size ids are processed. With background=true
    the batch runs in a Celery worker and a task id is returned.
    """
    question_ids: list[UUID] = Field(..., min_length=1)
    batch_size: int = Field(default=10, ge=1)
    background: bool = Field(default=False)


class ReviewDecision(BaseModel):
    """Approve or reject a pending review."""
    approved: bool
    rejection_reason: str | None = Field(default=None, max_length=1000)
