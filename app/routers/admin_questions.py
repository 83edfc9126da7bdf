# =============================================================================
# app/routers/admin_questions.py - Admin Question Endpoints
# =============================================================================
# Question management for the admin portal:
# - CRUD with filtering and pagination
# - Quick edits, bulk status changes and bulk archive
# - Passage grouping, preview and image upload
# Static paths are declared before /{question_id}.
# =============================================================================

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, Path, Query, UploadFile, status

from app.auth import StaffUser, require_admin, require_staff
from app.dependencies import RequestMetaDep
from core.models.common import SortOrder
from core.models.question import (
    BulkQuestionDelete,
    BulkQuestionUpdate,
    QuestionContent,
    QuestionCreate,
    QuestionQuickUpdate,
    QuestionUpdate,
)
from core.services.question_service import QuestionService
from core.services.storage_service import StorageService

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Collection Endpoints
# =============================================================================

@router.get("")
async def list_questions(
    staff: StaffUser = Depends(require_staff),
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    subject_id: Annotated[UUID | None, Query()] = None,
    topic_id: Annotated[UUID | None, Query()] = None,
    exam_type: Annotated[str | None, Query()] = None,
    year: Annotated[int | None, Query()] = None,
    difficulty: Annotated[str | None, Query()] = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    search: Annotated[str | None, Query()] = None,
    sort_by: Annotated[str, Query()] = "created_at",
    sort_order: Annotated[SortOrder, Query()] = SortOrder.DESC,
):
    """List questions with filters and pagination."""
    return QuestionService.list_questions(
        page=page,
        limit=limit,
        subject_id=str(subject_id) if subject_id else None,
        topic_id=str(topic_id) if topic_id else None,
        exam_type=exam_type,
        year=year,
        difficulty=difficulty,
        status=status_filter,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order.value,
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_question(
    request: QuestionCreate,
    meta: RequestMetaDep,
    staff: StaffUser = Depends(require_staff),
):
    return {"question": QuestionService.create_question(request, staff, meta)}


@router.post("/upload-image", status_code=status.HTTP_201_CREATED)
async def upload_image(
    file: Annotated[UploadFile, File(description="JPEG, PNG, GIF or WebP image")],
    staff: StaffUser = Depends(require_staff),
):
    """
    Upload a question image.

    Returns the public URL plus the detected width and height.
    """
    content = await file.read()
    logger.info(f"Image upload by {staff.id}: {file.filename} ({len(content)} bytes)")
    uploaded = StorageService.upload_question_image(
        content,
        file.filename or "image",
        file.content_type or "",
    )
    return {"success": True, **uploaded}


@router.post("/preview")
async def preview_question(
    request: QuestionContent,
    staff: StaffUser = Depends(require_staff),
):
    """Render a question as students would see it, without saving."""
    return QuestionService.build_preview(request)


@router.get("/by-passage")
async def questions_by_passage(
    passage_id: Annotated[str, Query(min_length=1, description="Shared passage identifier")],
    staff: StaffUser = Depends(require_staff),
):
    """Questions that share a reading passage, in display order."""
    return {"questions": QuestionService.list_by_passage(passage_id)}


@router.put("/bulk")
async def bulk_update(
    request: BulkQuestionUpdate,
    meta: RequestMetaDep,
    staff: StaffUser = Depends(require_staff),
):
    """Publish, archive or return questions to draft."""
    return QuestionService.bulk_update_status(request.question_ids, request.action, staff, meta)


@router.delete("/bulk")
async def bulk_delete(
    request: BulkQuestionDelete,
    meta: RequestMetaDep,
    admin: StaffUser = Depends(require_admin),
):
    """Archive several questions."""
    return QuestionService.bulk_delete(request.question_ids, admin, meta)


# =============================================================================
# Item Endpoints
# =============================================================================

@router.get("/{question_id}")
async def get_question(
    question_id: Annotated[UUID, Path(description="Question UUID")],
    staff: StaffUser = Depends(require_staff),
):
    """Question with usage statistics."""
    return {"question": QuestionService.get_question_detail(question_id)}


@router.put("/{question_id}")
async def update_question(
    question_id: Annotated[UUID, Path(description="Question UUID")],
    request: QuestionUpdate,
    meta: RequestMetaDep,
    staff: StaffUser = Depends(require_staff),
):
    return {"question": QuestionService.update_question(question_id, request, staff, meta)}


@router.patch("/{question_id}")
async def quick_update_question(
    question_id: Annotated[UUID, Path(description="Question UUID")],
    request: QuestionQuickUpdate,
    meta: RequestMetaDep,
    staff: StaffUser = Depends(require_staff),
):
    """Edit a limited set of fields from the question list."""
    return {"question": QuestionService.quick_update(question_id, request, staff, meta)}


@router.delete("/{question_id}")
async def delete_question(
    question_id: Annotated[UUID, Path(description="Question UUID")],
    meta: RequestMetaDep,
    admin: StaffUser = Depends(require_admin),
):
    """Archive a question and remove its stored image."""
    return QuestionService.delete_question(question_id, admin, meta)
