# =============================================================================
# app/routers/admin_topics.py - Admin Topic Endpoints
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status

from app.auth import StaffUser, require_admin, require_staff
from app.dependencies import RequestMetaDep
from core.models.common import CatalogStatus, SortOrder
from core.models.topic import TopicCreate, TopicReorderRequest, TopicUpdate
from core.services.topic_service import TopicService

router = APIRouter()


@router.get("")
async def list_topics(
    staff: StaffUser = Depends(require_staff),
    subject_id: Annotated[UUID | None, Query()] = None,
    search: Annotated[str | None, Query()] = None,
    status_filter: Annotated[CatalogStatus | None, Query(alias="status")] = None,
    sort_by: Annotated[str, Query()] = "display_order",
    sort_order: Annotated[SortOrder, Query()] = SortOrder.ASC,
):
    topics = TopicService.list_topics(
        subject_id=str(subject_id) if subject_id else None,
        search=search,
        status=status_filter.value if status_filter else None,
        sort_by=sort_by,
        sort_order=sort_order.value,
    )
    return {"topics": topics}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_topic(
    request: TopicCreate,
    meta: RequestMetaDep,
    staff: StaffUser = Depends(require_staff),
):
    return {"topic": TopicService.create_topic(request, staff, meta)}


@router.put("/reorder")
async def reorder_topics(
    request: TopicReorderRequest,
    meta: RequestMetaDep,
    staff: StaffUser = Depends(require_staff),
):
    """Apply new display_order values from drag-and-drop."""
    return TopicService.reorder_topics(request, staff, meta)


@router.get("/{topic_id}")
async def get_topic(
    topic_id: Annotated[UUID, Path(description="Topic UUID")],
    staff: StaffUser = Depends(require_staff),
):
    """Topic with question counts by difficulty, year and status."""
    return TopicService.get_topic_detail(topic_id)


@router.put("/{topic_id}")
async def update_topic(
    topic_id: Annotated[UUID, Path(description="Topic UUID")],
    request: TopicUpdate,
    meta: RequestMetaDep,
    staff: StaffUser = Depends(require_staff),
):
    return {"topic": TopicService.update_topic(topic_id, request, staff, meta)}


@router.delete("/{topic_id}")
async def delete_topic(
    topic_id: Annotated[UUID, Path(description="Topic UUID")],
    meta: RequestMetaDep,
    admin: StaffUser = Depends(require_admin),
    archive: Annotated[bool, Query(description="Archive instead when questions exist")] = False,
):
    return TopicService.delete_topic(topic_id, admin, archive=archive, meta=meta)
