# =============================================================================
# app/routers/admin_subjects.py - Admin Subject Endpoints
# =============================================================================
# Subject management for the admin portal. Staff can read and edit;
# deletion is admin only.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status

from app.auth import StaffUser, require_admin, require_staff
from app.dependencies import RequestMetaDep
from core.models.common import CatalogStatus, SortOrder
from core.models.subject import SubjectCreate, SubjectUpdate
from core.services.subject_service import SubjectService

router = APIRouter()


@router.get("")
async def list_subjects(
    staff: StaffUser = Depends(require_staff),
    search: Annotated[str | None, Query()] = None,
    status_filter: Annotated[CatalogStatus | None, Query(alias="status")] = None,
    sort_by: Annotated[str, Query()] = "display_order",
    sort_order: Annotated[SortOrder, Query()] = SortOrder.ASC,
):
    subjects = SubjectService.list_subjects(
        search=search,
        status=status_filter.value if status_filter else None,
        sort_by=sort_by,
        sort_order=sort_order.value,
    )
    return {"subjects": subjects}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_subject(
    request: SubjectCreate,
    meta: RequestMetaDep,
    staff: StaffUser = Depends(require_staff),
):
    """Create a subject; the slug is derived from the name when omitted."""
    return {"subject": SubjectService.create_subject(request, staff, meta)}


@router.get("/{subject_id}")
async def get_subject(
    subject_id: Annotated[UUID, Path(description="Subject UUID")],
    staff: StaffUser = Depends(require_staff),
):
    return SubjectService.get_subject_detail(subject_id)


@router.put("/{subject_id}")
async def update_subject(
    subject_id: Annotated[UUID, Path(description="Subject UUID")],
    request: SubjectUpdate,
    meta: RequestMetaDep,
    staff: StaffUser = Depends(require_staff),
):
    return {"subject": SubjectService.update_subject(subject_id, request, staff, meta)}


@router.delete("/{subject_id}")
async def delete_subject(
    subject_id: Annotated[UUID, Path(description="Subject UUID")],
    meta: RequestMetaDep,
    admin: StaffUser = Depends(require_admin),
    archive: Annotated[bool, Query(description="Archive instead when content exists")] = False,
):
    """
    Delete a subject.

    Subjects with topics or questions return 409 unless archive=true,
    in which case they are set to inactive.
    """
    return SubjectService.delete_subject(subject_id, admin, archive=archive, meta=meta)
