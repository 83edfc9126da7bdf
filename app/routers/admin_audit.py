# =============================================================================
# app/routers/admin_audit.py - Audit Log Endpoints
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.auth import StaffUser, require_staff
from core.services.audit_service import AuditService

router = APIRouter()


@router.get("")
async def list_audit_logs(
    staff: StaffUser = Depends(require_staff),
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
    admin_id: Annotated[UUID | None, Query()] = None,
    action: Annotated[str | None, Query()] = None,
    entity_type: Annotated[str | None, Query()] = None,
    start_date: Annotated[str | None, Query(description="ISO timestamp, inclusive")] = None,
    end_date: Annotated[str | None, Query(description="ISO timestamp, inclusive")] = None,
):
    """Admin actions, newest first."""
    return AuditService.list_logs(
        page=page,
        limit=limit,
        admin_id=str(admin_id) if admin_id else None,
        action=action,
        entity_type=entity_type,
        start_date=start_date,
        end_date=end_date,
    )
