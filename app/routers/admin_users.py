# =============================================================================
# app/routers/admin_users.py - Admin User Endpoints
# =============================================================================
# Account management. Staff can list, view and edit profiles; creating,
# deleting and password resets are admin only. Role changes are checked
# in the service.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status

from app.auth import StaffUser, UserRole, UserStatus, require_admin, require_staff
from app.dependencies import RequestMetaDep
from core.models.common import SortOrder
from core.models.user import AdminUserCreate, AdminUserUpdate
from core.services.user_service import UserService

router = APIRouter()


@router.get("")
async def list_users(
    staff: StaffUser = Depends(require_staff),
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    search: Annotated[str | None, Query(description="Matches email or full name")] = None,
    role: Annotated[UserRole | None, Query()] = None,
    status_filter: Annotated[UserStatus | None, Query(alias="status")] = None,
    sort_by: Annotated[str, Query()] = "created_at",
    sort_order: Annotated[SortOrder, Query()] = SortOrder.DESC,
):
    return UserService.list_users(
        search=search,
        role=role.value if role else None,
        status=status_filter.value if status_filter else None,
        sort_by=sort_by,
        sort_order=sort_order.value,
        page=page,
        limit=limit,
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    request: AdminUserCreate,
    meta: RequestMetaDep,
    admin: StaffUser = Depends(require_admin),
):
    user = UserService.create_user(request, admin, meta)
    return {"user": user, "message": "User created successfully"}


@router.get("/{user_id}")
async def get_user(
    user_id: Annotated[UUID, Path(description="User UUID")],
    staff: StaffUser = Depends(require_staff),
):
    """Profile with session stats, recent sessions and role history."""
    return UserService.get_user_detail(user_id)


@router.put("/{user_id}")
async def update_user(
    user_id: Annotated[UUID, Path(description="User UUID")],
    request: AdminUserUpdate,
    meta: RequestMetaDep,
    staff: StaffUser = Depends(require_staff),
):
    user = UserService.update_user(user_id, request, staff, meta)
    return {"user": user, "message": "User updated successfully"}


@router.delete("/{user_id}")
async def delete_user(
    user_id: Annotated[UUID, Path(description="User UUID")],
    meta: RequestMetaDep,
    admin: StaffUser = Depends(require_admin),
):
    """Suspend an account."""
    return UserService.delete_user(user_id, admin, meta)


@router.post("/{user_id}/reset-password")
async def reset_password(
    user_id: Annotated[UUID, Path(description="User UUID")],
    meta: RequestMetaDep,
    admin: StaffUser = Depends(require_admin),
):
    """Email the user a password reset link."""
    return UserService.reset_password(user_id, admin, meta)
