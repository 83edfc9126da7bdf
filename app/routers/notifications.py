# =============================================================================
# app/routers/notifications.py - Notification Endpoints
# =============================================================================
# In-app notifications for the authenticated user.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from app.auth import AuthUser, get_current_user
from core.services.notification_service import NotificationService

router = APIRouter()


@router.get("")
async def list_notifications(
    user: AuthUser = Depends(get_current_user),
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    unread_only: Annotated[bool, Query()] = False,
):
    notifications = NotificationService.list_notifications(user.id, limit=limit, unread_only=unread_only)
    return {
        "notifications": notifications,
        "unreadCount": NotificationService.unread_count(user.id),
    }


@router.get("/unread-count")
async def unread_count(user: AuthUser = Depends(get_current_user)):
    return {"count": NotificationService.unread_count(user.id)}


@router.post("/read-all")
async def mark_all_read(user: AuthUser = Depends(get_current_user)):
    """Mark every unread notification as read."""
    count = NotificationService.mark_all_read(user.id)
    return {"updated": count}


@router.post("/{notification_id}/read")
async def mark_read(
    notification_id: Annotated[UUID, Path(description="Notification UUID")],
    user: AuthUser = Depends(get_current_user),
):
    """Mark one of the caller's notifications as read."""
    return {"notification": NotificationService.mark_read(notification_id, user.id)}
