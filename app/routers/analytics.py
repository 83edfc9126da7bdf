# =============================================================================
# app/routers/analytics.py - Student Stats and Analytics Endpoints
# =============================================================================

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query

from app.auth import AuthUser, get_current_user
from core.services.progress_service import ProgressService

router = APIRouter()


@router.get("/stats")
async def get_stats(user: AuthUser = Depends(get_current_user)):
    """Running totals, streak and XP."""
    return ProgressService.get_stats(user.id)


@router.get("/progress")
async def get_progress(user: AuthUser = Depends(get_current_user)):
    """Per-topic progress rows."""
    return {"progress": ProgressService.get_progress(user.id)}


@router.get("")
async def get_analytics(
    user: AuthUser = Depends(get_current_user),
    period: Annotated[Literal["7D", "30D", "90D", "All"], Query()] = "7D",
):
    """
    Dashboard analytics for a period.

    Includes a daily activity series, subject performance and the
    strongest and weakest topics.
    """
    return ProgressService.get_analytics(user.id, period)
