# =============================================================================
# app/routers/admin_dashboard.py - Admin Dashboard Endpoints
# =============================================================================

from fastapi import APIRouter, Depends

from app.auth import StaffUser, require_staff
from core.services.dashboard_service import DashboardService

router = APIRouter()


@router.get("")
async def dashboard_stats(staff: StaffUser = Depends(require_staff)):
    """User, content and activity numbers plus recent imports and users."""
    return DashboardService.get_stats()


@router.get("/alerts")
async def dashboard_alerts(staff: StaffUser = Depends(require_staff)):
    """Failed or stuck imports and content gaps, most severe first."""
    return {"alerts": DashboardService.get_alerts()}
