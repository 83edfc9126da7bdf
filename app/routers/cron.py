# =============================================================================
# app/routers/cron.py - Scheduled Job Endpoints
# =============================================================================
# Endpoints called by an external scheduler. They authenticate with the
# shared CRON_SECRET bearer token instead of a user JWT.
# =============================================================================

import hmac
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.config import settings
from core.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter()

cron_security = HTTPBearer(auto_error=False)


async def verify_cron_secret(
    credentials: HTTPAuthorizationCredentials | None = Depends(cron_security),
) -> None:
    """
    Require Authorization: Bearer {CRON_SECRET}.

    Raises:
        HTTPException: 401 when the secret is unset, missing or wrong
    """
    expected = settings.CRON_SECRET
    provided = credentials.credentials if credentials else ""
    if not expected or not hmac.compare_digest(provided, expected):
        logger.warning("Rejected cron request with invalid secret")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )


@router.post("/daily-reminders", dependencies=[Depends(verify_cron_secret)])
async def daily_reminders():
    """Send today's practice reminders to inactive students."""
    result = NotificationService.send_daily_reminders()
    return {"success": True, **result}
