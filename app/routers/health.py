# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# /health is a static heartbeat. /health/ready checks every dependency a
# student or admin request can touch:
# - database: the subjects catalogue answers a query
# - storage: the question image bucket exists
# - broker: the Celery broker used for background reviews and reminders
# and reports the size of the published catalogue.
# =============================================================================

import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel

from app.config import settings
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

router = APIRouter()

API_VERSION = "1.0.0"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _unhealthy(e: Exception) -> str:
    return f"unhealthy: {str(e)[:50]}"


# =============================================================================
# Response Models
# =============================================================================

class HealthResponse(BaseModel):
    status: str
    timestamp: str
    environment: str
    version: str


class ChecksResponse(BaseModel):
    database: str = "unknown"
    storage: str = "unknown"
    broker: str = "unknown"


class CatalogueResponse(BaseModel):
    """Published content available to students."""
    subjects: int = 0
    published_questions: int = 0


class ReadinessResponse(BaseModel):
    status: str
    checks: ChecksResponse
    catalogue: CatalogueResponse
    reviewer_model: str
    timestamp: str


class LivenessResponse(BaseModel):
    status: str
    timestamp: str


# =============================================================================
# Checks
# =============================================================================

def _check_catalogue(checks: ChecksResponse) -> CatalogueResponse:
    catalogue = CatalogueResponse()
    try:
        catalogue.subjects = SupabaseClient.count_rows("subjects", status="active")
        catalogue.published_questions = SupabaseClient.count_rows("questions", status="published")
        checks.database = "healthy"
    except Exception as e:
        logger.warning(f"Readiness: database check failed: {e}")
        checks.database = _unhealthy(e)
    return catalogue


def _check_storage(checks: ChecksResponse) -> None:
    try:
        SupabaseClient.get_client().storage.get_bucket(settings.QUESTION_IMAGE_BUCKET)
        checks.storage = "healthy"
    except Exception as e:
        logger.warning(f"Readiness: bucket {settings.QUESTION_IMAGE_BUCKET} unavailable: {e}")
        checks.storage = _unhealthy(e)


def _check_broker(checks: ChecksResponse) -> None:
    from workers.celery_app import broker_status

    checks.broker = broker_status()
    if checks.broker != "healthy":
        logger.warning(f"Readiness: Celery broker {checks.broker}")


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Static heartbeat for load balancers."""
    return HealthResponse(
        status="healthy",
        timestamp=_now(),
        environment=settings.ENVIRONMENT,
        version=API_VERSION,
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check():
    """
    Dependency checks plus catalogue size.

    Status is "ready" when every check is healthy and "degraded"
    otherwise; the endpoint always answers 200.
    """
    checks = ChecksResponse()
    catalogue = _check_catalogue(checks)
    _check_storage(checks)
    _check_broker(checks)

    all_healthy = all(value == "healthy" for value in checks.model_dump().values())

    return ReadinessResponse(
        status="ready" if all_healthy else "degraded",
        checks=checks,
        catalogue=catalogue,
        reviewer_model=settings.OPENAI_MODEL,
        timestamp=_now(),
    )


@router.get("/health/live", response_model=LivenessResponse)
async def liveness_check():
    """Process is up; used for container restart decisions."""
    return LivenessResponse(status="alive", timestamp=_now())
