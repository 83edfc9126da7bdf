# =============================================================================
# app/routers/catalog.py - Public Catalogue Endpoints
# =============================================================================
# Read-only access to active subjects and topics for students.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path

from core.services.subject_service import SubjectService

router = APIRouter()


@router.get("/subjects")
async def list_subjects():
    """Active subjects in display order."""
    return {"subjects": SubjectService.list_active_subjects()}


@router.get("/subjects/{id_or_slug}")
async def get_subject(
    id_or_slug: Annotated[str, Path(description="Subject UUID or slug")],
):
    """Fetch one active subject by id or slug."""
    return {"subject": SubjectService.get_subject(id_or_slug)}


@router.get("/subjects/{subject_id}/topics")
async def list_subject_topics(
    subject_id: Annotated[UUID, Path(description="Subject UUID")],
):
    return {"topics": SubjectService.list_active_topics(subject_id)}


@router.get("/topics/{topic_id}")
async def get_topic(
    topic_id: Annotated[UUID, Path(description="Topic UUID")],
):
    return {"topic": SubjectService.get_topic(topic_id)}
