# =============================================================================
# app/routers/sessions.py - Practice Session Endpoints
# =============================================================================
# Handles practice/test session creation, progress, answers and results.
# All endpoints require authentication and act on the caller's sessions.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status
from pydantic import BaseModel, Field

from app.auth import AuthUser, get_current_user
from core.models.session import AnswerSubmit, SessionCreate, SessionProgressUpdate, SessionStatus
from core.services.session_service import SessionService

router = APIRouter()


# =============================================================================
# Request Models
# =============================================================================

class SessionCompleteRequest(BaseModel):
    """Optional final time when completing a session."""
    time_spent_seconds: int | None = Field(default=None, ge=0)


# =============================================================================
# Endpoints
# =============================================================================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_session(
    request: SessionCreate,
    user: AuthUser = Depends(get_current_user),
):
    """
    Start a session.

    Questions are selected server-side, skipping ones the user has
    already seen in this subject. Test and timed sessions don't include
    answers until completed.
    """
    return SessionService.create_session(user.id, request)


@router.get("")
async def list_sessions(
    user: AuthUser = Depends(get_current_user),
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    status_filter: Annotated[SessionStatus | None, Query(alias="status")] = None,
):
    """List the caller's sessions, unfinished ones first."""
    sessions = SessionService.list_sessions(
        user.id, limit=limit, status=status_filter.value if status_filter else None
    )
    return {"sessions": sessions}


@router.get("/{session_id}")
async def get_session(
    session_id: Annotated[UUID, Path(description="Session UUID")],
    user: AuthUser = Depends(get_current_user),
):
    return SessionService.get_session(session_id, user.id)


@router.patch("/{session_id}")
async def update_session(
    session_id: Annotated[UUID, Path(description="Session UUID")],
    request: SessionProgressUpdate,
    user: AuthUser = Depends(get_current_user),
):
    """Pause, resume or save position."""
    return {"session": SessionService.update_progress(session_id, user.id, request)}


@router.get("/{session_id}/resume")
async def check_resume(
    session_id: Annotated[UUID, Path(description="Session UUID")],
    user: AuthUser = Depends(get_current_user),
):
    """Whether the session can be resumed."""
    return SessionService.can_resume(session_id, user.id)


@router.post("/{session_id}/answers")
async def submit_answer(
    session_id: Annotated[UUID, Path(description="Session UUID")],
    request: AnswerSubmit,
    user: AuthUser = Depends(get_current_user),
):
    """
    Record an answer.

    Resubmitting for the same question replaces the earlier answer.
    """
    return SessionService.record_answer(session_id, user.id, request)


@router.post("/{session_id}/complete")
async def complete_session(
    session_id: Annotated[UUID, Path(description="Session UUID")],
    user: AuthUser = Depends(get_current_user),
    request: SessionCompleteRequest | None = None,
):
    """Finish the session and return its score and grade."""
    time_spent = request.time_spent_seconds if request else None
    return SessionService.complete_session(session_id, user.id, time_spent_seconds=time_spent)


@router.get("/{session_id}/results")
async def get_results(
    session_id: Annotated[UUID, Path(description="Session UUID")],
    user: AuthUser = Depends(get_current_user),
):
    return SessionService.get_results(session_id, user.id)
