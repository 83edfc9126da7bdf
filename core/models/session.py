# =============================================================================
# core/models/session.py - Practice Session Schemas
# =============================================================================
# These models define the API contract for practice/test sessions:
# - SessionCreate: Start a session (question selection happens server-side)
# - SessionProgressUpdate: Pause, resume and save position
# - AnswerSubmit: Record one answer
#
# A session is one user's attempt at a set of questions from one subject.
# =============================================================================

from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class SessionMode(str, Enum):
    """
    How the session is presented.

    - practice: Immediate feedback, hints and solutions available
    - test: Answers revealed only at the end
    - timed: Test mode with a time limit
    """
    PRACTICE = "practice"
    TEST = "test"
    TIMED = "timed"


class SessionStatus(str, Enum):
    """
    Possible states for a session.

    Flow: in_progress <-> paused -> completed
    """
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class SessionCreate(BaseModel):
    """
    Schema for starting a session.

    Either a single topic_id, a list of topic_ids, or a distribution
    mapping topic ids to question counts. With none of them the whole
    subject is used.

    Example:
        {
            "subject_id": "550e8400-...",
            "topic_ids": ["660e8400-...", "770e8400-..."],
            "mode": "test",
            "total_questions": 20
        }
    """
    subject_id: UUID = Field(..., description="Subject being practised")
    topic_id: UUID | None = Field(default=None, description="Single topic")
    topic_ids: list[UUID] | None = Field(default=None, description="Several topics")
    distribution: dict[UUID, int] | None = Field(
        default=None,
        description="Exact question count per topic"
    )
    mode: SessionMode = Field(default=SessionMode.PRACTICE)
    total_questions: int = Field(default=10, ge=1, le=100)
    time_limit_seconds: int | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _check_timed(self) -> "SessionCreate":
        if self.mode == SessionMode.TIMED and not self.time_limit_seconds:
            raise ValueError("time_limit_seconds is required for timed sessions")
        if self.distribution and any(count < 0 for count in self.distribution.values()):
            raise ValueError("distribution counts must not be negative")
        return self


class SessionProgressUpdate(BaseModel):
    """Save position or pause/resume an unfinished session."""
    status: SessionStatus | None = Field(default=None, description="in_progress or paused")
    last_question_index: int | None = Field(default=None, ge=0)
    time_spent_seconds: int | None = Field(default=None, ge=0)


class AnswerSubmit(BaseModel):
    """
    One answer within a session.

    Correctness is decided server-side from the stored question.
    """
    question_id: UUID
    user_answer: str | None = Field(default=None, description="A-E, or null when skipped")
    time_spent_seconds: int = Field(default=0, ge=0)
    hint_used: bool = False
    hint_level: int | None = Field(default=None, ge=0, le=3)
    solution_viewed: bool = False
    attempt_count: int = Field(default=1, ge=1)
