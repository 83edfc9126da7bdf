# =============================================================================
# core/models/profile.py - Self-Service Profile Schemas
# =============================================================================
# What a signed-in user may change about themselves. Role, status and the
# running totals are not writable here.
# =============================================================================

from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class SchoolGrade(str, Enum):
    SS1 = "SS1"
    SS2 = "SS2"
    SS3 = "SS3"
    GRADUATE = "Graduate"


class ProfileUpdate(BaseModel):
    """Partial profile update; omitted fields are left unchanged."""
    full_name: str | None = Field(default=None, min_length=1, max_length=200)
    grade: SchoolGrade | None = None
    avatar_url: str | None = Field(default=None, max_length=2000)


class SubjectPreferencesUpdate(BaseModel):
    """Replaces the whole preference list; an empty list clears it."""
    subject_ids: list[UUID] = Field(default_factory=list, max_length=50)
