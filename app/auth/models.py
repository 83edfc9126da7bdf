# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for authentication data.
# =============================================================================

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class UserRole(str, Enum):
    """Roles stored in public.users.role."""
    STUDENT = "student"
    TUTOR = "tutor"
    ADMIN = "admin"


class UserStatus(str, Enum):
    """Account states stored in public.users.status."""
    ACTIVE = "active"
    SUSPENDED = "suspended"
    DELETED = "deleted"


class AuthUser(BaseModel):
    """
    Authenticated user extracted from Supabase JWT.

    This is the minimal user info available from the token itself,
    without querying the database.
    """
    id: UUID
    email: Optional[str] = None

    class Config:
        frozen = True  # Make immutable


class StaffUser(BaseModel):
    """
    Authenticated user whose public.users row has been loaded.

    Produced by the role dependencies; handlers use it to decide
    admin-only behaviour and to attribute audit entries.
    """
    id: UUID
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: UserRole
    status: UserStatus = UserStatus.ACTIVE

    class Config:
        frozen = True

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class UserResponse(BaseModel):
    """
    Current user's profile returned by /auth/me.

    Includes additional profile data from the public.users table.
    """
    id: UUID
    email: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    grade: Optional[str] = None
    role: UserRole = UserRole.STUDENT
    status: UserStatus = UserStatus.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
