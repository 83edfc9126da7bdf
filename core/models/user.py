# =============================================================================
# core/models/user.py - User Management Schemas
# =============================================================================
# Request bodies for the admin user endpoints. Role and status enums live
# in app.auth.models next to the role dependencies that use them.
# =============================================================================

from pydantic import BaseModel, Field

from app.auth.models import UserRole, UserStatus


class AdminUserCreate(BaseModel):
    """
    Create an account on behalf of someone.

    The auth user is created already confirmed and a profile row is
    written to public.users.
    """
    email: str = Field(..., max_length=320)
    password: str = Field(..., description="At least 6 characters")
    full_name: str | None = Field(default=None, max_length=200)
    role: UserRole = Field(default=UserRole.STUDENT)


class AdminUserUpdate(BaseModel):
    """Partial update; role changes are restricted to admins."""
    full_name: str | None = Field(default=None, max_length=200)
    role: UserRole | None = None
    status: UserStatus | None = None
