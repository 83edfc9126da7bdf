# =============================================================================
# app/auth/__init__.py - Authentication Module
# =============================================================================
# Provides JWT-based authentication using Supabase Auth, plus role checks
# for the admin portal.
#
# Usage:
#   from app.auth import get_current_user, AuthUser
#
#   @router.get("/protected")
#   async def protected(user: AuthUser = Depends(get_current_user)):
#       return {"user_id": user.id}
# =============================================================================

from app.auth.dependencies import (
    get_current_profile,
    get_current_user,
    require_admin,
    require_roles,
    require_staff,
)
from app.auth.models import AuthUser, StaffUser, UserResponse, UserRole, UserStatus

__all__ = [
    "get_current_user",
    "get_current_profile",
    "require_roles",
    "require_staff",
    "require_admin",
    "AuthUser",
    "StaffUser",
    "UserResponse",
    "UserRole",
    "UserStatus",
]
