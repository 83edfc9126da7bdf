# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# API endpoints for authentication-related operations.
#
# Note: Actual signup/login is handled by Supabase Auth client-side.
# These routes are for getting user info after authentication.
# =============================================================================

import logging
from fastapi import APIRouter, Depends

from app.auth.dependencies import get_current_user
from app.auth.models import AuthUser, UserResponse
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    user: AuthUser = Depends(get_current_user)
) -> UserResponse:
    """
    Get the current authenticated user's profile.

    Returns:
        UserResponse: User profile with id, email, full_name, role, status

    Raises:
        401: If not authenticated
    """
    try:
        profile = SupabaseClient.fetch_by_id("users", user.id)
    except SupabaseClientError as e:
        logger.warning(f"Could not fetch user profile: {e}")
        profile = None

    if profile:
        return UserResponse(**profile)

    # User exists in auth but not yet in public.users
    # (might happen if the signup trigger hasn't run yet)
    return UserResponse(id=user.id, email=user.email)


@router.get("/verify")
async def verify_token(
    user: AuthUser = Depends(get_current_user)
) -> dict:
    """
    Verify that the current token is valid.

    Returns:
        dict: Confirmation with user_id

    Raises:
        401: If token is invalid or expired
    """
    return {
        "valid": True,
        "user_id": str(user.id),
        "email": user.email
    }
