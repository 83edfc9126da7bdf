# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Provides dependency injection for authentication.
#
# Supports both:
# - ES256 (new Supabase JWT signing keys) via JWKS
# - HS256 (legacy Supabase JWT secret) as fallback
#
# On top of token verification it loads the caller's public.users row
# and gates admin-portal routes by role:
#   require_staff - admins and tutors
#   require_admin - admins only
#
# Usage:
#   from app.auth import require_staff, StaffUser
#
#   @router.get("/admin/questions")
#   async def list_questions(user: StaffUser = Depends(require_staff)):
#       ...
# =============================================================================

import logging
import time
from uuid import UUID

import httpx

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError

from app.config import settings
from app.auth.models import AuthUser, StaffUser, UserRole, UserStatus
from app.exceptions import InsufficientRoleError
from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)

# HTTP Bearer token extractor
security = HTTPBearer()

# Audience claim on Supabase access tokens
TOKEN_AUDIENCE = "authenticated"

JWKS_CACHE_TTL = 3600  # 1 hour

# Signing keys published by the Supabase project, refreshed hourly
_jwks: dict = {"keys": [], "fetched_at": 0.0}


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _signing_keys() -> list[dict]:
    """JWKS keys from {SUPABASE_URL}/auth/v1/.well-known/jwks.json, cached."""
    now = time.time()
    if _jwks["keys"] and now - _jwks["fetched_at"] < JWKS_CACHE_TTL:
        return _jwks["keys"]

    url = f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1/.well-known/jwks.json"
    try:
        response = httpx.get(url, timeout=10)
        response.raise_for_status()
        _jwks["keys"] = response.json().get("keys", [])
        _jwks["fetched_at"] = now
        logger.debug(f"Fetched {len(_jwks['keys'])} signing keys from {url}")
    except (httpx.HTTPError, ValueError) as e:
        # Stale keys are still better than none
        logger.warning(f"Failed to fetch JWKS: {e}")
    return _jwks["keys"]


def verification_key(token: str) -> tuple[str | dict, str]:
    """
    Key and algorithm to verify a token with.

    ES256 tokens are matched to a published key by kid; HS256 tokens and
    anything unmatched use the legacy SUPABASE_JWT_SECRET.
    """
    try:
        header = jwt.get_unverified_header(token)
    except JWTError:
        return settings.SUPABASE_JWT_SECRET, "HS256"

    alg = header.get("alg", "HS256")
    kid = header.get("kid")
    if alg != "HS256" and kid:
        for key in _signing_keys():
            if key.get("kid") == kid:
                return key, alg
        logger.warning(f"No signing key for alg={alg}, kid={kid}, falling back to HS256")

    return settings.SUPABASE_JWT_SECRET, "HS256"


def decode_access_token(token: str) -> AuthUser:
    """
    Verify a Supabase access token and return its user.

    Raises:
        HTTPException: 401 if the token is expired, invalid or has no
                       usable subject
    """
    key, algorithm = verification_key(token)
    try:
        payload = jwt.decode(token, key, algorithms=[algorithm], audience=TOKEN_AUDIENCE)
    except ExpiredSignatureError:
        logger.warning("JWT token has expired")
        raise _unauthorized("Token has expired")
    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise _unauthorized(f"Invalid token: {e}")

    subject = payload.get("sub")
    if not subject:
        logger.warning("JWT token missing 'sub' claim")
        raise _unauthorized("Invalid token: missing user ID")
    try:
        user_id = UUID(subject)
    except ValueError:
        logger.warning(f"Invalid UUID in token: {subject}")
        raise _unauthorized("Invalid token: malformed user ID")

    return AuthUser(id=user_id, email=payload.get("email"))


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> AuthUser:
    """
    The authenticated user from the Bearer token.

    Usage:
        @router.get("/sessions")
        async def list_sessions(user: AuthUser = Depends(get_current_user)):
            ...
    """
    user = decode_access_token(credentials.credentials)
    logger.debug(f"Authenticated user: {user.id}")
    return user



# =============================================================================
# Profile and Role Dependencies
# =============================================================================

async def get_current_profile(
    user: AuthUser = Depends(get_current_user)
) -> StaffUser:
    """
    Load the caller's public.users row.

    Raises:
        HTTPException: 404 if the profile row is missing,
                       403 if the account is suspended or deleted
    """
    try:
        profile = SupabaseClient.fetch_user_profile(user.id)
    except SupabaseClientError as e:
        logger.error(f"Failed to load profile for {user.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not load user profile",
        )

    if not profile:
        logger.warning(f"No profile row for authenticated user {user.id}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    account_status = profile.get("status") or UserStatus.ACTIVE.value
    if account_status != UserStatus.ACTIVE.value:
        logger.info(f"Rejected {account_status} user {user.id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Account is {account_status}",
        )

    return StaffUser(
        id=user.id,
        email=profile.get("email") or user.email,
        full_name=profile.get("full_name"),
        role=profile.get("role") or UserRole.STUDENT.value,
        status=account_status,
    )


def require_roles(*roles: UserRole):
    """
    Build a dependency that only lets the given roles through.

    Usage:
        @router.delete("/{id}")
        async def delete(user: StaffUser = Depends(require_roles(UserRole.ADMIN))):
            ...
    """
    allowed = [r.value for r in roles]

    async def _check_role(
        profile: StaffUser = Depends(get_current_profile)
    ) -> StaffUser:
        if profile.role.value not in allowed:
            logger.info(f"User {profile.id} with role {profile.role.value} denied (needs {allowed})")
            raise InsufficientRoleError(profile.role.value, allowed)
        return profile

    return _check_role


# Admin portal access (admins and tutors)
require_staff = require_roles(UserRole.ADMIN, UserRole.TUTOR)

# Destructive or account-level actions
require_admin = require_roles(UserRole.ADMIN)
