# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# These are injected into route handlers using Depends().
# =============================================================================

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request

from lib.supabase_client import SupabaseClient
from lib.utils import get_client_ip


def get_supabase_client() -> type[SupabaseClient]:
    """
    Get Supabase client instance.

    Returns the singleton client wrapper.
    """
    return SupabaseClient


@dataclass(frozen=True)
class RequestMeta:
    """Caller details recorded alongside audit entries."""
    ip_address: str | None = None
    user_agent: str | None = None


def get_request_meta(request: Request) -> RequestMeta:
    """Extract client IP and user agent from the incoming request."""
    ip = get_client_ip(request.headers)
    if ip is None and request.client is not None:
        ip = request.client.host
    return RequestMeta(
        ip_address=ip,
        user_agent=request.headers.get("user-agent"),
    )


# Type aliases for dependency injection
SupabaseDep = Annotated[type[SupabaseClient], Depends(get_supabase_client)]
RequestMetaDep = Annotated[RequestMeta, Depends(get_request_meta)]
