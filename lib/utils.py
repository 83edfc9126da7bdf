# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common helpers used across services and routers:
# - UUID normalisation
# - Slug generation for subjects and topics
# - Pagination arithmetic
# - Request metadata extraction for audit entries
# =============================================================================

import math
import re
from typing import Any, Mapping
from uuid import UUID


# =============================================================================
# UUID Utilities
# =============================================================================

def normalize_uuid(value: str | UUID) -> str:
    """
    Normalize a UUID to string format.

    Example:
        subject_id = normalize_uuid(uuid_obj)  # "550e8400-..."
        subject_id = normalize_uuid("550e8400-...")  # "550e8400-..."
    """
    return str(value) if isinstance(value, UUID) else value


def is_uuid(value: str) -> bool:
    """Check whether a string parses as a UUID."""
    try:
        UUID(str(value))
        return True
    except ValueError:
        return False


# =============================================================================
# Text Utilities
# =============================================================================

_SLUG_STRIP = re.compile(r"[^a-z0-9\s-]")
_SLUG_SPACES = re.compile(r"\s+")
_SLUG_DASHES = re.compile(r"-+")


def slugify(text: str) -> str:
    """
    Build a URL slug from a display name.

    Lowercases, drops anything outside [a-z0-9 whitespace -], turns
    whitespace runs into "-" and collapses repeated dashes.

    Example:
        slugify("Further Mathematics!")  # "further-mathematics"
        slugify("  Use of  English ")    # "use-of-english"
    """
    slug = _SLUG_STRIP.sub("", text.lower().strip())
    slug = _SLUG_SPACES.sub("-", slug)
    slug = _SLUG_DASHES.sub("-", slug)
    return slug.strip("-")


def parse_study_links(value: Any) -> list[str] | None:
    """
    Normalise further-study links.

    Accepts a list or a comma-separated string; returns trimmed,
    non-empty entries, or None when nothing usable was supplied.
    """
    if value is None:
        return None
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = [str(v) for v in value if v is not None]
    else:
        return None
    links = [item.strip() for item in items if item and item.strip()]
    return links or None


def capitalize_difficulty(value: str | None) -> str | None:
    """Map "easy"/"MEDIUM"/"Hard" to the stored "Easy"/"Medium"/"Hard" form."""
    if not value:
        return None
    value = value.strip()
    return value[:1].upper() + value[1:].lower() if value else None


# =============================================================================
# Pagination
# =============================================================================

def paginate_range(page: int, limit: int) -> tuple[int, int]:
    """
    Convert a 1-indexed page into an inclusive PostgREST range.

    Example:
        paginate_range(2, 20)  # (20, 39)
    """
    offset = (page - 1) * limit
    return offset, offset + limit - 1


def total_pages(total: int, limit: int) -> int:
    """Number of pages needed for `total` rows at `limit` per page."""
    return math.ceil(total / limit) if limit > 0 else 0


def build_pagination(total: int, page: int, limit: int) -> dict[str, int]:
    """Pagination block returned by every list endpoint."""
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": total_pages(total, limit),
    }


# =============================================================================
# Request Metadata
# =============================================================================

def get_client_ip(headers: Mapping[str, str]) -> str | None:
    """
    Best-effort client IP from proxy headers.

    Uses the first x-forwarded-for entry, then x-real-ip.
    """
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return headers.get("x-real-ip") or None
