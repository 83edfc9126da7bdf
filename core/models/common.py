# =============================================================================
# core/models/common.py - Shared Schemas
# =============================================================================
# Enums and response blocks used by more than one resource.
# =============================================================================

from enum import Enum

from pydantic import BaseModel, Field


class Difficulty(str, Enum):
    """Difficulty levels stored on questions and topics."""
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class CatalogStatus(str, Enum):
    """Visibility of subjects and topics. Inactive ones are archived."""
    ACTIVE = "active"
    INACTIVE = "inactive"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class Pagination(BaseModel):
    """
    Pagination block attached to every list response.

    Example:
        {"total": 42, "page": 2, "limit": 20, "totalPages": 3}
    """
    total: int = Field(..., ge=0, description="Total rows matching the filters")
    page: int = Field(..., ge=1, description="Current page (1-indexed)")
    limit: int = Field(..., ge=1, description="Rows per page")
    totalPages: int = Field(..., ge=0, description="Number of pages")
