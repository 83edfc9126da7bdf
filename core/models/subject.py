# =============================================================================
# core/models/subject.py - Subject Schemas
# =============================================================================
# Request bodies for the admin subject endpoints:
# - SubjectCreate: New subject (slug derived from name when omitted)
# - SubjectUpdate: Partial update; only supplied fields are written
# =============================================================================

from pydantic import BaseModel, Field

from .common import CatalogStatus


class SubjectCreate(BaseModel):
    """
    Schema for creating a subject.

    Example:
        {
            "name": "Mathematics",
            "exam_types": ["WAEC", "JAMB"],
            "color": "#3B82F6"
        }
    """
    name: str = Field(..., max_length=120, description="Display name (unique)")
    slug: str | None = Field(default=None, max_length=120, description="URL slug; derived from name if omitted")
    description: str | None = Field(default=None, description="Short description shown in the catalogue")
    icon: str | None = Field(default=None, description="Icon identifier or emoji")
    color: str | None = Field(default=None, description="Hex colour used in the UI")
    exam_types: list[str] | None = Field(default=None, description="Exams this subject is offered for")
    status: CatalogStatus = Field(default=CatalogStatus.ACTIVE)


class SubjectUpdate(BaseModel):
    """Partial update of a subject."""
    name: str | None = Field(default=None, max_length=120)
    slug: str | None = Field(default=None, max_length=120)
    description: str | None = None
    icon: str | None = None
    color: str | None = None
    exam_types: list[str] | None = None
    status: CatalogStatus | None = None
    display_order: int | None = Field(default=None, ge=0)
