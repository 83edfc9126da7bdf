# =============================================================================
# core/models/topic.py - Topic Schemas
# =============================================================================
# Topics belong to exactly one subject. Slugs are unique within a subject.
# =============================================================================

from uuid import UUID

from pydantic import BaseModel, Field

from .common import CatalogStatus, Difficulty


class TopicCreate(BaseModel):
    """
    Schema for creating a topic.

    Example:
        {
            "subject_id": "550e8400-e29b-41d4-a716-446655440000",
            "name": "Quadratic Equations",
            "difficulty": "Medium"
        }
    """
    subject_id: UUID = Field(..., description="Parent subject")
    name: str = Field(..., max_length=160)
    slug: str | None = Field(default=None, max_length=160, description="Derived from name if omitted")
    description: str | None = None
    difficulty: Difficulty | None = None
    status: CatalogStatus = Field(default=CatalogStatus.ACTIVE)


class TopicUpdate(BaseModel):
    """Partial update of a topic."""
    subject_id: UUID | None = None
    name: str | None = Field(default=None, max_length=160)
    slug: str | None = Field(default=None, max_length=160)
    description: str | None = None
    difficulty: Difficulty | None = None
    status: CatalogStatus | None = None
    display_order: int | None = Field(default=None, ge=0)


class TopicReorderItem(BaseModel):
    id: UUID
    display_order: int = Field(..., ge=0)


class TopicReorderRequest(BaseModel):
    """
    New display order for a set of topics.

    When subject_id is given every topic must belong to that subject.
    """
    items: list[TopicReorderItem] = Field(..., min_length=1)
    subject_id: UUID | None = None
