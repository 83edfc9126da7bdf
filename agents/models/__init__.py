# =============================================================================
# agents/models/ - Agent Output Schemas
# =============================================================================
# This package contains Pydantic models for what the question reviewer
# produces:
# - review_result.py: ReviewResult, GeneratedHints, ValidationResult
# =============================================================================

from agents.models.review_result import (
    GeneratedHints,
    ReviewResult,
    ValidationResult,
)

__all__ = [
    "GeneratedHints",
    "ReviewResult",
    "ValidationResult",
]
