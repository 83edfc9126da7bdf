# =============================================================================
# agents/models/review_result.py - Question Review Schemas
# =============================================================================
# This module defines what the QuestionReviewer produces and what the
# validation heuristics report about it:
# - GeneratedHints: Parsed output of the hints call
# - ReviewResult: Hints + solution + explanation with usage metrics
# - ValidationResult: Blocking issues and non-blocking warnings
#
# Example:
#   result = await reviewer.review_question(question, "Mathematics")
#   validation = validate_review_result(result)
#   if not validation.is_valid:
#       print(validation.issues)
# =============================================================================

from __future__ import annotations

from pydantic import BaseModel, Field


class GeneratedHints(BaseModel):
    """Three progressive hints, from broad guidance to near-complete."""

    hint1: str = ""
    hint2: str = ""
    hint3: str = ""
    tokens_used: int = Field(default=0, ge=0)


class ReviewResult(BaseModel):
    """
    Everything generated for one question.

    Proposed content is stored on a question_reviews row and only
    copied onto the question when an admin approves it.
    """

    hint1: str = Field(default="", description="Broad guidance")
    hint2: str = Field(default="", description="More specific direction")
    hint3: str = Field(default="", description="Near-complete guidance")
    solution: str = Field(default="", description="Step-by-step worked solution")
    explanation: str = Field(default="", description="Why the answer is correct")

    tokens_used: int = Field(
        default=0,
        ge=0,
        description="Prompt + completion tokens summed over all calls"
    )

    duration_ms: int = Field(
        default=0,
        ge=0,
        description="Wall-clock time for the whole review"
    )


class ValidationResult(BaseModel):
    """
    Outcome of the text-quality heuristics.

    Issues make a review fail; warnings are informational.
    """

    is_valid: bool = True
    issues: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    def to_dict(self) -> dict:
        return {"isValid": self.is_valid, "issues": self.issues, "warnings": self.warnings}
