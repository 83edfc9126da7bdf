# =============================================================================
# agents/ - AI Question Review
# =============================================================================
# This package contains the LLM-backed content reviewer:
# - question_reviewer.py: Generates hints, solution and explanation
# - review_validation.py: Text-quality heuristics over the generated content
#
# Models:
# - models/review_result.py: ReviewResult, ValidationResult
#
# Prompts:
# - prompts/review_prompts.py: Prompt builders for the three calls
# =============================================================================

from agents.question_reviewer import QuestionReviewer, ReviewError, with_retry
from agents.review_validation import check_for_incomplete_content, validate_review_result
from agents.models.review_result import GeneratedHints, ReviewResult, ValidationResult

__all__ = [
    # Reviewer
    "QuestionReviewer",
    "ReviewError",
    "with_retry",
    # Validation
    "validate_review_result",
    "check_for_incomplete_content",
    # Models
    "GeneratedHints",
    "ReviewResult",
    "ValidationResult",
]
