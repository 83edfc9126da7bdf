# =============================================================================
# agents/prompts/ - Prompts for the Question Reviewer
# =============================================================================
# - review_prompts.py: Hints, solution and explanation prompts
# =============================================================================

from agents.prompts.review_prompts import (
    SYSTEM_PROMPT,
    build_explanation_prompt,
    build_hints_prompt,
    build_solution_prompt,
    format_question_block,
    is_mathematics,
)

__all__ = [
    "SYSTEM_PROMPT",
    "build_hints_prompt",
    "build_solution_prompt",
    "build_explanation_prompt",
    "format_question_block",
    "is_mathematics",
]
