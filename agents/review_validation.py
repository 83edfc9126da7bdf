# =============================================================================
# agents/review_validation.py - Review Content Heuristics
# =============================================================================
# Text-quality checks applied to AI-generated review content before an
# admin sees it. A review with any issue is stored as "failed".
#
# Checks:
# - Hints: present, progressively more detailed, no placeholder text
# - Solution: present, at least 50 chars, no placeholders, numbered steps
#   when longer than 200 chars
# - Explanation: present, at least 100 chars, no placeholders
# - Warnings: very long solution/explanation, high token usage
#
# Usage:
#   validation = validate_review_result(result)
# =============================================================================

from __future__ import annotations

import re

from agents.models.review_result import ReviewResult, ValidationResult

# Later hints must be at least this fraction of the previous hint's length
HINT_PROGRESSION_RATIO = 0.8

MIN_SOLUTION_LENGTH = 50
MIN_EXPLANATION_LENGTH = 100
STEPS_REQUIRED_ABOVE = 200
LONG_CONTENT_LENGTH = 5000
HIGH_TOKEN_USAGE = 10000

_BRACKETS = re.compile(r"\[.*?\]")
_TODO = re.compile(r"TODO", re.IGNORECASE)
_PLACEHOLDER = re.compile(r"placeholder", re.IGNORECASE)

HINT_PLACEHOLDERS = (
    _BRACKETS,
    _TODO,
    _PLACEHOLDER,
    re.compile(r"example", re.IGNORECASE),
    re.compile(r"lorem ipsum", re.IGNORECASE),
)
SOLUTION_PLACEHOLDERS = (_BRACKETS, _TODO, _PLACEHOLDER, re.compile(r"example solution", re.IGNORECASE))
EXPLANATION_PLACEHOLDERS = (_BRACKETS, _TODO, _PLACEHOLDER, re.compile(r"example explanation", re.IGNORECASE))

STEP_PATTERN = re.compile(r"step\s*\d+|1\.|2\.|3\.", re.IGNORECASE)

INCOMPLETE_PATTERNS = (
    re.compile(r"\.\.\.$"),
    re.compile(r"incomplete", re.IGNORECASE),
    re.compile(r"to be continued", re.IGNORECASE),
    re.compile(r"\[cut off\]", re.IGNORECASE),
    re.compile(r"\[truncated\]", re.IGNORECASE),
)


def _has_placeholder(text: str, patterns: tuple[re.Pattern, ...]) -> bool:
    return any(pattern.search(text) for pattern in patterns)


# =============================================================================
# Field Checks
# =============================================================================

def validate_hints(hint1: str, hint2: str, hint3: str) -> list[str]:
    """
    Hints must exist and grow in detail.

    Missing hints are reported alone; progression and placeholder
    checks only run when all three are present.
    """
    hints = [hint1 or "", hint2 or "", hint3 or ""]
    issues = [
        f"Hint {index} is missing or empty"
        for index, hint in enumerate(hints, start=1)
        if not hint.strip()
    ]
    if issues:
        return issues

    for index in (1, 2):
        if len(hints[index]) < len(hints[index - 1]) * HINT_PROGRESSION_RATIO:
            issues.append(f"Hint {index + 1} should be more detailed than Hint {index}")

    for index, hint in enumerate(hints, start=1):
        if _has_placeholder(hint, HINT_PLACEHOLDERS):
            issues.append(f"Hint {index} may contain placeholder text")

    return issues


def validate_solution(solution: str) -> list[str]:
    solution = solution or ""
    if not solution.strip():
        return ["Solution is missing or empty"]

    issues = []
    if len(solution.strip()) < MIN_SOLUTION_LENGTH:
        issues.append(f"Solution is too short (minimum {MIN_SOLUTION_LENGTH} characters)")
    if _has_placeholder(solution, SOLUTION_PLACEHOLDERS):
        issues.append("Solution may contain placeholder text")
    if not STEP_PATTERN.search(solution) and len(solution) > STEPS_REQUIRED_ABOVE:
        issues.append("Solution should be formatted with clear steps")
    return issues


def validate_explanation(explanation: str) -> list[str]:
    explanation = explanation or ""
    if not explanation.strip():
        return ["Explanation is missing or empty"]

    issues = []
    if len(explanation.strip()) < MIN_EXPLANATION_LENGTH:
        issues.append(f"Explanation is too short (minimum {MIN_EXPLANATION_LENGTH} characters)")
    if _has_placeholder(explanation, EXPLANATION_PLACEHOLDERS):
        issues.append("Explanation may contain placeholder text")
    return issues


# =============================================================================
# Public API
# =============================================================================

def validate_review_result(result: ReviewResult) -> ValidationResult:
    """
    Run every heuristic over a generated review.

    Returns:
        ValidationResult with is_valid False when any issue was found
    """
    issues = (
        validate_hints(result.hint1, result.hint2, result.hint3)
        + validate_solution(result.solution)
        + validate_explanation(result.explanation)
    )

    warnings = []
    if len(result.solution) > LONG_CONTENT_LENGTH:
        warnings.append("Solution is very long - consider if it needs to be more concise")
    if len(result.explanation) > LONG_CONTENT_LENGTH:
        warnings.append("Explanation is very long - consider if it needs to be more concise")
    if result.tokens_used > HIGH_TOKEN_USAGE:
        warnings.append("High token usage - review may be expensive")

    return ValidationResult(is_valid=not issues, issues=issues, warnings=warnings)


def check_for_incomplete_content(content: str) -> bool:
    """True when text looks cut off or unfinished."""
    return any(pattern.search(content or "") for pattern in INCOMPLETE_PATTERNS)
