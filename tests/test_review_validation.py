# =============================================================================
# tests/test_review_validation.py - Review Heuristic Tests
# =============================================================================
# Tests for the text-quality checks run on AI-generated reviews.
# =============================================================================

from agents.models.review_result import ReviewResult
from agents.review_validation import (
    check_for_incomplete_content,
    validate_explanation,
    validate_hints,
    validate_review_result,
    validate_solution,
)

GOOD_SOLUTION = (
    "Step 1: Subtract 3 from both sides to get 2x = 4.\n"
    "Step 2: Divide both sides by 2 to get x = 2.\n"
    "Therefore the correct answer is B."
)
GOOD_EXPLANATION = (
    "The correct answer is B because isolating x requires undoing the addition and then the "
    "multiplication. Option A comes from forgetting to divide, while C and D come from sign errors."
)


def good_review(**overrides) -> ReviewResult:
    data = {
        "hint1": "Think about what operation undoes addition.",
        "hint2": "Move the constant term to the other side of the equation first.",
        "hint3": "Subtract 3 from both sides, then divide both sides by the coefficient of x.",
        "solution": GOOD_SOLUTION,
        "explanation": GOOD_EXPLANATION,
        "tokens_used": 900,
    }
    data.update(overrides)
    return ReviewResult(**data)


class TestHints:

    def test_good_hints_pass(self):
        review = good_review()
        assert validate_hints(review.hint1, review.hint2, review.hint3) == []

    def test_missing_hints_reported_alone(self):
        issues = validate_hints("Some hint", "", "   ")
        assert issues == ["Hint 2 is missing or empty", "Hint 3 is missing or empty"]

    def test_hints_must_grow(self):
        issues = validate_hints("A fairly long first hint about the method", "Short", "A much longer third hint with details")
        assert "Hint 2 should be more detailed than Hint 1" in issues

    def test_slightly_shorter_hint_is_allowed(self):
        # 0.8 of the previous length is the floor
        assert validate_hints("a" * 10, "b" * 8, "c" * 8) == []

    def test_placeholder_detected_once_per_hint(self):
        issues = validate_hints("Try this [TODO]", "For example, consider the sum", "A longer placeholder hint text")
        assert issues.count("Hint 1 may contain placeholder text") == 1
        assert "Hint 2 may contain placeholder text" in issues
        assert "Hint 3 may contain placeholder text" in issues


class TestSolution:

    def test_missing(self):
        assert validate_solution("") == ["Solution is missing or empty"]

    def test_too_short(self):
        assert "Solution is too short (minimum 50 characters)" in validate_solution("x = 2")

    def test_long_solution_needs_steps(self):
        text = "We subtract three and then divide by two to isolate the variable. " * 4
        assert "Solution should be formatted with clear steps" in validate_solution(text)

    def test_numbered_solution_passes(self):
        assert validate_solution(GOOD_SOLUTION) == []


class TestExplanation:

    def test_too_short(self):
        assert validate_explanation("B is right.") == ["Explanation is too short (minimum 100 characters)"]

    def test_placeholder(self):
        text = GOOD_EXPLANATION + " [insert diagram]"
        assert "Explanation may contain placeholder text" in validate_explanation(text)


class TestReviewResult:

    def test_valid_review(self):
        result = validate_review_result(good_review())
        assert result.is_valid
        assert result.issues == []
        assert result.to_dict() == {"isValid": True, "issues": [], "warnings": []}

    def test_warnings_do_not_invalidate(self):
        result = validate_review_result(good_review(tokens_used=12000))
        assert result.is_valid
        assert result.warnings == ["High token usage - review may be expensive"]

    def test_long_content_warning(self):
        long_solution = "Step 1: " + "a" * 5100
        result = validate_review_result(good_review(solution=long_solution))
        assert "Solution is very long - consider if it needs to be more concise" in result.warnings

    def test_issues_invalidate(self):
        result = validate_review_result(good_review(explanation=""))
        assert not result.is_valid
        assert result.issues == ["Explanation is missing or empty"]


class TestIncompleteContent:

    def test_trailing_ellipsis(self):
        assert check_for_incomplete_content("Then we divide by...")

    def test_markers(self):
        assert check_for_incomplete_content("Answer [truncated]")
        assert check_for_incomplete_content("To be continued")

    def test_complete_text(self):
        assert not check_for_incomplete_content(GOOD_SOLUTION)
