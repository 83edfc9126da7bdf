# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the ExamPrep API:
# - conftest.py: In-memory Supabase fake and user fixtures
# - test_models.py: Unit tests for Pydantic model validation
# - test_*_service.py / test_sessions.py / test_progress.py: Service logic
# - test_question_reviewer.py / test_review_validation.py: AI review
# - test_routers.py: HTTP layer, auth dependencies and error responses
#
# Run tests with: pytest
# =============================================================================
