# =============================================================================
# tests/test_models.py - Pydantic Model Tests
# =============================================================================
# Unit tests for the request models to ensure:
# - Valid data is accepted and parsed correctly
# - Invalid data raises ValidationError
# - Default values work as expected
#
# Run with: pytest tests/test_models.py -v
# =============================================================================

from uuid import UUID, uuid4

import pytest
from pydantic import ValidationError

from app.auth.models import StaffUser, UserRole, UserStatus
from core.models import (
    AnswerSubmit,
    BatchReviewRequest,
    BulkQuestionUpdate,
    CatalogStatus,
    Difficulty,
    QuestionCreate,
    QuestionUpdate,
    ReportBulkAction,
    SessionCreate,
    SessionMode,
    SessionProgressUpdate,
    SessionStatus,
    SubjectCreate,
    TopicReorderRequest,
    options_map,
)


# =============================================================================
# Catalogue Model Tests
# =============================================================================

class TestSubjectCreate:
    """Tests for SubjectCreate model."""

    def test_defaults(self):
        subject = SubjectCreate(name="Mathematics")

        assert subject.status == CatalogStatus.ACTIVE
        assert subject.slug is None
        assert subject.exam_types is None

    def test_name_required(self):
        with pytest.raises(ValidationError) as exc_info:
            SubjectCreate()
        assert "name" in str(exc_info.value)

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            SubjectCreate(name="Physics", status="hidden")


class TestTopicReorderRequest:

    def test_valid_items(self):
        first, second = uuid4(), uuid4()
        request = TopicReorderRequest(items=[
            {"id": str(first), "display_order": 2},
            {"id": str(second), "display_order": 1},
        ])

        assert [item.id for item in request.items] == [first, second]
        assert request.subject_id is None

    def test_empty_items_rejected(self):
        with pytest.raises(ValidationError):
            TopicReorderRequest(items=[])

    def test_negative_order_rejected(self):
        with pytest.raises(ValidationError):
            TopicReorderRequest(items=[{"id": str(uuid4()), "display_order": -1}])


# =============================================================================
# Question Model Tests
# =============================================================================

class TestQuestionModels:

    def test_create_defaults_to_draft(self):
        question = QuestionCreate(question_text="Solve 2x = 4", option_a="1", option_b="2", correct_answer="B")
        assert question.status == "draft"

    def test_update_tracks_only_supplied_fields(self):
        update = QuestionUpdate(hint1="Think about division")
        assert update.model_dump(exclude_unset=True) == {"hint1": "Think about division"}

    def test_study_links_accept_string_or_list(self):
        assert QuestionCreate(further_study_links="https://a.com").further_study_links == "https://a.com"
        assert QuestionCreate(further_study_links=["https://a.com"]).further_study_links == ["https://a.com"]

    def test_exam_year_range(self):
        with pytest.raises(ValidationError):
            QuestionCreate(exam_year=1850)

    def test_bulk_update_requires_ids(self):
        with pytest.raises(ValidationError):
            BulkQuestionUpdate(question_ids=[], action="publish")

    def test_bulk_update_action_enum(self):
        with pytest.raises(ValidationError):
            BulkQuestionUpdate(question_ids=[uuid4()], action="delete")

    def test_options_map(self):
        options = options_map({"option_a": "1", "option_b": "2"})
        assert options == {"A": "1", "B": "2", "C": None, "D": None, "E": None}


# =============================================================================
# Session Model Tests
# =============================================================================

class TestSessionCreate:
    """Tests for SessionCreate model."""

    def test_defaults(self):
        session = SessionCreate(subject_id=str(uuid4()))

        assert session.mode == SessionMode.PRACTICE
        assert session.total_questions == 10
        assert session.topic_ids is None
        assert isinstance(session.subject_id, UUID)

    def test_timed_requires_limit(self):
        with pytest.raises(ValidationError) as exc_info:
            SessionCreate(subject_id=uuid4(), mode="timed")
        assert "time_limit_seconds" in str(exc_info.value)

    def test_timed_with_limit(self):
        session = SessionCreate(subject_id=uuid4(), mode="timed", time_limit_seconds=600)
        assert session.mode == SessionMode.TIMED

    def test_question_count_bounds(self):
        with pytest.raises(ValidationError):
            SessionCreate(subject_id=uuid4(), total_questions=0)
        with pytest.raises(ValidationError):
            SessionCreate(subject_id=uuid4(), total_questions=101)

    def test_distribution_keys_parsed(self):
        topic = uuid4()
        session = SessionCreate(subject_id=uuid4(), distribution={str(topic): 5})
        assert session.distribution == {topic: 5}

    def test_negative_distribution_rejected(self):
        with pytest.raises(ValidationError):
            SessionCreate(subject_id=uuid4(), distribution={str(uuid4()): -1})


class TestSessionUpdates:

    def test_progress_update_status(self):
        update = SessionProgressUpdate(status="paused", last_question_index=3)
        assert update.status == SessionStatus.PAUSED

    def test_answer_defaults(self):
        answer = AnswerSubmit(question_id=uuid4(), user_answer="C")

        assert answer.time_spent_seconds == 0
        assert answer.hint_used is False
        assert answer.attempt_count == 1

    def test_hint_level_bounds(self):
        with pytest.raises(ValidationError):
            AnswerSubmit(question_id=uuid4(), hint_level=4)


# =============================================================================
# Review / Import Model Tests
# =============================================================================

class TestReviewAndImportModels:

    def test_batch_review_defaults(self):
        request = BatchReviewRequest(question_ids=[uuid4()])
        assert request.batch_size == 10
        assert request.background is False

    def test_batch_review_needs_questions(self):
        with pytest.raises(ValidationError):
            BatchReviewRequest(question_ids=[])

    def test_report_bulk_action_ids_optional(self):
        action = ReportBulkAction(action="publish")
        assert action.question_ids is None


# =============================================================================
# Auth Model Tests
# =============================================================================

class TestStaffUser:

    def test_admin_flag(self):
        admin = StaffUser(id=uuid4(), role=UserRole.ADMIN)
        tutor = StaffUser(id=uuid4(), role="tutor")

        assert admin.is_admin
        assert not tutor.is_admin
        assert tutor.status == UserStatus.ACTIVE

    def test_frozen(self):
        admin = StaffUser(id=uuid4(), role=UserRole.ADMIN)
        with pytest.raises(ValidationError):
            admin.role = UserRole.TUTOR

    def test_difficulty_values(self):
        assert [d.value for d in Difficulty] == ["Easy", "Medium", "Hard"]
