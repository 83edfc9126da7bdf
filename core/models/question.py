# =============================================================================
# core/models/question.py - Question Schemas
# =============================================================================
# Request bodies for the admin question endpoints.
#
# Field types are validated here; content rules that need more context
# (correct answer has a matching option, alt text required with an image,
# topic belongs to subject) are checked in QuestionService so they can be
# reported together as a list of errors.
# =============================================================================

from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

ANSWER_LETTERS = ("A", "B", "C", "D", "E")

# Columns returned for a full question row
QUESTION_COLUMNS = (
    "id, subject_id, topic_id, question_text, passage, passage_id, "
    "question_image_url, image_alt_text, image_width, image_height, "
    "option_a, option_b, option_c, option_d, option_e, correct_answer, "
    "explanation, hint, hint1, hint2, hint3, solution, further_study_links, "
    "difficulty, exam_type, exam_year, status, created_by, import_report_id, "
    "created_at, updated_at"
)


class QuestionStatus(str, Enum):
    """
    Lifecycle of a question.

    - draft: Being written, invisible to students
    - published: Eligible for practice sessions
    - archived: Soft-deleted
    """
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class ExamType(str, Enum):
    """Exam bodies accepted by the CSV importer."""
    WAEC = "WAEC"
    JAMB = "JAMB"
    NECO = "NECO"
    GCE = "GCE"


class BulkQuestionAction(str, Enum):
    PUBLISH = "publish"
    ARCHIVE = "archive"
    DRAFT = "draft"


class QuestionContent(BaseModel):
    """Fields shared by create, update and preview payloads."""
    subject_id: UUID | None = None
    topic_id: UUID | None = None
    question_text: str | None = None
    passage: str | None = None
    passage_id: str | None = None
    question_image_url: str | None = None
    image_alt_text: str | None = None
    image_width: int | None = None
    image_height: int | None = None
    option_a: str | None = None
    option_b: str | None = None
    option_c: str | None = None
    option_d: str | None = None
    option_e: str | None = None
    correct_answer: str | None = None
    explanation: str | None = None
    hint: str | None = None
    hint1: str | None = None
    hint2: str | None = None
    hint3: str | None = None
    solution: str | None = None
    further_study_links: list[str] | str | None = Field(
        default=None,
        description="List of URLs or a comma-separated string"
    )
    difficulty: str | None = None
    exam_type: str | None = None
    exam_year: int | None = Field(default=None, ge=1900, le=2100)


class QuestionCreate(QuestionContent):
    """
    Schema for creating a question.

    Example:
        {
            "subject_id": "...",
            "topic_id": "...",
            "question_text": "Solve 2x + 3 = 7",
            "option_a": "1", "option_b": "2",
            "correct_answer": "B",
            "difficulty": "Easy",
            "exam_type": "WAEC"
        }
    """
    status: str = Field(default=QuestionStatus.DRAFT.value, description="draft or published")


class QuestionUpdate(QuestionContent):
    """Partial update; fields left unset are not touched."""
    status: str | None = None


class QuestionQuickUpdate(BaseModel):
    """Edits available from the question list without opening the full form."""
    question_text: str | None = None
    option_a: str | None = None
    option_b: str | None = None
    option_c: str | None = None
    option_d: str | None = None
    option_e: str | None = None
    correct_answer: str | None = None
    explanation: str | None = None
    hint: str | None = None
    hint1: str | None = None
    hint2: str | None = None
    hint3: str | None = None
    solution: str | None = None
    difficulty: str | None = None
    status: str | None = None


class BulkQuestionUpdate(BaseModel):
    question_ids: list[UUID] = Field(..., min_length=1)
    action: BulkQuestionAction


class BulkQuestionDelete(BaseModel):
    question_ids: list[UUID] = Field(..., min_length=1)


def options_map(data: dict[str, Any]) -> dict[str, str | None]:
    """Map answer letters to option text for a question-like dict."""
    return {letter: data.get(f"option_{letter.lower()}") for letter in ANSWER_LETTERS}
