# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - common.py: Shared enums and the pagination block
# - subject.py / topic.py: Catalogue schemas
# - question.py: Question CRUD, bulk and preview schemas
# - session.py: Practice session schemas
# - review.py: AI question review schemas
# - import_report.py: CSV import schemas
# - user.py: Admin user management schemas
# - notification.py / audit.py: Notification and audit vocabularies
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# Shared
# -----------------------------------------------------------------------------
from .common import CatalogStatus, Difficulty, Pagination, SortOrder

# -----------------------------------------------------------------------------
# Catalogue
# -----------------------------------------------------------------------------
from .subject import SubjectCreate, SubjectUpdate
from .topic import TopicCreate, TopicReorderItem, TopicReorderRequest, TopicUpdate

# -----------------------------------------------------------------------------
# Questions
# -----------------------------------------------------------------------------
from .question import (
    ANSWER_LETTERS,
    QUESTION_COLUMNS,
    BulkQuestionAction,
    BulkQuestionDelete,
    BulkQuestionUpdate,
    ExamType,
    QuestionContent,
    QuestionCreate,
    QuestionQuickUpdate,
    QuestionStatus,
    QuestionUpdate,
    options_map,
)

# -----------------------------------------------------------------------------
# Practice Sessions
# -----------------------------------------------------------------------------
from .session import (
    AnswerSubmit,
    SessionCreate,
    SessionMode,
    SessionProgressUpdate,
    SessionStatus,
)

# -----------------------------------------------------------------------------
# Reviews, Imports, Users
# -----------------------------------------------------------------------------
from .review import BatchReviewRequest, ReviewCreateRequest, ReviewDecision, ReviewStatus, ReviewType
from .import_report import (
    CsvPayload,
    ImportProcessRequest,
    ImportReportUpdate,
    ImportStatus,
    ReportBulkAction,
    ReportQuestionAction,
)
from .user import AdminUserCreate, AdminUserUpdate

# -----------------------------------------------------------------------------
# Vocabularies
# -----------------------------------------------------------------------------
from .audit import AuditAction, AuditEntity
from .notification import NotificationType

__all__ = [
    "CatalogStatus", "Difficulty", "Pagination", "SortOrder",
    "SubjectCreate", "SubjectUpdate",
    "TopicCreate", "TopicUpdate", "TopicReorderItem", "TopicReorderRequest",
    "ANSWER_LETTERS", "QUESTION_COLUMNS", "ExamType", "QuestionStatus",
    "QuestionContent", "QuestionCreate", "QuestionUpdate", "QuestionQuickUpdate",
    "BulkQuestionAction", "BulkQuestionUpdate", "BulkQuestionDelete", "options_map",
    "SessionMode", "SessionStatus", "SessionCreate", "SessionProgressUpdate", "AnswerSubmit",
    "ReviewStatus", "ReviewType", "ReviewCreateRequest", "BatchReviewRequest", "ReviewDecision",
    "ImportStatus", "CsvPayload", "ImportProcessRequest", "ImportReportUpdate",
    "ReportQuestionAction", "ReportBulkAction",
    "AdminUserCreate", "AdminUserUpdate",
    "AuditAction", "AuditEntity", "NotificationType",
]
