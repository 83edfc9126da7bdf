# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .audit_service import AuditService
from .dashboard_service import DashboardService
from .import_service import ImportService
from .notification_service import NotificationService
from .progress_service import ProgressService
from .question_selector import QuestionSelector, SelectionResult
from .question_service import QuestionService
from .review_service import ReviewService
from .session_service import SessionService
from .storage_service import StorageService
from .subject_service import SubjectService
from .topic_service import TopicService
from .user_service import UserService

__all__ = [
    "AuditService",
    "DashboardService",
    "ImportService",
    "NotificationService",
    "ProgressService",
    "QuestionSelector",
    "SelectionResult",
    "QuestionService",
    "ReviewService",
    "SessionService",
    "StorageService",
    "SubjectService",
    "TopicService",
    "UserService",
]
