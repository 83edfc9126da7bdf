# =============================================================================
# core/models/audit.py - Audit Log Vocabulary
# =============================================================================
# Action and entity names written to admin_audit_logs.
# =============================================================================

from enum import Enum


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    ROLE_CHANGE = "ROLE_CHANGE"
    STATUS_CHANGE = "STATUS_CHANGE"
    BULK_PUBLISH = "BULK_PUBLISH"
    BULK_ARCHIVE = "BULK_ARCHIVE"
    BULK_DELETE = "BULK_DELETE"
    REVIEW_CREATED = "question_review_created"
    REVIEW_FAILED = "question_review_failed"
    REVIEW_APPROVED = "question_review_approved"
    REVIEW_REJECTED = "question_review_rejected"
    REVIEW_BATCH_CREATED = "question_review_batch_created"


class AuditEntity(str, Enum):
    USER = "user"
    QUESTION = "question"
    SUBJECT = "subject"
    TOPIC = "topic"
    IMPORT = "import"
