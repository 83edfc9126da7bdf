# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Every error carries a machine-readable code and, where possible, a
# suggestion telling the caller how to fix the request.
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class ExamPrepException(Exception):
    """
    Base exception for the ExamPrep API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "EXAMPREP_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Generic HTTP-Shaped Exceptions
# =============================================================================

class NotFoundError(ExamPrepException):
    """Raised when an entity doesn't exist (or the caller may not see it)."""

    def __init__(self, entity: str, entity_id: str, code: str | None = None):
        super().__init__(
            message=f"{entity.capitalize()} not found: {entity_id}",
            code=code or f"{entity.upper().replace(' ', '_')}_NOT_FOUND",
            status_code=404,
            suggestion=f"Check that the {entity} id is correct",
            details={f"{entity.replace(' ', '_')}_id": entity_id},
        )


class BadRequestError(ExamPrepException):
    """Raised for malformed or semantically invalid requests."""

    def __init__(
        self,
        message: str,
        code: str = "BAD_REQUEST",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=400,
            suggestion=suggestion,
            details=details,
        )


class ValidationFailedError(BadRequestError):
    """Raised when payload validation produces one or more field errors."""

    def __init__(self, errors: list[str], message: str = "Validation failed"):
        super().__init__(
            message=message,
            code="VALIDATION_FAILED",
            suggestion="Fix the listed fields and submit again",
            details={"errors": errors},
        )
        self.errors = errors


class ConflictError(ExamPrepException):
    """Raised when a write would violate a uniqueness or state rule."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=409,
            suggestion=suggestion,
            details=details,
        )


class DeleteBlockedError(ConflictError):
    """
    Raised when an entity still has dependants and cannot be hard-deleted.

    The response tells the client that archiving is possible instead.
    """

    def __init__(self, entity: str, counts: dict[str, int]):
        super().__init__(
            message=f"Cannot delete {entity} with associated content",
            code="DELETE_BLOCKED",
            suggestion="Retry with ?archive=true to archive it instead",
            details=counts,
        )

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["canDelete"] = False
        result["canArchive"] = True
        return result


class ForbiddenError(ExamPrepException):
    """Raised when the caller is authenticated but not allowed to act."""

    def __init__(self, message: str, code: str = "FORBIDDEN", suggestion: str | None = None):
        super().__init__(
            message=message,
            code=code,
            status_code=403,
            suggestion=suggestion,
        )


class InsufficientRoleError(ForbiddenError):
    """Raised when the caller's role is not in the allowed set."""

    def __init__(self, role: str | None, allowed: list[str]):
        super().__init__(
            message="Insufficient permissions",
            code="INSUFFICIENT_ROLE",
            suggestion=f"This action requires one of these roles: {', '.join(allowed)}",
        )
        self.details = {"role": role, "allowed_roles": allowed}


# =============================================================================
# Entity Not Found Exceptions
# =============================================================================

class SubjectNotFoundError(NotFoundError):
    """Raised when a subject ID or slug doesn't exist."""

    def __init__(self, subject_id: str):
        super().__init__("subject", subject_id)


class TopicNotFoundError(NotFoundError):
    """Raised when a topic ID doesn't exist."""

    def __init__(self, topic_id: str):
        super().__init__("topic", topic_id)


class QuestionNotFoundError(NotFoundError):
    """Raised when a question ID doesn't exist."""

    def __init__(self, question_id: str):
        super().__init__("question", question_id)


class SessionNotFoundError(NotFoundError):
    """Raised when a practice session doesn't exist or belongs to someone else."""

    def __init__(self, session_id: str):
        super().__init__("session", session_id)
        self.suggestion = "Check that the session_id is correct and belongs to you"


class ImportReportNotFoundError(NotFoundError):
    """Raised when an import report ID doesn't exist."""

    def __init__(self, report_id: str):
        super().__init__("import report", report_id, code="IMPORT_REPORT_NOT_FOUND")


class ReviewNotFoundError(NotFoundError):
    """Raised when a question review ID doesn't exist."""

    def __init__(self, review_id: str):
        super().__init__("review", review_id)


class UserNotFoundError(NotFoundError):
    """Raised when a user ID doesn't exist."""

    def __init__(self, user_id: str):
        super().__init__("user", user_id)


class NotificationNotFoundError(NotFoundError):
    """Raised when a notification doesn't exist or belongs to someone else."""

    def __init__(self, notification_id: str):
        super().__init__("notification", notification_id)


# =============================================================================
# Upload Exceptions
# =============================================================================

class InvalidFileTypeError(ExamPrepException):
    """Raised when uploaded file type is not allowed."""

    def __init__(self, content_type: str, allowed: list[str]):
        super().__init__(
            message=f"Invalid file type: {content_type}",
            code="INVALID_FILE_TYPE",
            status_code=400,
            suggestion=f"Only these file types are supported: {', '.join(allowed)}",
            details={"content_type": content_type, "allowed_types": allowed}
        )


class FileTooLargeError(ExamPrepException):
    """Raised when uploaded file exceeds size limit."""

    def __init__(self, size_mb: float, max_mb: int):
        super().__init__(
            message=f"File too large: {size_mb:.1f}MB (max: {max_mb}MB)",
            code="FILE_TOO_LARGE",
            status_code=413,
            suggestion=f"Upload a file smaller than {max_mb}MB",
            details={"size_mb": size_mb, "max_mb": max_mb}
        )


class StorageUploadError(ExamPrepException):
    """Raised when file upload to storage fails."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Failed to upload file to storage: {error}",
            code="STORAGE_UPLOAD_ERROR",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
            details={"error": error}
        )


# =============================================================================
# Review Exceptions
# =============================================================================

class ReviewGenerationError(ExamPrepException):
    """Raised when the AI reviewer could not produce content for a question."""

    def __init__(self, question_id: str, error: str, review_id: str | None = None):
        details = {"question_id": question_id, "error": error}
        if review_id:
            details["review_id"] = review_id
        super().__init__(
            message=f"Failed to generate review: {error}",
            code="REVIEW_GENERATION_FAILED",
            status_code=500,
            suggestion="Retry the review; check the OpenAI key and quota if it keeps failing",
            details=details,
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def examprep_exception_handler(
    request: Request,
    exc: ExamPrepException
) -> JSONResponse:
    """
    Convert ExamPrepException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )
