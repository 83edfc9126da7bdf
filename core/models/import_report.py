# =============================================================================
# core/models/import_report.py - CSV Import Schemas
# =============================================================================
# These models define the API contract for bulk question imports:
# - CsvPayload / ImportProcessRequest: CSV text posted by the admin UI
# - ImportReportUpdate: Rename or correct the status of a report
# - ReportBulkAction: Act on the questions created by one import
# =============================================================================

from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class ImportStatus(str, Enum):
    """
    Possible states for an import report.

    Flow: pending -> processing -> completed | failed
    """
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ReportQuestionAction(str, Enum):
    PUBLISH = "publish"
    ARCHIVE = "archive"
    DRAFT = "draft"
    DELETE = "delete"


class CsvPayload(BaseModel):
    csv_content: str = Field(..., min_length=1, description="Raw CSV text")


class ImportProcessRequest(CsvPayload):
    filename: str = Field(default="import.csv", max_length=255)


class ImportReportUpdate(BaseModel):
    filename: str | None = Field(default=None, min_length=1, max_length=255)
    status: ImportStatus | None = None


class ReportBulkAction(BaseModel):
    """
    Apply an action to questions of one import.

    With question_ids omitted the action applies to the whole batch.
    """
    action: ReportQuestionAction
    question_ids: list[UUID] | None = None
