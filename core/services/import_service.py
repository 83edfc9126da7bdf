# =============================================================================
# core/services/import_service.py - Bulk CSV Question Import
# =============================================================================
# Handles the CSV import workflow for the admin portal:
# - Template generation (comment header + columns + example rows)
# - Validation (per-row field checks, duplicates in file and database)
# - Processing (batched inserts tracked by an import_reports row)
# - Report management (list, detail, rename, delete, batch actions)
#
# CSV text is parsed with pandas; lines starting with "#" are comments.
# Subjects and topics are referenced by name or slug, case-insensitively.
# Reported row numbers are 1-based and count the header row, so the first
# data row is row 2.
# =============================================================================

import io
import logging
import re
from datetime import date, datetime, timezone
from typing import Any, Iterable
from urllib.parse import urlparse
from uuid import UUID

import pandas as pd

from app.auth.models import StaffUser
from app.config import settings
from app.dependencies import RequestMeta
from app.exceptions import BadRequestError, FileTooLargeError, ImportReportNotFoundError
from core.models.audit import AuditAction, AuditEntity
from core.models.import_report import (
    ImportReportUpdate,
    ImportStatus,
    ReportQuestionAction,
)
from core.models.question import ANSWER_LETTERS, ExamType, QuestionStatus
from core.services.audit_service import AuditService
from core.services.notification_service import NotificationService
from lib.supabase_client import SupabaseClient
from lib.utils import build_pagination, capitalize_difficulty, paginate_range, parse_study_links

logger = logging.getLogger(__name__)


# =============================================================================
# CSV Layout
# =============================================================================

TEMPLATE_COLUMNS = [
    "subject",
    "topic",
    "exam_type",
    "year",
    "difficulty",
    "question_text",
    "passage",
    "passage_id",
    "question_image_url",
    "image_alt_text",
    "image_width",
    "image_height",
    "option_a",
    "option_b",
    "option_c",
    "option_d",
    "option_e",
    "correct_answer",
    "hint",
    "solution",
    "further_study_links",
]

REQUIRED_FIELDS = [
    "subject",
    "topic",
    "exam_type",
    "year",
    "question_text",
    "option_a",
    "option_b",
    "correct_answer",
]

VALID_DIFFICULTIES = ("easy", "medium", "hard")
VALID_EXAM_TYPES = [e.value for e in ExamType]
PASSAGE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
YEAR_RANGE = (1900, 2100)

TEMPLATE_EXAMPLES = [
    {
        "subject": "Government",
        "topic": "Nigerian History",
        "exam_type": "WAEC",
        "year": "2023",
        "difficulty": "medium",
        "question_text": "What is the capital of Nigeria?",
        "option_a": "Lagos",
        "option_b": "Abuja",
        "option_c": "Kano",
        "option_d": "Port Harcourt",
        "correct_answer": "B",
        "hint": "It became the capital in 1991",
        "solution": "Abuja became the capital of Nigeria on December 12, 1991, replacing Lagos.",
        "further_study_links": "https://example.com/nigerian-history",
    },
    {
        "subject": "English Language",
        "topic": "Comprehension",
        "exam_type": "JAMB",
        "year": "2024",
        "difficulty": "hard",
        "question_text": "What emotion does the boy experience in the passage?",
        "passage": (
            "The young boy ran through the forest, his heart pounding with fear. "
            "Behind him, he could hear the hunters approaching. "
            "He knew he had to find shelter before nightfall."
        ),
        "passage_id": "PASSAGE_ENG_001",
        "option_a": "He was afraid",
        "option_b": "He was excited",
        "option_c": "He was calm",
        "option_d": "He was angry",
        "correct_answer": "A",
        "hint": "Look for emotional descriptors in the text",
        "solution": 'The passage explicitly states "his heart pounding with fear", indicating the boy was afraid.',
        "further_study_links": "https://example.com/reading-comprehension",
    },
    {
        "subject": "Mathematics",
        "topic": "Geometry",
        "exam_type": "NECO",
        "year": "2023",
        "difficulty": "medium",
        "question_text": "What is the measure of angle ABC in the diagram?",
        "question_image_url": "https://example.com/images/triangle-abc.png",
        "image_alt_text": "Right triangle ABC with angle A marked as 30 degrees and angle C marked as 60 degrees",
        "image_width": "400",
        "image_height": "300",
        "option_a": "30°",
        "option_b": "60°",
        "option_c": "90°",
        "option_d": "120°",
        "correct_answer": "C",
        "hint": "Remember that angles in a triangle sum to 180°",
        "solution": "Using the triangle angle sum property: 30° + 60° + angle B = 180°, therefore angle B = 90°",
        "further_study_links": "https://example.com/triangle-properties",
    },
]

TEMPLATE_INSTRUCTIONS = [
    "ExamPrep Question Import Template",
    "Instructions:",
    "1. Fill in the rows below with your question data",
    f"2. Required fields: {', '.join(REQUIRED_FIELDS)}",
    "3. Optional fields: " + ", ".join(c for c in TEMPLATE_COLUMNS if c not in REQUIRED_FIELDS),
    "4. subject and topic may be given by name or slug",
    f"5. exam_type must be one of: {', '.join(VALID_EXAM_TYPES)}",
    "6. difficulty must be one of: easy, medium, hard (default: medium)",
    f"7. correct_answer must be one of: {', '.join(ANSWER_LETTERS)}",
    "8. passage: Use for comprehension questions; can be shared across multiple questions using passage_id",
    "9. passage_id: Optional identifier to group questions that share the same passage",
    "10. image_alt_text: Required if question_image_url is provided (for accessibility)",
    "11. image_width, image_height: Optional dimensions in pixels for the image",
    "12. For multiple study links, separate with commas",
    "13. Lines starting with # are ignored; keep the header row below",
]


def build_template(today: date | None = None) -> tuple[str, str]:
    """
    CSV template text and its download filename.

    Returns:
        (csv_text, filename)
    """
    today = today or date.today()
    header = "".join(f"# {line}\n" for line in TEMPLATE_INSTRUCTIONS) + "\n"

    df = pd.DataFrame(TEMPLATE_EXAMPLES, columns=TEMPLATE_COLUMNS).fillna("")
    buffer = io.StringIO()
    df.to_csv(buffer, index=False, lineterminator="\n")

    filename = f"examprep_question_import_template_{today.isoformat()}.csv"
    return header + buffer.getvalue(), filename


def read_import_csv(csv_content: str) -> list[dict[str, str]]:
    """
    Parse CSV text into row dicts of stripped-or-empty strings.

    Comment lines (first non-space char "#") and blank lines are skipped.

    Raises:
        FileTooLargeError: Above MAX_IMPORT_SIZE_MB
        BadRequestError: If the text is not parseable CSV
    """
    size = len(csv_content.encode("utf-8"))
    if size > settings.max_import_size_bytes:
        raise FileTooLargeError(size / (1024 * 1024), settings.MAX_IMPORT_SIZE_MB)

    lines = [line for line in csv_content.splitlines() if not line.lstrip().startswith("#")]
    text = "\n".join(lines).strip()
    if not text:
        return []

    try:
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise BadRequestError(
            "CSV parsing error",
            code="CSV_PARSE_ERROR",
            suggestion="Check quoting and that every row has the same number of columns",
            details={"error": str(e)},
        )

    df.columns = [str(c).strip() for c in df.columns]
    return [
        {key: str(value) for key, value in record.items()}
        for record in df.to_dict(orient="records")
    ]


# =============================================================================
# Row Validation
# =============================================================================

class CatalogLookup:
    """Case-insensitive subject/topic resolution by name or slug."""

    def __init__(self, subjects: Iterable[dict], topics: Iterable[dict]):
        self.subjects: dict[str, dict] = {}
        self.topics: dict[tuple[str, str], dict] = {}
        self.topic_keys: set[str] = set()
        for subject in subjects:
            for key in (subject.get("name"), subject.get("slug")):
                if key:
                    self.subjects.setdefault(key.strip().lower(), subject)
        for topic in topics:
            for key in (topic.get("name"), topic.get("slug")):
                if key:
                    key = key.strip().lower()
                    self.topics.setdefault((str(topic["subject_id"]), key), topic)
                    self.topic_keys.add(key)

    def subject(self, value: str) -> dict | None:
        return self.subjects.get(value.strip().lower())

    def topic(self, subject_id: str, value: str) -> dict | None:
        """Topic by name or slug within one subject."""
        return self.topics.get((str(subject_id), value.strip().lower()))

    def topic_elsewhere(self, value: str) -> bool:
        return value.strip().lower() in self.topic_keys

    def subject_names(self) -> list[str]:
        return sorted({s["name"] for s in self.subjects.values()})


def _is_int(value: str) -> bool:
    try:
        int(value)
        return True
    except ValueError:
        return False


def _is_url(value: str) -> bool:
    parsed = urlparse(value)
    return bool(parsed.scheme and parsed.netloc)


def validate_row(row: dict[str, str], row_number: int, lookup: CatalogLookup) -> tuple[list[dict], dict | None]:
    """
    Check one CSV row.

    Returns:
        (errors, resolved) where resolved carries subject_id and topic_id
        when the row is valid
    """
    errors: list[dict] = []

    def fail(field: str, message: str) -> None:
        errors.append({"row": row_number, "field": field, "message": message, "value": row.get(field)})

    def value(field: str) -> str:
        return (row.get(field) or "").strip()

    for field in REQUIRED_FIELDS:
        if not value(field):
            fail(field, "Required field is missing or empty")

    subject = None
    if value("subject"):
        subject = lookup.subject(value("subject"))
        if not subject:
            fail("subject", "Subject not found. Available subjects: " + ", ".join(lookup.subject_names()))

    topic = None
    if value("topic") and subject:
        topic = lookup.topic(subject["id"], value("topic"))
        if not topic and lookup.topic_elsewhere(value("topic")):
            fail("topic", f'Topic "{value("topic")}" does not belong to subject "{subject["name"]}"')
        elif not topic:
            fail("topic", "Topic not found in database")

    if value("exam_type") and value("exam_type").upper() not in VALID_EXAM_TYPES:
        fail("exam_type", f"Exam type must be one of: {', '.join(VALID_EXAM_TYPES)}")

    year = value("year")
    if year:
        if len(year) != 4 or not year.isdigit() or not YEAR_RANGE[0] <= int(year) <= YEAR_RANGE[1]:
            fail("year", "Year must be a valid 4-digit year")

    if value("difficulty") and value("difficulty").lower() not in VALID_DIFFICULTIES:
        fail("difficulty", f"Difficulty must be one of: {', '.join(VALID_DIFFICULTIES)}")

    answer = value("correct_answer").upper()
    if answer:
        if answer not in ANSWER_LETTERS:
            fail("correct_answer", f"Correct answer must be one of: {', '.join(ANSWER_LETTERS)}")
        elif not value(f"option_{answer.lower()}"):
            fail("correct_answer", f'Correct answer "{answer}" has no corresponding option')

    if value("question_image_url"):
        if not _is_url(value("question_image_url")):
            fail("question_image_url", "Invalid URL format for question image")
        if not value("image_alt_text"):
            fail(
                "image_alt_text",
                "Alt text is required when question_image_url is provided (for accessibility)",
            )

    for field, label in (("image_width", "width"), ("image_height", "height")):
        if value(field) and (not _is_int(value(field)) or int(value(field)) <= 0):
            fail(field, f"Image {label} must be a positive integer")

    if value("passage_id") and not PASSAGE_ID_PATTERN.match(value("passage_id")):
        fail("passage_id", "Passage ID must contain only letters, numbers, underscores, and hyphens")

    if errors:
        return errors, None
    return errors, {"subject_id": subject["id"], "topic_id": topic["id"]}


def validate_rows(
    rows: list[dict[str, str]],
    lookup: CatalogLookup,
    existing_texts: set[str] | None = None,
) -> tuple[dict[str, Any], list[tuple[int, dict, dict]]]:
    """
    Validate every row and flag duplicates.

    Args:
        existing_texts: Lower-cased question texts already in the database

    Returns:
        (summary, valid) where summary is {totalRows, validRows,
        invalidRows, errors, duplicates} and valid holds
        (row_number, row, resolved) for importable rows
    """
    existing_texts = existing_texts or set()
    errors: list[dict] = []
    duplicates: list[int] = []
    seen: set[str] = set()
    valid: list[tuple[int, dict, dict]] = []

    for index, row in enumerate(rows):
        row_number = index + 2
        row_errors, resolved = validate_row(row, row_number, lookup)

        text = (row.get("question_text") or "").strip().lower()
        if text:
            if text in seen:
                duplicates.append(row_number)
                row_errors.append({
                    "row": row_number,
                    "field": "question_text",
                    "message": "Duplicate question text found in file",
                    "value": row.get("question_text"),
                })
            elif text in existing_texts:
                duplicates.append(row_number)
                row_errors.append({
                    "row": row_number,
                    "field": "question_text",
                    "message": "Question already exists in database",
                    "value": row.get("question_text"),
                })
            seen.add(text)

        errors.extend(row_errors)
        if not row_errors and resolved:
            valid.append((row_number, row, resolved))

    summary = {
        "totalRows": len(rows),
        "validRows": len(valid),
        "invalidRows": len(rows) - len(valid),
        "errors": sorted(errors, key=lambda e: e["row"]),
        "duplicates": duplicates,
    }
    return summary, valid


def build_question_row(
    row: dict[str, str],
    resolved: dict,
    admin_id: UUID | str,
    report_id: str | None = None,
) -> dict[str, Any]:
    """Map a validated CSV row onto a questions insert."""

    def optional(field: str) -> str | None:
        return (row.get(field) or "").strip() or None

    def optional_int(field: str) -> int | None:
        raw = optional(field)
        return int(raw) if raw else None

    return {
        "subject_id": str(resolved["subject_id"]),
        "topic_id": str(resolved["topic_id"]),
        "question_text": row["question_text"].strip(),
        "passage": optional("passage"),
        "passage_id": optional("passage_id"),
        "question_image_url": optional("question_image_url"),
        "image_alt_text": optional("image_alt_text"),
        "image_width": optional_int("image_width"),
        "image_height": optional_int("image_height"),
        "option_a": row["option_a"].strip(),
        "option_b": row["option_b"].strip(),
        "option_c": optional("option_c"),
        "option_d": optional("option_d"),
        "option_e": optional("option_e"),
        "correct_answer": row["correct_answer"].strip().upper(),
        "explanation": None,
        "hint": optional("hint"),
        "solution": optional("solution"),
        "further_study_links": parse_study_links(row.get("further_study_links")),
        "difficulty": capitalize_difficulty(optional("difficulty")) or "Medium",
        "exam_type": row["exam_type"].strip().upper(),
        "exam_year": int(row["year"].strip()),
        "status": QuestionStatus.PUBLISHED.value,
        "created_by": str(admin_id),
        "import_report_id": report_id,
    }


# =============================================================================
# Service
# =============================================================================

REPORT_COLUMNS = (
    "id, admin_id, filename, file_size_bytes, total_rows, successful_rows, "
    "failed_rows, status, import_type, started_at, completed_at, created_at, "
    "users!admin_id(full_name, email)"
)

REPORT_QUESTION_COLUMNS = (
    "id, subject_id, topic_id, question_text, passage, passage_id, "
    "question_image_url, option_a, option_b, option_c, option_d, option_e, "
    "correct_answer, difficulty, exam_type, exam_year, status, created_at, "
    "subjects(name), topics(name)"
)

STATUS_FOR_ACTION = {
    ReportQuestionAction.PUBLISH: QuestionStatus.PUBLISHED.value,
    ReportQuestionAction.ARCHIVE: QuestionStatus.ARCHIVED.value,
    ReportQuestionAction.DRAFT: QuestionStatus.DRAFT.value,
}


def _relation_name(value: Any) -> str | None:
    if isinstance(value, list):
        value = value[0] if value else None
    return (value or {}).get("name")


def _format_report(report: dict[str, Any]) -> dict[str, Any]:
    formatted = {k: v for k, v in report.items() if k != "users"}
    formatted["admin"] = report.get("users")
    return formatted


class ImportService:
    """Service for CSV import and import report operations."""

    @staticmethod
    def _lookup() -> CatalogLookup:
        client = SupabaseClient.get_client()
        subjects = client.table("subjects").select("id, name, slug").execute().data or []
        topics = client.table("topics").select("id, name, slug, subject_id").execute().data or []
        return CatalogLookup(subjects, topics)

    @staticmethod
    def _existing_texts(rows: list[dict[str, str]]) -> set[str]:
        texts = sorted({
            (row.get("question_text") or "").strip()
            for row in rows
            if (row.get("question_text") or "").strip()
        })
        if not texts:
            return set()
        client = SupabaseClient.get_client()
        response = client.table("questions").select("question_text").in_("question_text", texts).execute()
        return {(q.get("question_text") or "").strip().lower() for q in response.data or []}

    @staticmethod
    def validate_csv(csv_content: str) -> dict[str, Any]:
        """
        Validate CSV text without writing anything.

        Returns:
            {totalRows, validRows, invalidRows, errors, duplicates}
        """
        rows = read_import_csv(csv_content)
        summary, _ = validate_rows(rows, ImportService._lookup(), ImportService._existing_texts(rows))
        logger.info(
            f"Validated import CSV: {summary['validRows']}/{summary['totalRows']} rows valid"
        )
        return summary

    @staticmethod
    def process_csv(
        csv_content: str,
        filename: str,
        admin: StaffUser,
        meta: RequestMeta | None = None,
    ) -> dict[str, Any]:
        """
        Import valid rows as published questions.

        Rows are inserted IMPORT_BATCH_SIZE at a time; a failed batch
        marks all of its rows as failed. The report ends "completed", or
        "failed" when nothing was inserted.

        Returns:
            {reportId, totalRows, successfulRows, failedRows, errors}
        """
        rows = read_import_csv(csv_content)
        summary, valid = validate_rows(rows, ImportService._lookup(), ImportService._existing_texts(rows))

        client = SupabaseClient.get_client()
        report = client.table("import_reports").insert({
            "admin_id": str(admin.id),
            "filename": filename,
            "file_size_bytes": len(csv_content.encode("utf-8")),
            "total_rows": len(rows),
            "successful_rows": 0,
            "failed_rows": 0,
            "status": ImportStatus.PROCESSING.value,
            "import_type": "questions",
            "error_details": [],
            "started_at": datetime.now(timezone.utc).isoformat(),
        }).execute().data[0]
        report_id = report["id"]
        logger.info(f"Import {report_id} started: {len(valid)} of {len(rows)} rows valid")

        errors = [
            {"row": e["row"], "error": f"{e['field']}: {e['message']}"}
            for e in summary["errors"]
        ]
        successful = 0

        batch_size = settings.IMPORT_BATCH_SIZE
        for start in range(0, len(valid), batch_size):
            batch = valid[start:start + batch_size]
            payload = [
                build_question_row(row, resolved, admin.id, report_id)
                for _, row, resolved in batch
            ]
            try:
                client.table("questions").insert(payload).execute()
                successful += len(batch)
            except Exception as e:
                logger.error(f"Import {report_id}: batch starting at row {batch[0][0]} failed: {e}")
                errors.extend({"row": row_number, "error": str(e)} for row_number, _, _ in batch)

        failed = len(rows) - successful
        status = ImportStatus.COMPLETED if successful else ImportStatus.FAILED
        errors.sort(key=lambda e: e["row"])

        client.table("import_reports").update({
            "successful_rows": successful,
            "failed_rows": failed,
            "status": status.value,
            "error_details": errors or None,
            "completed_at": datetime.now(timezone.utc).isoformat(),
        }).eq("id", report_id).execute()

        logger.info(f"Import {report_id} {status.value}: {successful} inserted, {failed} failed")
        NotificationService.notify_import_completed(admin.id, filename, successful, failed)
        AuditService.log_action(
            admin.id, AuditAction.CREATE, AuditEntity.IMPORT, report_id,
            {
                "filename": filename,
                "totalRows": len(rows),
                "successfulRows": successful,
                "failedRows": failed,
                "hasErrors": bool(errors),
            },
            meta,
        )
        return {
            "reportId": report_id,
            "totalRows": len(rows),
            "successfulRows": successful,
            "failedRows": failed,
            "errors": errors,
        }

    # -------------------------------------------------------------------------
    # Reports
    # -------------------------------------------------------------------------

    @staticmethod
    def list_reports(page: int = 1, limit: int = 20, status: str | None = None) -> dict[str, Any]:
        client = SupabaseClient.get_client()
        start, end = paginate_range(page, limit)

        query = client.table("import_reports").select(REPORT_COLUMNS, count="exact")
        if status:
            query = query.eq("status", status)
        response = query.order("created_at", desc=True).range(start, end).execute()

        return {
            "reports": [_format_report(r) for r in response.data or []],
            "pagination": build_pagination(response.count or 0, page, limit),
        }

    @staticmethod
    def get_report(report_id: str | UUID) -> dict[str, Any]:
        report = SupabaseClient.fetch_by_id(
            "import_reports", report_id, columns=REPORT_COLUMNS + ", error_details"
        )
        if not report:
            raise ImportReportNotFoundError(str(report_id))
        return _format_report(report)

    @staticmethod
    def update_report(
        report_id: str | UUID,
        payload: ImportReportUpdate,
        admin: StaffUser,
        meta: RequestMeta | None = None,
    ) -> dict[str, Any]:
        existing = SupabaseClient.fetch_by_id("import_reports", report_id, columns="id, filename, status")
        if not existing:
            raise ImportReportNotFoundError(str(report_id))

        update: dict[str, Any] = {}
        if payload.filename is not None:
            update["filename"] = payload.filename.strip()
        if payload.status is not None:
            update["status"] = payload.status.value
        if not update:
            raise BadRequestError("No valid fields to update", code="NO_CHANGES")

        client = SupabaseClient.get_client()
        response = client.table("import_reports").update(update).eq("id", str(report_id)).execute()
        updated = response.data[0] if response.data else {**existing, **update}

        AuditService.log_action(
            admin.id, AuditAction.UPDATE, AuditEntity.IMPORT, report_id,
            {
                "before": {"filename": existing.get("filename"), "status": existing.get("status")},
                "after": update,
            },
            meta,
        )
        return updated

    @staticmethod
    def delete_report(
        report_id: str | UUID,
        admin: StaffUser,
        delete_questions: bool = False,
        meta: RequestMeta | None = None,
    ) -> dict[str, Any]:
        """
        Delete a report. Its questions are deleted too, or just unlinked.
        """
        existing = SupabaseClient.fetch_by_id(
            "import_reports", report_id, columns="id, filename, successful_rows"
        )
        if not existing:
            raise ImportReportNotFoundError(str(report_id))

        client = SupabaseClient.get_client()
        if delete_questions:
            client.table("questions").delete().eq("import_report_id", str(report_id)).execute()
        else:
            (
                client.table("questions")
                .update({"import_report_id": None})
                .eq("import_report_id", str(report_id))
                .execute()
            )
        client.table("import_reports").delete().eq("id", str(report_id)).execute()
        logger.info(f"Deleted import report {report_id} (delete_questions={delete_questions})")

        AuditService.log_action(
            admin.id, AuditAction.DELETE, AuditEntity.IMPORT, report_id,
            {
                "filename": existing.get("filename"),
                "successful_rows": existing.get("successful_rows"),
                "delete_questions": delete_questions,
            },
            meta,
        )
        return {
            "message": (
                "Import batch and all questions deleted successfully"
                if delete_questions
                else "Import batch deleted. Questions have been unlinked."
            )
        }

    @staticmethod
    def list_report_questions(
        report_id: str | UUID,
        page: int = 1,
        limit: int = 20,
        status: str | None = None,
        subject_id: str | None = None,
        topic_id: str | None = None,
        search: str | None = None,
    ) -> dict[str, Any]:
        if not SupabaseClient.fetch_by_id("import_reports", report_id, columns="id"):
            raise ImportReportNotFoundError(str(report_id))

        client = SupabaseClient.get_client()
        start, end = paginate_range(page, limit)
        query = (
            client.table("questions")
            .select(REPORT_QUESTION_COLUMNS, count="exact")
            .eq("import_report_id", str(report_id))
        )
        if status:
            query = query.eq("status", status)
        if subject_id:
            query = query.eq("subject_id", subject_id)
        if topic_id:
            query = query.eq("topic_id", topic_id)
        if search and search.strip():
            query = query.ilike("question_text", f"%{search.strip()}%")

        response = query.order("created_at", desc=True).range(start, end).execute()
        questions = []
        for q in response.data or []:
            row = {k: v for k, v in q.items() if k not in ("subjects", "topics")}
            row["subject"] = _relation_name(q.get("subjects"))
            row["topic"] = _relation_name(q.get("topics"))
            questions.append(row)

        return {
            "questions": questions,
            "pagination": build_pagination(response.count or 0, page, limit),
        }

    @staticmethod
    def bulk_action(
        report_id: str | UUID,
        action: ReportQuestionAction,
        admin: StaffUser,
        question_ids: list[UUID] | None = None,
        meta: RequestMeta | None = None,
    ) -> dict[str, Any]:
        """
        Publish, archive, draft or delete questions of one import.

        Given ids are restricted to questions of this import.
        """
        report = SupabaseClient.fetch_by_id("import_reports", report_id, columns="id, filename")
        if not report:
            raise ImportReportNotFoundError(str(report_id))

        client = SupabaseClient.get_client()
        query = client.table("questions").select("id").eq("import_report_id", str(report_id))
        if question_ids:
            query = query.in_("id", [str(qid) for qid in question_ids])
        ids = [q["id"] for q in query.execute().data or []]

        if not ids:
            return {"message": "No questions found to update", "affected": 0}

        if action == ReportQuestionAction.DELETE:
            client.table("questions").delete().in_("id", ids).execute()
            past = "deleted"
        else:
            (
                client.table("questions")
                .update({
                    "status": STATUS_FOR_ACTION[action],
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                })
                .in_("id", ids)
                .execute()
            )
            past = f"{action.value}ed" if not action.value.endswith("e") else f"{action.value}d"

        logger.info(f"Import {report_id}: {action.value} applied to {len(ids)} questions")
        AuditService.log_action(
            admin.id,
            AuditAction.DELETE if action == ReportQuestionAction.DELETE else AuditAction.UPDATE,
            AuditEntity.QUESTION,
            report_id,
            {
                "bulk_action": action.value,
                "batch_id": str(report_id),
                "batch_filename": report.get("filename"),
                "affected_count": len(ids),
                "question_ids": ids,
            },
            meta,
        )
        return {"message": f"Successfully {past} {len(ids)} questions", "affected": len(ids)}

    @staticmethod
    def check_migration() -> dict[str, Any]:
        """Report whether questions.import_report_id exists and how many rows use it."""
        client = SupabaseClient.get_client()
        try:
            client.table("questions").select("id, import_report_id").limit(1).execute()
        except Exception as e:
            if "import_report_id" in str(e) or "column" in str(e):
                logger.warning(f"import_report_id column missing: {e}")
                return {
                    "migrationApplied": False,
                    "message": "import_report_id column does not exist. Please run the migration.",
                    "error": str(e),
                }
            raise

        linked = (
            client.table("questions")
            .select("id", count="exact")
            .not_.is_("import_report_id", "null")
            .limit(1)
            .execute()
        ).count or 0
        total = SupabaseClient.count_rows("questions")

        return {
            "migrationApplied": True,
            "message": "Migration is applied. import_report_id column exists.",
            "stats": {
                "totalQuestions": total,
                "linkedQuestions": linked,
                "unlinkedQuestions": total - linked,
            },
        }
