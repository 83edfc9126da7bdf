# =============================================================================
# app/routers/admin_imports.py - CSV Import Endpoints
# =============================================================================
# Bulk question import for the admin portal:
# - Template download
# - Validate (dry run) and process
# - Import report history, edits and per-batch question actions
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status
from fastapi.responses import Response

from app.auth import StaffUser, require_admin, require_staff
from app.dependencies import RequestMetaDep
from app.exceptions import ForbiddenError
from core.models.import_report import (
    CsvPayload,
    ImportProcessRequest,
    ImportReportUpdate,
    ImportStatus,
    ReportBulkAction,
    ReportQuestionAction,
)
from core.services.import_service import ImportService, build_template

router = APIRouter()


# =============================================================================
# Import
# =============================================================================

@router.get("/template")
async def download_template(staff: StaffUser = Depends(require_staff)):
    """
    CSV template with instructions, the header row and example rows.
    """
    content, filename = build_template()
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/validate")
async def validate_csv(
    request: CsvPayload,
    staff: StaffUser = Depends(require_staff),
):
    """Dry run: report row errors and duplicates without importing."""
    return ImportService.validate_csv(request.csv_content)


@router.post("/process", status_code=status.HTTP_201_CREATED)
async def process_csv(
    request: ImportProcessRequest,
    meta: RequestMetaDep,
    staff: StaffUser = Depends(require_staff),
):
    """Import valid rows as published questions and record a report."""
    return ImportService.process_csv(request.csv_content, request.filename, staff, meta)


@router.get("/check-migration")
async def check_migration(staff: StaffUser = Depends(require_staff)):
    return ImportService.check_migration()


# =============================================================================
# Reports
# =============================================================================

@router.get("/reports")
async def list_reports(
    staff: StaffUser = Depends(require_staff),
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    status_filter: Annotated[ImportStatus | None, Query(alias="status")] = None,
):
    return ImportService.list_reports(
        page=page, limit=limit, status=status_filter.value if status_filter else None
    )


@router.get("/reports/{report_id}")
async def get_report(
    report_id: Annotated[UUID, Path(description="Import report UUID")],
    staff: StaffUser = Depends(require_staff),
):
    return {"report": ImportService.get_report(report_id)}


@router.patch("/reports/{report_id}")
async def update_report(
    report_id: Annotated[UUID, Path(description="Import report UUID")],
    request: ImportReportUpdate,
    meta: RequestMetaDep,
    staff: StaffUser = Depends(require_staff),
):
    return {"report": ImportService.update_report(report_id, request, staff, meta)}


@router.delete("/reports/{report_id}")
async def delete_report(
    report_id: Annotated[UUID, Path(description="Import report UUID")],
    meta: RequestMetaDep,
    admin: StaffUser = Depends(require_admin),
    delete_questions: Annotated[bool, Query(description="Also delete the imported questions")] = False,
):
    """
    Delete a report.

    Its questions are unlinked, or deleted with delete_questions=true.
    """
    return ImportService.delete_report(report_id, admin, delete_questions=delete_questions, meta=meta)


@router.get("/reports/{report_id}/questions")
async def list_report_questions(
    report_id: Annotated[UUID, Path(description="Import report UUID")],
    staff: StaffUser = Depends(require_staff),
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    subject_id: Annotated[UUID | None, Query()] = None,
    topic_id: Annotated[UUID | None, Query()] = None,
    search: Annotated[str | None, Query()] = None,
):
    return ImportService.list_report_questions(
        report_id,
        page=page,
        limit=limit,
        status=status_filter,
        subject_id=str(subject_id) if subject_id else None,
        topic_id=str(topic_id) if topic_id else None,
        search=search,
    )


@router.post("/reports/{report_id}/bulk-action")
async def report_bulk_action(
    report_id: Annotated[UUID, Path(description="Import report UUID")],
    request: ReportBulkAction,
    meta: RequestMetaDep,
    staff: StaffUser = Depends(require_staff),
):
    """Publish, archive, draft or delete questions from one import."""
    if request.action == ReportQuestionAction.DELETE and not staff.is_admin:
        raise ForbiddenError("Only admins can delete questions", code="ADMIN_ONLY")
    return ImportService.bulk_action(
        report_id, request.action, staff, question_ids=request.question_ids, meta=meta
    )
