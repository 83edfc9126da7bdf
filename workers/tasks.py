# =============================================================================
# workers/tasks.py - Celery Task Definitions
# =============================================================================
# Defines background tasks for AI review and scheduled notifications.
#
# Tasks:
# - review_questions_batch: Review several questions with the AI reviewer
# - send_daily_reminders: Practice reminders for inactive students (beat)
# =============================================================================

import asyncio
import logging
from typing import Any

from celery import shared_task, current_task

logger = logging.getLogger(__name__)


# =============================================================================
# Task State Updates
# =============================================================================

def update_progress(current: int, total: int, message: str = "Processing..."):
    """
    Update task progress for polling.

    Args:
        current: Current step number
        total: Total steps
        message: Status message
    """
    if current_task:
        current_task.update_state(
            state="PROGRESS",
            meta={
                "current": current,
                "total": total,
                "percent": int((current / total) * 100) if total else 0,
                "message": message,
            }
        )


# =============================================================================
# Review Task
# =============================================================================

@shared_task(bind=True, name="workers.tasks.review_questions_batch")
def review_questions_batch(
    self,
    question_ids: list[str],
    admin: dict[str, Any],
    batch_size: int = 10,
) -> dict[str, Any]:
    """
    Review questions one after another in the background.

    Args:
        question_ids: Questions to review (only the first batch_size are used)
        admin: Serialized StaffUser who requested the batch
        batch_size: Maximum number of questions

    Returns:
        {"results": [...], "summary": {...}} as returned by the batch endpoint
    """
    from app.auth.models import StaffUser
    from core.services.review_service import ReviewService

    staff = StaffUser(**admin)
    logger.info(f"Background review of {len(question_ids)} questions requested by {staff.id}")

    update_progress(0, min(len(question_ids), batch_size), "Starting review...")

    def on_progress(done: int, total: int) -> None:
        update_progress(done, total, f"Reviewed {done} of {total} questions")

    return asyncio.run(
        ReviewService.batch_review(
            question_ids,
            staff,
            batch_size=batch_size,
            on_progress=on_progress,
        )
    )


# =============================================================================
# Scheduled Tasks
# =============================================================================

@shared_task(bind=True, name="workers.tasks.send_daily_reminders")
def send_daily_reminders(self) -> dict[str, Any]:
    """Send today's practice reminders."""
    from core.services.notification_service import NotificationService

    result = NotificationService.send_daily_reminders()
    logger.info(f"Daily reminders: sent {result['sent']}, skipped {result['skipped']}")
    return result
