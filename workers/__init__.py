# =============================================================================
# workers/ - Celery Background Task Workers
# =============================================================================
# This package contains the Celery configuration and task definitions for
# background AI question review and scheduled reminders.
#
# Components:
# - celery_app.py: Celery application configuration
# - tasks.py: Task definitions (batch review, daily reminders)
# - config.py: Worker-specific settings and the beat schedule
#
# Usage:
#   # Start worker and scheduler
#   celery -A workers.celery_app worker --loglevel=info
#   celery -A workers.celery_app beat --loglevel=info
#
#   # Submit task (from API)
#   from workers.tasks import review_questions_batch
#   result = review_questions_batch.delay(question_ids, admin.model_dump(mode="json"))
# =============================================================================

from .celery_app import celery_app
from . import tasks

__all__ = [
    "celery_app",
    "tasks",
]
