# =============================================================================
# workers/config.py - Celery Worker Configuration
# =============================================================================
# Settings specific to Celery workers, including the beat schedule.
# =============================================================================

from celery.schedules import crontab

from app.config import settings

DEFAULT_QUEUE = "default"
AI_QUEUE = "ai_tasks"
REVIEW_TASK = "workers.tasks.review_questions_batch"
REMINDER_TASK = "workers.tasks.send_daily_reminders"


class CeleryConfig:
    """
    Celery configuration settings.

    These are applied to the Celery app via app.config_from_object().
    """

    # -------------------------------------------------------------------------
    # Task Settings
    # -------------------------------------------------------------------------

    # Acknowledge tasks after they complete (not before)
    task_acks_late = True

    # Only prefetch one task at a time
    worker_prefetch_multiplier = 1

    # Task results expire after 1 hour
    result_expires = 3600

    # A review batch makes three model calls per question plus a pause
    task_time_limit = 1800
    task_soft_time_limit = 1740

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    task_serializer = "json"
    result_serializer = "json"
    accept_content = ["json"]

    # -------------------------------------------------------------------------
    # Task Routing
    # -------------------------------------------------------------------------

    task_queues = {
        queue: {"exchange": queue, "routing_key": queue}
        for queue in (DEFAULT_QUEUE, AI_QUEUE)
    }

    # -------------------------------------------------------------------------
    # Schedule
    # -------------------------------------------------------------------------

    beat_schedule = {
        "daily-practice-reminders": {
            "task": REMINDER_TASK,
            "schedule": crontab(hour=settings.REMINDER_HOUR_UTC, minute=0),
            "options": {"queue": DEFAULT_QUEUE},
        },
    }

    # -------------------------------------------------------------------------
    # Monitoring
    # -------------------------------------------------------------------------

    worker_send_task_events = True
    task_send_sent_event = True

    # -------------------------------------------------------------------------
    # Timezone
    # -------------------------------------------------------------------------

    timezone = "UTC"
    enable_utc = True
