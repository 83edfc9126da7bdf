# =============================================================================
# workers/celery_app.py - Celery Application
# =============================================================================
# One Celery app serves two kinds of work:
# - AI question reviews, routed to the "ai_tasks" queue so a slow OpenAI
#   batch never holds up the default queue
# - The daily practice reminder job, fired by beat
#
# Usage:
#   # Worker for both queues
#   celery -A workers.celery_app worker -Q default,ai_tasks --loglevel=info
#
#   # Scheduler (daily reminders)
#   celery -A workers.celery_app beat --loglevel=info
# =============================================================================

import logging

from celery import Celery
from celery.signals import task_failure, task_postrun, task_prerun

from app.config import settings
from workers.config import AI_QUEUE, DEFAULT_QUEUE, REVIEW_TASK

logger = logging.getLogger(__name__)


def _redacted(url: str) -> str:
    return url.split("@")[-1] if "@" in url else url


def create_celery_app(redis_url: str | None = None) -> Celery:
    """
    Build the worker app from settings.

    Args:
        redis_url: Broker and result backend; defaults to settings.REDIS_URL
    """
    redis_url = redis_url or settings.REDIS_URL

    app = Celery(
        "examprep_worker",
        broker=redis_url,
        backend=redis_url,
        include=["workers.tasks"],
    )
    app.config_from_object("workers.config:CeleryConfig")
    app.conf.update(
        broker_url=redis_url,
        result_backend=redis_url,
        task_default_queue=DEFAULT_QUEUE,
        task_routes={REVIEW_TASK: {"queue": AI_QUEUE}},
    )

    logger.info(
        f"Celery app created with broker {_redacted(redis_url)}; "
        f"reviews on '{AI_QUEUE}', reminders scheduled: {sorted(app.conf.beat_schedule)}"
    )
    return app


celery_app = create_celery_app()


def broker_status() -> str:
    """'healthy' when the broker accepts a connection, else a short error."""
    try:
        with celery_app.connection_for_write() as connection:
            connection.ensure_connection(max_retries=1)
        return "healthy"
    except Exception as e:
        return f"unhealthy: {str(e)[:50]}"


# =============================================================================
# Signals
# =============================================================================

@task_prerun.connect
def task_prerun_handler(sender=None, task_id=None, task=None, args=None, kwargs=None, **extra):
    if task.name == REVIEW_TASK:
        question_ids = (args[0] if args else (kwargs or {}).get("question_ids")) or []
        logger.info(f"Review batch started [{task_id}]: {len(question_ids)} questions requested")
    else:
        logger.info(f"Task started: {task.name} [{task_id}]")


@task_postrun.connect
def task_postrun_handler(sender=None, task_id=None, task=None, retval=None, state=None, **extra):
    if task.name == REVIEW_TASK and isinstance(retval, dict) and "summary" in retval:
        summary = retval["summary"]
        logger.info(
            f"Review batch finished [{task_id}]: {summary['successful']}/{summary['total']} "
            f"reviews created, {summary['failed']} failed"
        )
    else:
        logger.info(f"Task completed: {task.name} [{task_id}] - State: {state}")


@task_failure.connect
def task_failure_handler(sender=None, task_id=None, exception=None, args=None, kwargs=None, **extra):
    """
    A crashed review batch leaves already generated reviews in place; the
    admin id is logged so the batch can be retried for the remaining questions.
    """
    if sender is not None and sender.name == REVIEW_TASK:
        admin = (args[1] if args and len(args) > 1 else (kwargs or {}).get("admin")) or {}
        logger.error(
            f"Review batch failed [{task_id}] for admin {admin.get('id')}: {exception}"
        )
    else:
        name = sender.name if sender is not None else "unknown"
        logger.error(f"Task failed: {name} [{task_id}] - Error: {exception}")


if __name__ == "__main__":
    celery_app.start()
