# =============================================================================
# tests/test_worker_tasks.py - Celery Task Tests
# =============================================================================
# Task bodies are run directly through .run(); the services they call
# are mocked.
# =============================================================================

from unittest.mock import AsyncMock, patch

from workers.tasks import review_questions_batch, send_daily_reminders


class TestReviewQuestionsBatch:

    def test_delegates_to_review_service(self, admin_user):
        summary = {"results": [], "summary": {"total": 2, "successful": 2, "failed": 0}}

        with patch("workers.tasks.update_progress") as progress, patch(
            "core.services.review_service.ReviewService.batch_review",
            new_callable=AsyncMock,
            return_value=summary,
        ) as batch_review:
            result = review_questions_batch.run(["q1", "q2"], admin_user.model_dump(mode="json"), batch_size=5)

        assert result == summary
        args, kwargs = batch_review.call_args
        assert args[0] == ["q1", "q2"]
        assert args[1].id == admin_user.id
        assert kwargs["batch_size"] == 5

        kwargs["on_progress"](1, 2)
        assert progress.call_args.args == (1, 2, "Reviewed 1 of 2 questions")


class TestDailyReminders:

    def test_runs_notification_job(self):
        outcome = {"sent": 1, "skipped": 0, "total": 1, "errors": []}
        with patch(
            "core.services.notification_service.NotificationService.send_daily_reminders",
            return_value=outcome,
        ):
            assert send_daily_reminders.run() == outcome


class TestCeleryWiring:

    def test_reviews_routed_to_ai_queue(self):
        from workers.celery_app import celery_app

        assert celery_app.conf.task_routes["workers.tasks.review_questions_batch"] == {"queue": "ai_tasks"}
        assert celery_app.conf.task_default_queue == "default"
        assert set(celery_app.conf.task_queues) == {"default", "ai_tasks"}

    def test_reminders_scheduled_daily(self):
        from workers.celery_app import celery_app

        entry = celery_app.conf.beat_schedule["daily-practice-reminders"]
        assert entry["task"] == "workers.tasks.send_daily_reminders"
        assert entry["schedule"].hour == {17}
        assert entry["schedule"].minute == {0}

    def test_broker_status_reports_connection_errors(self):
        import importlib

        module = importlib.import_module("workers.celery_app")

        with patch.object(module.celery_app, "connection_for_write", side_effect=OSError("refused")):
            assert module.broker_status() == "unhealthy: refused"

    def test_failure_signal_names_requesting_admin(self, admin_user, caplog):
        from workers.celery_app import task_failure_handler

        with caplog.at_level("ERROR", logger="workers.celery_app"):
            task_failure_handler(
                sender=review_questions_batch,
                task_id="t-1",
                exception=RuntimeError("worker lost"),
                args=[["q1"], admin_user.model_dump(mode="json")],
                kwargs={},
            )

        assert f"Review batch failed [t-1] for admin {admin_user.id}: worker lost" in caplog.text

    def test_postrun_logs_review_summary(self, caplog):
        from workers.celery_app import task_postrun_handler

        with caplog.at_level("INFO", logger="workers.celery_app"):
            task_postrun_handler(
                task_id="t-2",
                task=review_questions_batch,
                retval={"results": [], "summary": {"total": 3, "successful": 2, "failed": 1}},
                state="SUCCESS",
            )

        assert "Review batch finished [t-2]: 2/3 reviews created, 1 failed" in caplog.text
