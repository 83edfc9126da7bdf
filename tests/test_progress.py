# =============================================================================
# tests/test_progress.py - Student Stats and Analytics Tests
# =============================================================================

from datetime import date, datetime, timezone

import pytest

from app.exceptions import BadRequestError, UserNotFoundError
from core.services.progress_service import (
    ProgressService,
    activity_dates,
    daily_activity,
    grade_label,
    score_percentage,
    strengths_and_weaknesses,
    subject_performance,
)


class TestHelpers:

    @pytest.mark.parametrize("percentage,label", [
        (100, "Excellent"),
        (90, "Excellent"),
        (85, "Very Good"),
        (70, "Good"),
        (60, "Fair"),
        (50, "Pass"),
        (49.9, "Needs Improvement"),
    ])
    def test_grade_label(self, percentage, label):
        assert grade_label(percentage) == label

    def test_score_percentage(self):
        assert score_percentage(3, 4) == 75
        assert score_percentage(0, 0) == 0

    def test_activity_dates(self):
        assert activity_dates(3, today=date(2024, 3, 1)) == ["2024-02-28", "2024-02-29", "2024-03-01"]

    def test_daily_activity(self):
        dates = ["2024-03-01", "2024-03-02"]
        sessions = [
            {"started_at": "2024-03-01T08:00:00+00:00", "questions_answered": 5},
            {"started_at": "2024-03-01T19:00:00+00:00", "questions_answered": 3},
            {"started_at": "2024-02-01T19:00:00+00:00", "questions_answered": 9},
            {"started_at": None, "questions_answered": 4},
        ]
        assert daily_activity(sessions, dates) == [
            {"date": "2024-03-01", "questionsAnswered": 8},
            {"date": "2024-03-02", "questionsAnswered": 0},
        ]

    def test_subject_performance(self):
        progress = [
            {"subject_id": "math", "questions_attempted": 10, "questions_correct": 7},
            {"subject_id": "math", "questions_attempted": 5, "questions_correct": 1},
            {"subject_id": "eng", "questions_attempted": 0, "questions_correct": 0},
        ]
        assert subject_performance(progress) == [
            {"subjectId": "math", "questionsAttempted": 15, "questionsCorrect": 8, "accuracy": 53.33},
            {"subjectId": "eng", "questionsAttempted": 0, "questionsCorrect": 0, "accuracy": 0.0},
        ]

    def test_strengths_and_weaknesses(self):
        progress = [{"topic_id": f"t{i}", "accuracy_percentage": i * 10} for i in range(7)]
        progress.append({"topic_id": "unrated", "accuracy_percentage": None})

        strengths, weaknesses = strengths_and_weaknesses(progress)

        assert strengths == ["t6", "t5", "t4", "t3", "t2"]
        assert weaknesses == ["t0", "t1", "t2", "t3", "t4"]

    def test_no_progress(self):
        assert strengths_and_weaknesses([]) == ([], [])


class TestProgressService:

    def _user(self, fake_db, student, **fields):
        return fake_db.add("users", {"id": str(student.id), "role": "student", **fields})

    def test_stats(self, fake_db, student):
        self._user(fake_db, student, total_questions_answered=40, total_correct_answers=30,
                   streak_count=4, xp_points=120)

        stats = ProgressService.get_stats(student.id)

        assert stats["accuracy"] == 75
        assert stats["currentStreak"] == 4
        assert stats["xpPoints"] == 120
        assert stats["studyTimeMinutes"] == 0

    def test_unknown_user(self, fake_db, student):
        with pytest.raises(UserNotFoundError):
            ProgressService.get_stats(student.id)

    def test_invalid_period(self, fake_db, student):
        with pytest.raises(BadRequestError) as exc:
            ProgressService.get_analytics(student.id, "1Y")
        assert exc.value.code == "INVALID_PERIOD"

    def test_analytics_shape(self, fake_db, student):
        self._user(fake_db, student)
        fake_db.add("user_progress", {
            "user_id": str(student.id), "subject_id": "math", "topic_id": "algebra",
            "questions_attempted": 4, "questions_correct": 3, "accuracy_percentage": 75.0,
        })
        fake_db.add("sessions", {
            "user_id": str(student.id),
            "started_at": datetime.now(timezone.utc).isoformat(),
            "questions_answered": 6,
        })

        analytics = ProgressService.get_analytics(student.id, "7D")

        assert len(analytics["weeklyActivity"]) == 7
        assert analytics["weeklyActivity"][-1]["questionsAnswered"] == 6
        assert analytics["subjectPerformance"][0]["accuracy"] == 75.0
        assert analytics["strengths"] == ["algebra"]

    def test_all_period_charts_ninety_days(self, fake_db, student):
        self._user(fake_db, student)
        assert len(ProgressService.get_analytics(student.id, "All")["weeklyActivity"]) == 90

    def test_record_session_totals(self, fake_db, student):
        self._user(fake_db, student, total_questions_answered=10, total_correct_answers=5)
        fake_db.rpc_results["award_xp"] = 35

        result = ProgressService.record_session_totals(student.id, 10, 8, 12)

        assert result["xpEarned"] == 35
        assert result["user"]["total_questions_answered"] == 20
        assert result["user"]["total_correct_answers"] == 13
        assert result["user"]["total_study_time_minutes"] == 12

    def test_xp_failure_still_updates_totals(self, fake_db, student):
        self._user(fake_db, student)
        fake_db.rpc_results["award_xp"] = RuntimeError("no such function")

        result = ProgressService.record_session_totals(student.id, 5, 5, 3)

        assert result["xpEarned"] == 0
        assert result["user"]["total_questions_answered"] == 5

    def test_streak_milestone_notifies(self, fake_db, student):
        self._user(fake_db, student, streak_count=7)

        assert ProgressService.update_streak(student.id) == 7
        assert fake_db.rpc_calls == [("update_user_streak", {"user_uuid": str(student.id)})]
        assert fake_db.rows("notifications")[0]["type"] == "streak_milestone"

    def test_topic_progress_accumulates(self, fake_db, student):
        ProgressService.update_topic_progress(student.id, "math", "algebra", 4, 2)
        row = ProgressService.update_topic_progress(student.id, "math", "algebra", 6, 6)

        assert row["questions_attempted"] == 10
        assert row["questions_correct"] == 8
        assert row["accuracy_percentage"] == 80.0
        assert len(fake_db.rows("user_progress")) == 1
