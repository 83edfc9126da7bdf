# =============================================================================
# tests/test_goals.py - Learning Goal and Achievement Tests
# =============================================================================

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from core.models.goal import GoalSet, GoalType
from core.services.achievement_service import AchievementService, requirement_met
from core.services.goal_service import GoalService, period_expired


def stats(answered=0, accuracy=0.0, streak=0):
    return {"questionsAnswered": answered, "accuracy": accuracy, "currentStreak": streak}


def iso(delta: timedelta) -> str:
    return (datetime.now(timezone.utc) + delta).isoformat()


class TestGoalModel:

    def test_accuracy_target_is_a_percentage(self):
        with pytest.raises(ValidationError):
            GoalSet(goal_type="accuracy_target", target_value=120)
        assert GoalSet(goal_type="weekly_questions", target_value=120).target_value == 120

    def test_target_must_be_positive(self):
        with pytest.raises(ValidationError):
            GoalSet(goal_type="daily_questions", target_value=0)

    def test_periods(self):
        assert GoalType.DAILY_QUESTIONS.period == timedelta(days=1)
        assert GoalType.WEEKLY_STUDY_TIME.period == timedelta(days=7)
        assert GoalType.STREAK_TARGET.period is None

    def test_period_expired(self):
        assert period_expired({"period_end": iso(timedelta(minutes=-1))})
        assert not period_expired({"period_end": iso(timedelta(hours=1))})
        assert not period_expired({"period_end": None})


class TestSetGoal:

    def test_creates_goal_with_period(self, fake_db, student):
        goal = GoalService.set_goal(student.id, GoalSet(goal_type="daily_questions", target_value=20))

        assert goal["goal_type"] == "daily_questions"
        assert goal["current_value"] == 0
        assert goal["achieved"] is False
        start = datetime.fromisoformat(goal["period_start"])
        end = datetime.fromisoformat(goal["period_end"])
        assert end - start == timedelta(days=1)

    def test_stat_goals_have_no_period(self, fake_db, student):
        goal = GoalService.set_goal(student.id, GoalSet(goal_type="streak_target", target_value=7))
        assert goal["period_end"] is None

    def test_retarget_resets_progress(self, fake_db, student):
        fake_db.add("user_goals", {
            "user_id": str(student.id), "goal_type": "weekly_questions",
            "target_value": 10, "current_value": 12, "achieved": True, "achieved_at": iso(timedelta()),
        })

        goal = GoalService.set_goal(student.id, GoalSet(goal_type="weekly_questions", target_value=50))

        assert len(fake_db.rows("user_goals")) == 1
        assert goal["target_value"] == 50
        assert goal["current_value"] == 0
        assert goal["achieved"] is False
        assert goal["achieved_at"] is None


class TestProgress:

    def _goal(self, fake_db, student, goal_type, target, current=0, **fields):
        return fake_db.add("user_goals", {
            "user_id": str(student.id), "goal_type": goal_type, "target_value": target,
            "current_value": current, "achieved": False, "achieved_at": None,
            "period_end": iso(timedelta(days=3)), **fields,
        })

    def test_no_goal_is_a_no_op(self, fake_db, student):
        assert GoalService.add_progress(student.id, GoalType.DAILY_QUESTIONS, 5) == (None, False)
        assert fake_db.rows("user_goals") == []

    def test_reaching_target_marks_achieved_once(self, fake_db, student):
        self._goal(fake_db, student, "weekly_questions", target=10, current=8)

        goal, newly = GoalService.add_progress(student.id, GoalType.WEEKLY_QUESTIONS, 5)
        assert newly is True
        assert goal["current_value"] == 13
        assert goal["achieved"] is True
        assert goal["achieved_at"]

        goal, newly = GoalService.add_progress(student.id, GoalType.WEEKLY_QUESTIONS, 5)
        assert newly is False
        assert goal["current_value"] == 13

    def test_expired_period_restarts(self, fake_db, student):
        self._goal(
            fake_db, student, "daily_questions", target=10, current=10,
            achieved=True, period_end=iso(timedelta(hours=-2)),
        )

        goal, newly = GoalService.add_progress(student.id, GoalType.DAILY_QUESTIONS, 4)

        assert newly is False
        assert goal["current_value"] == 4
        assert goal["achieved"] is False
        assert datetime.fromisoformat(goal["period_end"]) > datetime.now(timezone.utc)

    def test_record_session_updates_all_goals_and_notifies(self, fake_db, student):
        self._goal(fake_db, student, "weekly_questions", target=20, current=15)
        self._goal(fake_db, student, "daily_questions", target=50)
        self._goal(fake_db, student, "weekly_study_time", target=60, current=10)
        self._goal(fake_db, student, "streak_target", target=3, period_end=None)
        self._goal(fake_db, student, "accuracy_target", target=70, period_end=None)

        achieved = GoalService.record_session(
            student.id, questions_answered=10, study_minutes=12, stats=stats(answered=25, accuracy=72.4, streak=2)
        )

        assert [g["goal_type"] for g in achieved] == ["weekly_questions", "accuracy_target"]
        by_type = {g["goal_type"]: g for g in fake_db.rows("user_goals")}
        assert by_type["daily_questions"]["current_value"] == 10
        assert by_type["weekly_study_time"]["current_value"] == 22
        assert by_type["streak_target"]["current_value"] == 2
        assert by_type["accuracy_target"]["current_value"] == 72

        notes = fake_db.rows("notifications")
        assert [n["type"] for n in notes] == ["goal_achieved", "goal_achieved"]
        assert notes[0]["message"] == "🎯 Goal Achieved! You've answered 25 questions!"
        assert notes[1]["data"] == {"goal_type": "accuracy_target", "achieved_value": 72}

    def test_accuracy_goal_waits_for_enough_answers(self, fake_db, student):
        self._goal(fake_db, student, "accuracy_target", target=50, period_end=None)

        achieved = GoalService.record_session(student.id, 5, 0, stats(answered=5, accuracy=100.0))

        assert achieved == []
        assert fake_db.rows("user_goals")[0]["current_value"] == 0


class TestAchievements:

    @pytest.fixture
    def achievements(self, fake_db):
        return [
            fake_db.add("achievements", {"name": "First Steps", "description": "Answer your first question",
                                         "requirement_type": "questions_answered", "requirement_value": 1}),
            fake_db.add("achievements", {"name": "Week Warrior", "description": "Maintain a 7-day streak",
                                         "requirement_type": "streak", "requirement_value": 7}),
            fake_db.add("achievements", {"name": "Accuracy Ace", "description": None,
                                         "requirement_type": "accuracy", "requirement_value": 80}),
        ]

    @pytest.mark.parametrize("requirement_type,value,user_stats,met", [
        ("questions_answered", 10, stats(answered=10), True),
        ("questions_answered", 10, stats(answered=9), False),
        ("streak", 7, stats(streak=7), True),
        ("accuracy", 80, stats(answered=20, accuracy=80.0), True),
        ("accuracy", 80, stats(answered=19, accuracy=100.0), False),
        ("mastery", 1, stats(answered=500), False),
    ])
    def test_requirement_met(self, requirement_type, value, user_stats, met):
        achievement = {"requirement_type": requirement_type, "requirement_value": value}
        assert requirement_met(achievement, user_stats) is met

    def test_awards_new_achievements_once(self, fake_db, student, achievements):
        first, _, ace = achievements

        awarded = AchievementService.check_and_award(student.id, stats(answered=30, accuracy=85.0, streak=2))
        assert [a["name"] for a in awarded] == ["First Steps", "Accuracy Ace"]

        again = AchievementService.check_and_award(student.id, stats(answered=31, accuracy=85.0, streak=2))
        assert again == []

        earned = {r["achievement_id"] for r in fake_db.rows("user_achievements")}
        assert earned == {first["id"], ace["id"]}

        notes = fake_db.rows("notifications")
        assert [n["type"] for n in notes] == ["achievement_unlocked", "achievement_unlocked"]
        assert notes[0]["message"] == 'You\'ve unlocked "First Steps"! Answer your first question'
        assert notes[1]["message"] == 'You\'ve unlocked "Accuracy Ace"!'
