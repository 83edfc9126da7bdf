# =============================================================================
# core/models/goal.py - Learning Goal Schemas
# =============================================================================
# A student keeps at most one goal per type in user_goals. Periodic goals
# (daily, weekly) restart when their period ends; accuracy and streak
# goals have no period.
# =============================================================================

from datetime import timedelta
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class GoalType(str, Enum):
    """
    Values accepted by user_goals.goal_type.

    Target units: minutes for weekly_study_time, questions for
    daily/weekly_questions, percent for accuracy_target, days for
    streak_target.
    """
    WEEKLY_STUDY_TIME = "weekly_study_time"
    DAILY_QUESTIONS = "daily_questions"
    WEEKLY_QUESTIONS = "weekly_questions"
    ACCURACY_TARGET = "accuracy_target"
    STREAK_TARGET = "streak_target"

    @property
    def period(self) -> timedelta | None:
        return GOAL_PERIODS.get(self)


GOAL_PERIODS = {
    GoalType.WEEKLY_STUDY_TIME: timedelta(days=7),
    GoalType.WEEKLY_QUESTIONS: timedelta(days=7),
    GoalType.DAILY_QUESTIONS: timedelta(days=1),
}


class GoalSet(BaseModel):
    """
    Set the target for one goal type.

    Changing the target of an existing goal resets its progress.
    """
    target_value: int = Field(..., ge=1, le=100_000)
    goal_type: GoalType

    @model_validator(mode="after")
    def accuracy_is_a_percentage(self) -> "GoalSet":
        if self.goal_type == GoalType.ACCURACY_TARGET and self.target_value > 100:
            raise ValueError("accuracy_target must be between 1 and 100")
        return self
