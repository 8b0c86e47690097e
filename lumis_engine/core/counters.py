"""CounterTracker — historical counters that feed achievement evaluation.

Maintained from session history:
    total_hours        every credited minute, /60
    early_bird_days    days whose goal was met before early_bird_hour (local)
    overachiever_days  days whose total credit reached factor × goal
    total_goals        goal-met days
    no-emergency run   consecutive rolled-over days without an emergency unlock

DailyProgress stops counting at the goal, so the tracker keeps its own
running total for the current day to judge overachievement.
"""

from __future__ import annotations

from datetime import tzinfo

from lumis_engine.domain.achievement import AchievementCounters
from lumis_engine.domain.progress import DailyProgress, GoalMetEvent
from lumis_engine.domain.streak import StreakState


class CounterTracker:
    __slots__ = (
        "total_minutes",
        "early_bird_days",
        "overachiever_days",
        "total_goals_completed",
        "days_without_emergency_unlock",
        "emergency_unlock_used_today",
        "day_credited_minutes",
    )

    def __init__(self) -> None:
        self.total_minutes: float = 0.0
        self.early_bird_days: int = 0
        self.overachiever_days: int = 0
        self.total_goals_completed: int = 0
        self.days_without_emergency_unlock: int = 0
        self.emergency_unlock_used_today: bool = False
        self.day_credited_minutes: float = 0.0

    @property
    def total_hours(self) -> float:
        return self.total_minutes / 60.0

    def record_credit(self, minutes: float) -> None:
        if minutes <= 0:
            return
        self.total_minutes += minutes
        self.day_credited_minutes += minutes

    def record_goal_met(
        self,
        event: GoalMetEvent,
        early_bird_hour: int = 8,
        local_tz: tzinfo | None = None,
    ) -> None:
        self.total_goals_completed += 1
        met_at = event.met_at.astimezone(local_tz) if local_tz else event.met_at
        if met_at.hour < early_bird_hour:
            self.early_bird_days += 1

    def record_emergency_unlock(self) -> None:
        self.emergency_unlock_used_today = True
        self.days_without_emergency_unlock = 0

    def close_day(self, progress: DailyProgress, overachiever_factor: float = 2.0) -> None:
        """Fold the closing day into the day-level counters and reset for tomorrow."""
        if (
            progress.goal_minutes_required > 0
            and self.day_credited_minutes >= progress.goal_minutes_required * overachiever_factor
        ):
            self.overachiever_days += 1
        if self.emergency_unlock_used_today:
            self.days_without_emergency_unlock = 0
        else:
            self.days_without_emergency_unlock += 1
        self.emergency_unlock_used_today = False
        self.day_credited_minutes = 0.0

    def snapshot(self, streak: StreakState) -> AchievementCounters:
        return AchievementCounters(
            current_streak=streak.current_streak,
            total_hours=self.total_hours,
            early_bird_days=self.early_bird_days,
            overachiever_days=self.overachiever_days,
            total_goals_completed=self.total_goals_completed,
            consecutive_days_without_emergency_unlock=self.days_without_emergency_unlock,
            has_had_streak_before=streak.has_had_streak_before,
        )
