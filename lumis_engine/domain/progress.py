"""DailyProgress — one calendar day's goal and the credit counted against it.

Created at the first session of the day, mutated as windows are credited,
and frozen once the goal is met: is_goal_met only ever moves False → True.
"""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field


class GoalMetEvent(BaseModel):
    """Emitted exactly once per day, the moment credited minutes reach the goal.

    Consumed by external collaborators (shield control, notifications).
    """

    day: date
    goal_minutes_required: float
    credited_minutes: float
    met_at: datetime
    session_id: str | None = Field(default=None, description="Session whose window crossed the goal")

    model_config = {"frozen": True}


class DailyProgress:
    """Per-day goal tracker."""

    __slots__ = (
        "date",
        "goal_minutes_required",
        "credited_minutes_so_far",
        "is_goal_met",
        "goal_met_at",
    )

    def __init__(self, day: date, goal_minutes_required: float) -> None:
        self.date: date = day
        self.goal_minutes_required: float = goal_minutes_required
        self.credited_minutes_so_far: float = 0.0
        self.is_goal_met: bool = False
        self.goal_met_at: datetime | None = None

    # ── Mutation (SessionEngine only) ────────────────────────────────────

    def add_credit(self, minutes: float, at: datetime) -> bool:
        """Add credited minutes; return True if this call met the goal.

        Once the goal is met the record is frozen and further credit is
        ignored.
        """
        if self.is_goal_met:
            return False
        self.credited_minutes_so_far += minutes
        if self.credited_minutes_so_far >= self.goal_minutes_required:
            self.is_goal_met = True
            self.goal_met_at = at
            return True
        return False

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def remaining_minutes(self) -> float:
        return max(0.0, self.goal_minutes_required - self.credited_minutes_so_far)

    @property
    def completion_ratio(self) -> float:
        if self.goal_minutes_required <= 0:
            return 1.0
        return min(self.credited_minutes_so_far / self.goal_minutes_required, 1.0)

    def summary(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "goal_minutes_required": self.goal_minutes_required,
            "credited_minutes_so_far": round(self.credited_minutes_so_far, 4),
            "is_goal_met": self.is_goal_met,
            "goal_met_at": self.goal_met_at.isoformat() if self.goal_met_at else None,
        }

    def __repr__(self) -> str:
        return (
            f"DailyProgress(date={self.date.isoformat()}, "
            f"{self.credited_minutes_so_far:.2f}/{self.goal_minutes_required} min, "
            f"met={self.is_goal_met})"
        )
