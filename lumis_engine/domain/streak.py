"""StreakState — consecutive goal-met days for one user.

Invariant: current_streak <= longest_streak.  Enforced at construction so
an inconsistent state can never be produced by a transition.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class StreakState(BaseModel):
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    has_had_streak_before: bool = Field(
        default=False,
        description="True once any streak has been broken; enables the comeback achievement",
    )
    last_completed_date: Optional[date] = None
    last_rollover_date: Optional[date] = Field(
        default=None,
        description="Most recent day already folded into the streak",
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def current_never_exceeds_longest(self) -> "StreakState":
        if self.current_streak > self.longest_streak:
            raise ValueError(
                f"current_streak {self.current_streak} exceeds "
                f"longest_streak {self.longest_streak}"
            )
        return self
