"""Progressive difficulty — the daily outdoor goal grows with tenure.

    Days  1–3   → 2 min  (Getting Started)
    Days  4–14  → 3 min  (Building Momentum)
    Days 15–30  → 4 min  (Committed)
    Days 31–60  → 5 min  (Veteran)
    Days 61+    → 3 min  (earned flexibility: back to a sustainable level)

The drop after day 60 is intentional.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel

# (inclusive upper day bound, goal minutes)
_GOAL_TIERS: tuple[tuple[int, int], ...] = (
    (3, 2),
    (14, 3),
    (30, 4),
    (60, 5),
)
FLEXIBILITY_GOAL_MINUTES = 3

_LABELS: dict[int, str] = {
    2: "Getting Started",
    3: "Building Momentum",
    4: "Committed",
    5: "Veteran",
}
CUSTOM_LABEL = "Custom"

# (day boundary, next level label, next level minutes)
_MILESTONES: tuple[tuple[int, str, int], ...] = (
    (3, "Building Momentum", 3),
    (14, "Committed", 4),
    (30, "Veteran", 5),
    (60, "Earned Flexibility", 3),
)


class Milestone(BaseModel):
    days_until: int
    next_level: str
    next_minutes: int

    model_config = {"frozen": True}


def resolve_goal_minutes(days_in_program: int) -> int:
    """Required outdoor minutes for the given program day."""
    for last_day, minutes in _GOAL_TIERS:
        if days_in_program <= last_day:
            return minutes
    return FLEXIBILITY_GOAL_MINUTES


def label_for(minutes: int) -> str:
    return _LABELS.get(minutes, CUSTOM_LABEL)


def next_milestone(days_in_program: int) -> Optional[Milestone]:
    """Preview of the next tier change, or None once the last one has passed."""
    for boundary, level, minutes in _MILESTONES:
        if days_in_program < boundary:
            return Milestone(
                days_until=boundary - days_in_program,
                next_level=level,
                next_minutes=minutes,
            )
    return None


def days_in_program(program_start: date, today: date) -> int:
    """1-based program day; the start date itself is day 1."""
    return (today - program_start).days + 1
