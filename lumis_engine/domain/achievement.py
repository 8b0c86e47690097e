"""Achievement catalog and per-user achievement records.

The catalog is an immutable table built once at import time.  Per-user
Achievement records are derived from it and carry unlock state.

unlocked is monotonic (False → True only).  Once unlocked, progress is
pinned at the requirement and the record is never re-evaluated.
"""

from __future__ import annotations

from datetime import datetime
from types import MappingProxyType
from typing import Mapping, Optional

from pydantic import BaseModel, Field

from lumis_engine.domain.enums import AchievementCategory


class AchievementDefinition(BaseModel):
    """Static catalog entry."""

    id: str
    title: str
    description: str
    category: AchievementCategory
    requirement: float = Field(..., gt=0)

    model_config = {"frozen": True}


class Achievement(BaseModel):
    """A user's instance of a catalog achievement."""

    id: str
    title: str
    description: str
    category: AchievementCategory
    requirement: float
    unlocked: bool = False
    unlocked_at: Optional[datetime] = None
    progress: float = Field(default=0.0, description="Clamped to [0, requirement]")

    model_config = {"frozen": True}

    @classmethod
    def from_definition(cls, definition: AchievementDefinition) -> "Achievement":
        return cls(
            id=definition.id,
            title=definition.title,
            description=definition.description,
            category=definition.category,
            requirement=definition.requirement,
        )


class AchievementCounters(BaseModel):
    """Historical counters that achievement rules read from."""

    current_streak: int = 0
    total_hours: float = 0.0
    early_bird_days: int = 0
    overachiever_days: int = 0
    total_goals_completed: int = 0
    consecutive_days_without_emergency_unlock: int = 0
    has_had_streak_before: bool = False

    model_config = {"frozen": True}


def _define(
    id: str,
    title: str,
    description: str,
    category: AchievementCategory,
    requirement: float,
) -> AchievementDefinition:
    return AchievementDefinition(
        id=id,
        title=title,
        description=description,
        category=category,
        requirement=requirement,
    )


_S = AchievementCategory.STREAK
_H = AchievementCategory.HOURS
_C = AchievementCategory.CONSISTENCY
_X = AchievementCategory.SPECIAL

ACHIEVEMENT_CATALOG: tuple[AchievementDefinition, ...] = (
    # Streaks
    _define("streak_7", "Week Warrior", "Maintain a 7-day streak", _S, 7),
    _define("streak_30", "Monthly Master", "Maintain a 30-day streak", _S, 30),
    _define("streak_50", "Unstoppable", "Maintain a 50-day streak", _S, 50),
    _define("streak_100", "Centurion", "Maintain a 100-day streak", _S, 100),
    _define("streak_365", "Year of Light", "Maintain a 365-day streak", _S, 365),
    # Total hours
    _define("hours_10", "First Steps", "Log 10 total hours in sunlight", _H, 10),
    _define("hours_50", "Sun Seeker", "Log 50 total hours in sunlight", _H, 50),
    _define("hours_100", "Light Enthusiast", "Log 100 total hours in sunlight", _H, 100),
    _define("hours_500", "Sunshine Champion", "Log 500 total hours in sunlight", _H, 500),
    _define("hours_1000", "Solar Deity", "Log 1000 total hours in sunlight", _H, 1000),
    # Consistency
    _define("early_bird_7", "Early Bird", "Complete goal before 8 AM for 7 days", _C, 7),
    _define("early_bird_30", "Dawn Chaser", "Complete goal before 8 AM for 30 days", _C, 30),
    _define("perfect_week", "Perfect Week", "Complete every day this week", _C, 7),
    _define("overachiever", "Overachiever", "Exceed daily goal by 2x for 7 days", _C, 7),
    # Special
    _define("first_goal", "First Light", "Complete your first daily goal", _X, 1),
    _define("comeback", "Phoenix Rising", "Start a new streak after breaking one", _X, 1),
    _define("dedicated", "Dedicated", "Complete goal every day for a month", _X, 30),
    _define("no_emergency", "Self Control Master", "Go 30 days without using emergency unlock", _X, 30),
)

CATALOG_BY_ID: Mapping[str, AchievementDefinition] = MappingProxyType(
    {d.id: d for d in ACHIEVEMENT_CATALOG}
)


def initial_achievements() -> list[Achievement]:
    """Fresh, all-locked achievement records for a new user."""
    return [Achievement.from_definition(d) for d in ACHIEVEMENT_CATALOG]
