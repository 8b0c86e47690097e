"""Controlled enumerations for the lumis-engine domain.

Every categorical field in the domain references an enum defined here.
Free-form strings are not accepted for classification fields.
"""

from __future__ import annotations

from enum import Enum


class ActivityType(str, Enum):
    """What the user claims to be doing outside."""

    WALK = "walk"
    RUN = "run"
    MEDITATE = "meditate"
    SIT_SOAK = "sit_soak"
    OTHER = "other"

    @property
    def is_ambulatory(self) -> bool:
        return self in (ActivityType.WALK, ActivityType.RUN)

    @property
    def is_stationary(self) -> bool:
        return self in (ActivityType.MEDITATE, ActivityType.SIT_SOAK)


class SessionStatus(str, Enum):
    """Lifecycle of an outdoor session: running → completed | cancelled."""

    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AchievementCategory(str, Enum):
    STREAK = "streak"
    HOURS = "hours"
    CONSISTENCY = "consistency"
    SPECIAL = "special"


class EnvironmentStatus(str, Enum):
    """Coarse reading of where the phone appears to be."""

    IDLE = "idle"
    OUTDOORS = "outdoors"
    IN_POCKET = "in_pocket"
    INDOORS = "indoors"
    NIGHT = "night"
