"""Achievement evaluation against historical counters.

For every locked achievement, a rule maps the counters to a progress value;
the achievement unlocks once progress reaches its requirement.  Unlocking
is one-way: the record gets unlocked_at and progress pinned at the
requirement, and is returned untouched on every later evaluation.

Locked progress is recomputed on each call rather than remembered, so it
can go down when a counter does (a broken streak, for instance).
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable

from lumis_engine.domain.achievement import (
    ACHIEVEMENT_CATALOG,
    Achievement,
    AchievementCounters,
)
from lumis_engine.domain.enums import AchievementCategory
from lumis_engine.foundation.clock import utc_now

logger = logging.getLogger(__name__)

ProgressRule = Callable[[AchievementCounters], float]


def _streak(c: AchievementCounters) -> float:
    return c.current_streak


def _hours(c: AchievementCounters) -> float:
    return c.total_hours


def _early_bird(c: AchievementCounters) -> float:
    return c.early_bird_days


def _overachiever(c: AchievementCounters) -> float:
    return c.overachiever_days


def _goals(c: AchievementCounters) -> float:
    return c.total_goals_completed


def _comeback(c: AchievementCounters) -> float:
    return 1 if c.has_had_streak_before and c.current_streak >= 1 else 0


def _no_emergency(c: AchievementCounters) -> float:
    return c.consecutive_days_without_emergency_unlock


PROGRESS_RULES: dict[str, ProgressRule] = {
    "streak_7": _streak,
    "streak_30": _streak,
    "streak_50": _streak,
    "streak_100": _streak,
    "streak_365": _streak,
    "hours_10": _hours,
    "hours_50": _hours,
    "hours_100": _hours,
    "hours_500": _hours,
    "hours_1000": _hours,
    "early_bird_7": _early_bird,
    "early_bird_30": _early_bird,
    "perfect_week": _streak,
    "dedicated": _streak,
    "overachiever": _overachiever,
    "first_goal": _goals,
    "comeback": _comeback,
    "no_emergency": _no_emergency,
}


def evaluate(
    counters: AchievementCounters,
    achievements: Iterable[Achievement],
    now: datetime | None = None,
) -> list[Achievement]:
    """Return the achievement list with progress and unlocks applied.

    Unlocked records and records with no rule pass through unchanged.
    """
    now = now or utc_now()
    updated: list[Achievement] = []
    for achievement in achievements:
        rule = PROGRESS_RULES.get(achievement.id)
        if achievement.unlocked or rule is None:
            updated.append(achievement)
            continue

        progress = rule(counters)
        if progress >= achievement.requirement:
            logger.info("Achievement unlocked: %s (%s)", achievement.id, achievement.title)
            updated.append(achievement.model_copy(update={
                "unlocked": True,
                "unlocked_at": now,
                "progress": achievement.requirement,
            }))
        else:
            updated.append(achievement.model_copy(update={
                "progress": min(progress, achievement.requirement),
            }))
    return updated


def newly_unlocked(
    before: Iterable[Achievement],
    after: Iterable[Achievement],
) -> list[Achievement]:
    """Achievements unlocked in *after* that were locked in *before*."""
    was_unlocked = {a.id for a in before if a.unlocked}
    return [a for a in after if a.unlocked and a.id not in was_unlocked]


def by_category(achievements: Iterable[Achievement]) -> dict[AchievementCategory, list[Achievement]]:
    grouped: dict[AchievementCategory, list[Achievement]] = {c: [] for c in AchievementCategory}
    for a in achievements:
        grouped[a.category].append(a)
    return grouped


def unlocked_count(achievements: Iterable[Achievement]) -> int:
    return sum(1 for a in achievements if a.unlocked)


def total_count() -> int:
    return len(ACHIEVEMENT_CATALOG)
