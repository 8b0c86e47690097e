"""Streak transitions at day rollover.

    yesterday met    → current += 1, longest = max(longest, current)
    yesterday missed → current = 0; has_had_streak_before set if a streak broke
    days skipped since the last rollover count as missed

Each day is folded in at most once.  Grace days, freezes and cooldowns
are a separate policy layered on top by the caller.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

from lumis_engine.domain.progress import DailyProgress
from lumis_engine.domain.streak import StreakState

logger = logging.getLogger(__name__)


def roll_over(state: StreakState, day: date, goal_met: bool) -> StreakState:
    """Fold the closing *day* into the streak and return the new state."""
    if state.last_rollover_date is not None and day <= state.last_rollover_date:
        logger.debug("Day %s already rolled over; streak unchanged", day.isoformat())
        return state

    if state.last_rollover_date is not None and day - state.last_rollover_date > timedelta(days=1):
        state = _break(state, state.last_rollover_date + timedelta(days=1))

    if goal_met:
        current = state.current_streak + 1
        new_state = state.model_copy(update={
            "current_streak": current,
            "longest_streak": max(state.longest_streak, current),
            "last_completed_date": day,
            "last_rollover_date": day,
        })
        logger.info("Streak extended to %d on %s", current, day.isoformat())
        return new_state

    return _break(state, day).model_copy(update={"last_rollover_date": day})


def _break(state: StreakState, day: date) -> StreakState:
    broke = state.current_streak > 0
    if broke:
        logger.info("Streak of %d broken on %s", state.current_streak, day.isoformat())
    return state.model_copy(update={
        "current_streak": 0,
        "has_had_streak_before": state.has_had_streak_before or broke,
    })


def roll_over_progress(state: StreakState, progress: DailyProgress) -> StreakState:
    """Convenience wrapper taking the closing day's progress record."""
    return roll_over(state, progress.date, progress.is_goal_met)


def is_streak_at_risk(state: StreakState, today: DailyProgress | None) -> bool:
    """A live streak with today's goal still open."""
    if state.current_streak <= 0:
        return False
    return today is None or not today.is_goal_met
