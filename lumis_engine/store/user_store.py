"""In-memory per-user progression store with async-safe access.

Design notes:
    - One asyncio.Lock per user.  Every mutation of a user's sessions,
      daily progress, streak, counters or achievements happens under that
      lock, so evaluation windows for the same user are applied one at a
      time, in submission order.  Different users never contend.
    - A store-level lock guards only the user table itself.
    - The store does NOT decide credit.  It hands windows to the
      SessionEngine and folds the outcome into counters and achievements.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timedelta, tzinfo
from uuid import UUID

from pydantic import BaseModel

from lumis_engine.core import achievement_engine
from lumis_engine.core.counters import CounterTracker
from lumis_engine.core.difficulty import days_in_program, label_for, next_milestone
from lumis_engine.core.session_engine import SessionEngine, WindowOutcome
from lumis_engine.core.streak_engine import is_streak_at_risk, roll_over_progress
from lumis_engine.domain.achievement import Achievement, initial_achievements
from lumis_engine.domain.enums import ActivityType
from lumis_engine.domain.progress import DailyProgress
from lumis_engine.domain.sensor import GeoLocation, SensorSample
from lumis_engine.domain.session import ActivitySession, EvaluationWindow
from lumis_engine.domain.streak import StreakState
from lumis_engine.foundation.clock import utc_now, utc_today
from lumis_engine.processors.window_builder import WindowBuilder

logger = logging.getLogger(__name__)


class SessionNotFoundError(Exception):
    """Raised when a session id is unknown for the user."""

    def __init__(self, user_id: str, session_id: UUID) -> None:
        self.user_id = user_id
        self.session_id = session_id
        super().__init__(f"No session {session_id} for user {user_id}")


class WindowReceipt(BaseModel):
    """Outcome of one submitted window plus any achievements it unlocked."""

    outcome: WindowOutcome
    newly_unlocked: list[Achievement] = []

    model_config = {"frozen": True}


class UserState:
    """Everything the engine tracks for one user."""

    __slots__ = (
        "user_id",
        "program_start",
        "timezone",
        "progress",
        "sessions",
        "streak",
        "achievements",
        "counters",
        "lock",
    )

    def __init__(self, user_id: str, program_start: date, tz: tzinfo | None = None) -> None:
        self.user_id = user_id
        self.program_start = program_start
        self.timezone = tz
        self.progress: DailyProgress | None = None
        self.sessions: dict[UUID, ActivitySession] = {}
        self.streak = StreakState()
        self.achievements: list[Achievement] = initial_achievements()
        self.counters = CounterTracker()
        self.lock = asyncio.Lock()

    def local_date(self, when: datetime) -> date:
        """Calendar date of *when* as the user sees it."""
        return (when.astimezone(self.timezone) if self.timezone else when).date()

    def session(self, session_id: UUID) -> ActivitySession:
        try:
            return self.sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(self.user_id, session_id) from None


class UserStore:
    """Async-safe, in-memory store of per-user progression state.

    Args:
        engine: SessionEngine used for all window accounting.
        early_bird_hour: Local hour before which a goal counts as early.
        overachiever_factor: Multiple of the goal that counts as overachieving.
        vehicle_speed_cutoff: Passed to window builders for pending samples.
        lux_min_samples: Readings needed before a lux pattern is judged.
    """

    def __init__(
        self,
        engine: SessionEngine | None = None,
        early_bird_hour: int = 8,
        overachiever_factor: float = 2.0,
        vehicle_speed_cutoff: float = 9.0,
        lux_min_samples: int = 5,
    ) -> None:
        self._engine = engine or SessionEngine()
        self._early_bird_hour = early_bird_hour
        self._overachiever_factor = overachiever_factor
        self._vehicle_speed_cutoff = vehicle_speed_cutoff
        self._lux_min_samples = lux_min_samples
        self._lock = asyncio.Lock()
        self._users: dict[str, UserState] = {}

    @property
    def engine(self) -> SessionEngine:
        return self._engine

    # ── Users ────────────────────────────────────────────────────────────

    async def register(
        self,
        user_id: str,
        program_start: date | None = None,
        tz: tzinfo | None = None,
    ) -> UserState:
        """Create the user if missing; existing users are returned untouched."""
        async with self._lock:
            user = self._users.get(user_id)
            if user is None:
                start = program_start or (utc_now().astimezone(tz).date() if tz else utc_today())
                user = UserState(user_id, start, tz)
                self._users[user_id] = user
                logger.info("Registered user %s (program start %s)", user_id, user.program_start)
            return user

    async def _user(self, user_id: str) -> UserState:
        async with self._lock:
            user = self._users.get(user_id)
        if user is None:
            return await self.register(user_id)
        return user

    def _ensure_day(self, user: UserState, day: date) -> DailyProgress:
        """Must be called while holding user.lock."""
        if user.progress is None:
            user.progress = self._engine.open_day(day, days_in_program(user.program_start, day))
        return user.progress

    # ── Sessions ─────────────────────────────────────────────────────────

    async def start_session(
        self,
        user_id: str,
        activity_type: ActivityType,
        started_at: datetime | None = None,
    ) -> ActivitySession:
        user = await self._user(user_id)
        async with user.lock:
            session = self._engine.start_session(activity_type, started_at)
            self._ensure_day(user, user.local_date(session.start_time))
            user.sessions[session.session_id] = session
            return session

    async def get_session(self, user_id: str, session_id: UUID) -> ActivitySession:
        user = await self._user(user_id)
        async with user.lock:
            return user.session(session_id)

    async def record_sample(self, user_id: str, session_id: UUID, sample: SensorSample) -> int:
        """Buffer a sample; returns the in-flight sample count."""
        user = await self._user(user_id)
        async with user.lock:
            session = user.session(session_id)
            self._engine.record_sample(session, sample)
            return len(session.pending_samples)

    async def submit_window(
        self,
        user_id: str,
        session_id: UUID,
        window: EvaluationWindow,
    ) -> WindowReceipt:
        user = await self._user(user_id)
        async with user.lock:
            return self._apply(user, user.session(session_id), window)

    async def close_pending_window(
        self,
        user_id: str,
        session_id: UUID,
        location: GeoLocation,
        ended_at: datetime | None = None,
        cloud_cover_percent: float = 0.0,
    ) -> WindowReceipt:
        """Summarise the session's buffered samples into a window and apply it.

        Raises:
            ValueError: If the session has no buffered samples.
        """
        user = await self._user(user_id)
        async with user.lock:
            session = user.session(session_id)
            builder = WindowBuilder(
                location,
                session.activity_type,
                started_at=session.last_window_end or session.start_time,
                vehicle_speed_cutoff=self._vehicle_speed_cutoff,
                lux_min_samples=self._lux_min_samples,
            )
            for sample in session.pending_samples:
                builder.add(sample)
            window = builder.build(ended_at=ended_at, cloud_cover_percent=cloud_cover_percent)
            return self._apply(user, session, window)

    def _apply(
        self,
        user: UserState,
        session: ActivitySession,
        window: EvaluationWindow,
    ) -> WindowReceipt:
        """Must be called while holding user.lock."""
        progress = self._ensure_day(user, user.local_date(window.ended_at))
        outcome = self._engine.apply_window(session, progress, window)
        user.counters.record_credit(outcome.credited_minutes)

        if outcome.goal_met_event is not None:
            user.counters.record_goal_met(
                outcome.goal_met_event,
                early_bird_hour=self._early_bird_hour,
                local_tz=user.timezone,
            )
        unlocked: list[Achievement] = []
        if outcome.credited_minutes > 0:
            unlocked = self._evaluate_achievements(user)
        return WindowReceipt(outcome=outcome, newly_unlocked=unlocked)

    async def complete_session(self, user_id: str, session_id: UUID) -> ActivitySession:
        user = await self._user(user_id)
        async with user.lock:
            session = user.session(session_id)
            self._engine.complete_session(session)
            return session

    async def cancel_session(self, user_id: str, session_id: UUID) -> ActivitySession:
        user = await self._user(user_id)
        async with user.lock:
            session = user.session(session_id)
            self._engine.cancel_session(session)
            return session

    # ── Day rollover ─────────────────────────────────────────────────────

    async def roll_over_day(self, user_id: str, new_day: date) -> StreakState:
        """Close the current day into streak and counters, then open *new_day*.

        A user with no progress record for the closing day is treated as
        having missed it, and so is every day skipped between the closing
        day and *new_day*.
        """
        user = await self._user(user_id)
        async with user.lock:
            closing = user.progress
            if closing is not None and closing.date >= new_day:
                logger.debug("User %s already on %s; rollover skipped", user_id, closing.date)
                return user.streak
            if closing is None:
                closing = DailyProgress(new_day - timedelta(days=1), goal_minutes_required=0)
            user.streak = roll_over_progress(user.streak, closing)
            user.counters.close_day(closing, overachiever_factor=self._overachiever_factor)
            for offset in range(1, (new_day - closing.date).days):
                skipped = DailyProgress(closing.date + timedelta(days=offset), goal_minutes_required=0)
                user.streak = roll_over_progress(user.streak, skipped)
                user.counters.close_day(skipped, overachiever_factor=self._overachiever_factor)
            self._evaluate_achievements(user)
            user.progress = self._engine.open_day(
                new_day, days_in_program(user.program_start, new_day)
            )
            # Completed and cancelled sessions stay addressable only for the day
            user.sessions = {
                sid: s for sid, s in user.sessions.items() if s.is_running
            }
            return user.streak

    async def record_emergency_unlock(self, user_id: str) -> None:
        user = await self._user(user_id)
        async with user.lock:
            user.counters.record_emergency_unlock()
            logger.info("Emergency unlock used by %s", user_id)

    # ── Queries ──────────────────────────────────────────────────────────

    async def snapshot(self, user_id: str) -> dict:
        user = await self._user(user_id)
        async with user.lock:
            today = user.progress.date if user.progress else user.local_date(utc_now())
            day = days_in_program(user.program_start, today)
            milestone = next_milestone(day)
            goal = user.progress.goal_minutes_required if user.progress else None
            return {
                "user_id": user.user_id,
                "days_in_program": day,
                "progress": user.progress.summary() if user.progress else None,
                "difficulty_label": label_for(int(goal)) if goal is not None else None,
                "next_milestone": milestone.model_dump() if milestone else None,
                "streak": user.streak.model_dump(mode="json"),
                "streak_at_risk": is_streak_at_risk(user.streak, user.progress),
                "total_hours": round(user.counters.total_hours, 4),
                "sessions": [s.summary() for s in user.sessions.values()],
            }

    async def achievements(self, user_id: str) -> list[Achievement]:
        user = await self._user(user_id)
        async with user.lock:
            return list(user.achievements)

    async def summary(self) -> dict:
        async with self._lock:
            users = list(self._users.values())
        running = sum(
            1 for u in users for s in u.sessions.values() if s.is_running
        )
        return {"users": len(users), "running_sessions": running}

    # ── Internals ────────────────────────────────────────────────────────

    def _evaluate_achievements(self, user: UserState) -> list[Achievement]:
        """Must be called while holding user.lock."""
        before = user.achievements
        after = achievement_engine.evaluate(user.counters.snapshot(user.streak), before)
        user.achievements = after
        return achievement_engine.newly_unlocked(before, after)
