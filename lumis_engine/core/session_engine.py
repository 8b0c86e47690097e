"""SessionEngine — turns evaluation windows into credited goal progress.

Per window:
    1. Reject windows for sessions that are no longer running.
    2. Reject windows that reach back before the session started or into
       time an earlier window already covered, so the same minutes are
       never credited twice.
    3. Fuse the window's inputs → ConfidenceResult.
    4. credited = window minutes × credit rate; add to session and day.
    5. If the day's credit reaches the goal for the first time, emit a
       GoalMetEvent and notify listeners.

The engine holds no per-user state of its own: sessions and daily progress
are passed in explicitly.  Callers must not apply windows for the same
session concurrently; the UserStore serialises them.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Optional

from pydantic import BaseModel

from lumis_engine.core.difficulty import resolve_goal_minutes
from lumis_engine.core.fusion import ConfidenceFusionEngine
from lumis_engine.domain.confidence import ConfidenceResult
from lumis_engine.domain.enums import ActivityType, SessionStatus
from lumis_engine.domain.progress import DailyProgress, GoalMetEvent
from lumis_engine.domain.sensor import SensorSample
from lumis_engine.domain.session import ActivitySession, CommittedWindow, EvaluationWindow
from lumis_engine.foundation.clock import utc_now

logger = logging.getLogger(__name__)

GoalListener = Callable[[GoalMetEvent], None]


class SessionClosedError(Exception):
    """Raised when a completed or cancelled session is asked to change."""

    def __init__(self, session: ActivitySession) -> None:
        self.session_id = session.session_id
        self.status = session.status
        super().__init__(f"Session {session.session_id} is {session.status.value}")


class StaleWindowError(Exception):
    """Raised when a window overlaps time that is already accounted for.

    *boundary* is the earliest instant the window may start: the end of the
    last committed window, or the session start when nothing is committed.
    """

    def __init__(self, window: EvaluationWindow, boundary: datetime) -> None:
        self.window_start = window.started_at
        self.window_end = window.ended_at
        self.boundary = boundary
        super().__init__(
            f"Window {window.started_at.isoformat()} to {window.ended_at.isoformat()} "
            f"starts before {boundary.isoformat()}"
        )


class WindowOutcome(BaseModel):
    """What applying one window did."""

    result: ConfidenceResult
    credited_minutes: float
    session_credited_minutes: float
    day_credited_minutes: float
    goal_met_event: Optional[GoalMetEvent] = None

    model_config = {"frozen": True}


class SessionEngine:
    """Orchestrates fusion, difficulty and goal tracking for sessions."""

    def __init__(self, fusion: ConfidenceFusionEngine | None = None) -> None:
        self._fusion = fusion or ConfidenceFusionEngine()
        self._goal_listeners: list[GoalListener] = []

    # ── Listeners ────────────────────────────────────────────────────────

    def add_goal_listener(self, listener: GoalListener) -> None:
        """Register an external collaborator for goal-met events."""
        self._goal_listeners.append(listener)

    def _emit(self, event: GoalMetEvent) -> None:
        for listener in self._goal_listeners:
            try:
                listener(event)
            except Exception as exc:
                # The state change is already committed; a broken
                # collaborator must not undo it.
                logger.warning("Goal listener %r failed: %s", listener, exc)

    # ── Day / session lifecycle ──────────────────────────────────────────

    @staticmethod
    def open_day(day: date, days_in_program: int) -> DailyProgress:
        """Create the day's progress record with its tenure-based goal."""
        return DailyProgress(day, resolve_goal_minutes(days_in_program))

    @staticmethod
    def start_session(
        activity_type: ActivityType,
        started_at: datetime | None = None,
    ) -> ActivitySession:
        session = ActivitySession(activity_type, start_time=started_at)
        logger.info(
            "Started %s session %s", activity_type.value, session.session_id
        )
        return session

    @staticmethod
    def record_sample(session: ActivitySession, sample: SensorSample) -> None:
        """Buffer raw telemetry into the session's in-flight window."""
        if not session.is_running:
            raise SessionClosedError(session)
        session.buffer_sample(sample)

    @staticmethod
    def complete_session(session: ActivitySession, ended_at: datetime | None = None) -> None:
        if not session.is_running:
            raise SessionClosedError(session)
        session.close(SessionStatus.COMPLETED, ended_at)
        logger.info(
            "Completed session %s with %.2f credited minutes",
            session.session_id,
            session.credited_light_minutes,
        )

    @staticmethod
    def cancel_session(session: ActivitySession, ended_at: datetime | None = None) -> None:
        """Close the session, dropping the in-flight window but keeping credit."""
        if not session.is_running:
            raise SessionClosedError(session)
        dropped = len(session.pending_samples)
        session.close(SessionStatus.CANCELLED, ended_at)
        logger.info(
            "Cancelled session %s (dropped %d pending samples, kept %.2f minutes)",
            session.session_id,
            dropped,
            session.credited_light_minutes,
        )

    # ── Windows ──────────────────────────────────────────────────────────

    def apply_window(
        self,
        session: ActivitySession,
        progress: DailyProgress,
        window: EvaluationWindow,
    ) -> WindowOutcome:
        """Fuse, credit and commit one evaluation window."""
        if not session.is_running:
            raise SessionClosedError(session)

        boundary = session.last_window_end or session.start_time
        if window.started_at < boundary or window.ended_at <= boundary:
            logger.warning(
                "Session %s rejected window %s to %s (boundary %s)",
                session.session_id,
                window.started_at.isoformat(),
                window.ended_at.isoformat(),
                boundary.isoformat(),
            )
            raise StaleWindowError(window, boundary)

        result = self._fusion.evaluate(window.inputs)
        credited = window.minutes * result.credit_rate

        session.commit(CommittedWindow(window=window, result=result, credited_minutes=credited))
        met_now = progress.add_credit(credited, at=window.ended_at)

        logger.debug(
            "Session %s window → score=%d rate=%.1f credited=%.3f (day %.3f/%s)",
            session.session_id,
            result.score,
            result.credit_rate,
            credited,
            progress.credited_minutes_so_far,
            progress.goal_minutes_required,
        )

        event = None
        if met_now:
            event = GoalMetEvent(
                day=progress.date,
                goal_minutes_required=progress.goal_minutes_required,
                credited_minutes=progress.credited_minutes_so_far,
                met_at=progress.goal_met_at or utc_now(),
                session_id=str(session.session_id),
            )
            logger.info(
                "Daily goal met for %s: %.2f/%s minutes",
                progress.date.isoformat(),
                progress.credited_minutes_so_far,
                progress.goal_minutes_required,
            )
            self._emit(event)

        return WindowOutcome(
            result=result,
            credited_minutes=credited,
            session_credited_minutes=session.credited_light_minutes,
            day_credited_minutes=progress.credited_minutes_so_far,
            goal_met_event=event,
        )
