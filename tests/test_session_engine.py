"""Tests for the session engine: lifecycle, window crediting and goal events.

Uses clock patching via lumis_engine.domain.session.utc_now for close times.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from lumis_engine.core.session_engine import (
    SessionClosedError,
    SessionEngine,
    StaleWindowError,
)
from lumis_engine.domain.enums import ActivityType, SessionStatus
from lumis_engine.domain.progress import DailyProgress, GoalMetEvent
from lumis_engine.domain.sensor import ConfidenceInputs, SensorSample
from lumis_engine.domain.session import EvaluationWindow

from tests.test_fusion import _half_credit_inputs, _inputs, _no_credit_inputs


# ── Helpers ──────────────────────────────────────────────────────────────────

_BASE = datetime(2026, 6, 1, 7, 0, 0, tzinfo=timezone.utc)
_DAY = _BASE.date()


def _window(
    index: int,
    inputs: ConfidenceInputs | None = None,
    minutes: float = 1.0,
    steps: int = 0,
) -> EvaluationWindow:
    """The index-th back-to-back window after _BASE."""
    start = _BASE + timedelta(minutes=index * minutes)
    return EvaluationWindow(
        started_at=start,
        ended_at=start + timedelta(minutes=minutes),
        inputs=inputs or _inputs(),
        steps=steps,
    )


def _sample(offset_seconds: int = 0, lux: float = 20000.0, steps: int = 10) -> SensorSample:
    return SensorSample(
        timestamp=_BASE + timedelta(seconds=offset_seconds),
        lux=lux,
        steps_delta=steps,
    )


def _running(engine: SessionEngine | None = None):
    engine = engine or SessionEngine()
    session = engine.start_session(ActivityType.WALK, started_at=_BASE)
    return engine, session


# ── Lifecycle ────────────────────────────────────────────────────────────────


class TestLifecycle:
    def test_new_session_is_running(self) -> None:
        _, session = _running()
        assert session.status == SessionStatus.RUNNING
        assert session.is_running
        assert session.start_time == _BASE

    def test_complete(self) -> None:
        engine, session = _running()
        end = _BASE + timedelta(minutes=10)
        engine.complete_session(session, ended_at=end)
        assert session.status == SessionStatus.COMPLETED
        assert session.ended_at == end

    def test_complete_uses_clock_when_no_end_given(self) -> None:
        engine, session = _running()
        end = _BASE + timedelta(minutes=5)
        with patch("lumis_engine.domain.session.utc_now", return_value=end):
            engine.complete_session(session)
        assert session.ended_at == end

    def test_cancel_drops_pending_keeps_credit(self) -> None:
        engine, session = _running()
        progress = DailyProgress(_DAY, 10)
        engine.apply_window(session, progress, _window(0))
        engine.record_sample(session, _sample(90))
        engine.cancel_session(session)
        assert session.status == SessionStatus.CANCELLED
        assert session.pending_samples == []
        assert session.credited_light_minutes == pytest.approx(1.0)
        assert progress.credited_minutes_so_far == pytest.approx(1.0)

    def test_closed_session_rejects_everything(self) -> None:
        engine, session = _running()
        engine.complete_session(session)
        progress = DailyProgress(_DAY, 3)
        with pytest.raises(SessionClosedError):
            engine.apply_window(session, progress, _window(0))
        with pytest.raises(SessionClosedError):
            engine.record_sample(session, _sample())
        with pytest.raises(SessionClosedError):
            engine.complete_session(session)
        with pytest.raises(SessionClosedError):
            engine.cancel_session(session)

    def test_open_day_uses_tenure_goal(self) -> None:
        assert SessionEngine.open_day(_DAY, 5).goal_minutes_required == 3
        assert SessionEngine.open_day(_DAY, 61).goal_minutes_required == 3
        assert SessionEngine.open_day(_DAY, 45).goal_minutes_required == 5


# ── Window crediting ─────────────────────────────────────────────────────────


class TestApplyWindow:
    def test_full_credit_window(self) -> None:
        engine, session = _running()
        progress = DailyProgress(_DAY, 10)
        outcome = engine.apply_window(session, progress, _window(0, minutes=2))
        assert outcome.result.credit_rate == 1.0
        assert outcome.credited_minutes == pytest.approx(2.0)
        assert outcome.session_credited_minutes == pytest.approx(2.0)
        assert outcome.day_credited_minutes == pytest.approx(2.0)
        assert outcome.goal_met_event is None

    def test_half_credit_window(self) -> None:
        engine, session = _running()
        progress = DailyProgress(_DAY, 10)
        outcome = engine.apply_window(session, progress, _window(0, _half_credit_inputs(), minutes=2))
        assert outcome.credited_minutes == pytest.approx(1.0)

    def test_no_credit_window_still_commits(self) -> None:
        engine, session = _running()
        progress = DailyProgress(_DAY, 10)
        outcome = engine.apply_window(session, progress, _window(0, _no_credit_inputs()))
        assert outcome.credited_minutes == 0.0
        assert len(session.committed_windows) == 1
        assert session.last_window_end == _window(0).ended_at

    def test_commit_clears_pending_samples(self) -> None:
        engine, session = _running()
        engine.record_sample(session, _sample(10, steps=40))
        engine.apply_window(session, DailyProgress(_DAY, 10), _window(0, steps=40))
        assert session.pending_samples == []
        assert session.steps == 40

    def test_stale_window_rejected(self) -> None:
        engine, session = _running()
        progress = DailyProgress(_DAY, 10)
        engine.apply_window(session, progress, _window(1))
        with pytest.raises(StaleWindowError):
            engine.apply_window(session, progress, _window(0))
        assert progress.credited_minutes_so_far == pytest.approx(1.0)

    def test_same_end_rejected(self) -> None:
        engine, session = _running()
        progress = DailyProgress(_DAY, 10)
        engine.apply_window(session, progress, _window(0))
        with pytest.raises(StaleWindowError):
            engine.apply_window(session, progress, _window(0))

    def test_overlapping_windows_credit_time_once(self) -> None:
        engine, session = _running()
        progress = SessionEngine.open_day(_DAY, 5)
        engine.apply_window(session, progress, _window(0))
        for minutes in (2.0, 3.0):
            growing = EvaluationWindow(
                started_at=_BASE,
                ended_at=_BASE + timedelta(minutes=minutes),
                inputs=_inputs(),
            )
            with pytest.raises(StaleWindowError):
                engine.apply_window(session, progress, growing)
        assert session.credited_light_minutes == pytest.approx(1.0)
        assert progress.is_goal_met is False

    def test_partial_overlap_rejected(self) -> None:
        engine, session = _running()
        progress = DailyProgress(_DAY, 10)
        engine.apply_window(session, progress, _window(0, minutes=2))
        overlap = EvaluationWindow(
            started_at=_BASE + timedelta(minutes=1),
            ended_at=_BASE + timedelta(minutes=4),
            inputs=_inputs(),
        )
        with pytest.raises(StaleWindowError) as info:
            engine.apply_window(session, progress, overlap)
        assert info.value.boundary == _BASE + timedelta(minutes=2)
        assert progress.credited_minutes_so_far == pytest.approx(2.0)

    def test_window_before_session_start_rejected(self) -> None:
        engine, session = _running()
        progress = DailyProgress(_DAY, 10)
        early = EvaluationWindow(
            started_at=_BASE - timedelta(minutes=5),
            ended_at=_BASE + timedelta(minutes=1),
            inputs=_inputs(),
        )
        with pytest.raises(StaleWindowError) as info:
            engine.apply_window(session, progress, early)
        assert info.value.boundary == _BASE
        assert session.committed_windows == []

    def test_adjacent_window_accepted(self) -> None:
        engine, session = _running()
        progress = DailyProgress(_DAY, 10)
        engine.apply_window(session, progress, _window(0))
        engine.apply_window(session, progress, _window(1))
        assert session.credited_light_minutes == pytest.approx(2.0)

    def test_sessions_are_independent(self) -> None:
        engine = SessionEngine()
        a = engine.start_session(ActivityType.WALK, started_at=_BASE)
        b = engine.start_session(ActivityType.RUN, started_at=_BASE)
        progress = DailyProgress(_DAY, 10)
        engine.apply_window(a, progress, _window(1))
        engine.apply_window(b, progress, _window(0))
        assert progress.credited_minutes_so_far == pytest.approx(2.0)

    def test_backwards_window_is_invalid(self) -> None:
        with pytest.raises(ValueError):
            EvaluationWindow(
                started_at=_BASE,
                ended_at=_BASE - timedelta(seconds=1),
                inputs=_inputs(),
            )


# ── Goal met ─────────────────────────────────────────────────────────────────


class TestGoalMet:
    def test_day_five_scenario(self) -> None:
        engine, session = _running()
        progress = SessionEngine.open_day(_DAY, 5)
        assert progress.goal_minutes_required == 3

        rates = []
        for i, inputs in enumerate([_inputs(), _inputs(), _half_credit_inputs()]):
            outcome = engine.apply_window(session, progress, _window(i, inputs))
            rates.append(outcome.result.credit_rate)
            assert outcome.goal_met_event is None
        assert rates == [1.0, 1.0, 0.5]
        assert progress.credited_minutes_so_far == pytest.approx(2.5)
        assert progress.is_goal_met is False

        outcome = engine.apply_window(session, progress, _window(3))
        assert progress.credited_minutes_so_far == pytest.approx(3.5)
        assert progress.is_goal_met is True
        assert outcome.goal_met_event is not None
        assert outcome.goal_met_event.day == _DAY
        assert outcome.goal_met_event.met_at == _window(3).ended_at
        assert outcome.goal_met_event.session_id == str(session.session_id)

        later = engine.apply_window(session, progress, _window(4))
        assert later.goal_met_event is None
        assert progress.is_goal_met is True

    def test_met_day_stops_counting(self) -> None:
        engine, session = _running()
        progress = DailyProgress(_DAY, 1)
        engine.apply_window(session, progress, _window(0))
        engine.apply_window(session, progress, _window(1))
        assert progress.credited_minutes_so_far == pytest.approx(1.0)
        assert session.credited_light_minutes == pytest.approx(2.0)

    def test_listener_notified_once(self) -> None:
        engine = SessionEngine()
        events: list[GoalMetEvent] = []
        engine.add_goal_listener(events.append)
        session = engine.start_session(ActivityType.WALK, started_at=_BASE)
        progress = DailyProgress(_DAY, 2)
        for i in range(4):
            engine.apply_window(session, progress, _window(i))
        assert len(events) == 1
        assert events[0].credited_minutes == pytest.approx(2.0)

    def test_failing_listener_does_not_undo_goal(self) -> None:
        engine = SessionEngine()

        def boom(event: GoalMetEvent) -> None:
            raise RuntimeError("shield offline")

        engine.add_goal_listener(boom)
        session = engine.start_session(ActivityType.WALK, started_at=_BASE)
        progress = DailyProgress(_DAY, 1)
        outcome = engine.apply_window(session, progress, _window(0))
        assert outcome.goal_met_event is not None
        assert progress.is_goal_met is True

    def test_goal_met_across_sessions(self) -> None:
        engine = SessionEngine()
        progress = DailyProgress(_DAY, 2)
        first = engine.start_session(ActivityType.WALK, started_at=_BASE)
        engine.apply_window(first, progress, _window(0))
        engine.complete_session(first)
        second = engine.start_session(ActivityType.SIT_SOAK, started_at=_BASE)
        outcome = engine.apply_window(second, progress, _window(5))
        assert outcome.goal_met_event is not None
        assert outcome.goal_met_event.session_id == str(second.session_id)
