"""ActivitySession — one outdoor session accumulating credited light minutes.

Lifecycle:  running → completed | cancelled
    - running:   accepting samples and evaluation windows
    - completed: closed by the user; immutable
    - cancelled: closed early; the in-flight window is discarded but
                 credit from already-committed windows is kept

A session holds two kinds of telemetry:
    - pending samples: the in-flight window, not yet credited
    - committed windows: fused, credited, never rewritten
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from lumis_engine.domain.confidence import ConfidenceResult
from lumis_engine.domain.enums import ActivityType, SessionStatus
from lumis_engine.domain.sensor import ConfidenceInputs, SensorSample
from lumis_engine.foundation.clock import ensure_aware, utc_now
from lumis_engine.foundation.identifiers import new_id


# ── Evaluation Window ────────────────────────────────────────────────────────

class EvaluationWindow(BaseModel):
    """A span of session time with its summarised confidence inputs."""

    started_at: datetime
    ended_at: datetime
    inputs: ConfidenceInputs
    steps: int = Field(default=0, description="Steps counted during the window")
    lux: Optional[float] = Field(default=None, description="Representative lux for the window")

    model_config = {"frozen": True}

    @field_validator("started_at", "ended_at")
    @classmethod
    def timestamps_must_be_aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)

    @model_validator(mode="after")
    def window_must_not_run_backwards(self) -> "EvaluationWindow":
        if self.ended_at < self.started_at:
            raise ValueError("window ended_at precedes started_at")
        return self

    @property
    def duration_seconds(self) -> float:
        return (self.ended_at - self.started_at).total_seconds()

    @property
    def minutes(self) -> float:
        return self.duration_seconds / 60.0


class CommittedWindow(BaseModel):
    """A window after fusion, with the minutes it actually earned."""

    window: EvaluationWindow
    result: ConfidenceResult
    credited_minutes: float

    model_config = {"frozen": True}


# ── Activity Session ─────────────────────────────────────────────────────────

class ActivitySession:
    """A mutable outdoor session.

    Mutated only by the SessionEngine; callers that share a session across
    tasks serialise access through the UserStore lock.
    """

    __slots__ = (
        "session_id",
        "activity_type",
        "start_time",
        "status",
        "ended_at",
        "_committed",
        "_pending",
    )

    def __init__(
        self,
        activity_type: ActivityType,
        start_time: datetime | None = None,
        session_id: UUID | None = None,
    ) -> None:
        self.session_id: UUID = session_id or new_id()
        self.activity_type: ActivityType = activity_type
        self.start_time: datetime = ensure_aware(start_time) if start_time else utc_now()
        self.status: SessionStatus = SessionStatus.RUNNING
        self.ended_at: datetime | None = None
        self._committed: list[CommittedWindow] = []
        self._pending: list[SensorSample] = []

    # ── Mutation (SessionEngine only) ────────────────────────────────────

    def buffer_sample(self, sample: SensorSample) -> None:
        self._pending.append(sample)

    def commit(self, committed: CommittedWindow) -> None:
        self._committed.append(committed)
        self._pending.clear()

    def close(self, status: SessionStatus, ended_at: datetime | None = None) -> None:
        if status == SessionStatus.CANCELLED:
            self._pending.clear()
        self.status = status
        self.ended_at = ended_at or utc_now()

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def is_running(self) -> bool:
        return self.status == SessionStatus.RUNNING

    @property
    def committed_windows(self) -> list[CommittedWindow]:
        """Read-only view of credited windows."""
        return list(self._committed)

    @property
    def pending_samples(self) -> list[SensorSample]:
        return list(self._pending)

    @property
    def last_window_end(self) -> datetime | None:
        if not self._committed:
            return None
        return self._committed[-1].window.ended_at

    @property
    def elapsed_seconds(self) -> float:
        return sum(c.window.duration_seconds for c in self._committed)

    @property
    def steps(self) -> int:
        committed = sum(c.window.steps for c in self._committed)
        return committed + sum(s.steps_delta for s in self._pending)

    @property
    def lux(self) -> float:
        """Most recent lux reading seen, pending samples first."""
        if self._pending:
            return self._pending[-1].lux
        for c in reversed(self._committed):
            if c.window.lux is not None:
                return c.window.lux
        return 0.0

    @property
    def credited_light_minutes(self) -> float:
        return sum(c.credited_minutes for c in self._committed)

    # ── Summary ──────────────────────────────────────────────────────────

    def summary(self) -> dict:
        return {
            "session_id": str(self.session_id),
            "activity_type": self.activity_type.value,
            "start_time": self.start_time.isoformat(),
            "status": self.status.value,
            "elapsed_seconds": self.elapsed_seconds,
            "steps": self.steps,
            "lux": self.lux,
            "credited_light_minutes": round(self.credited_light_minutes, 4),
            "windows": len(self._committed),
        }

    def __repr__(self) -> str:
        return (
            f"ActivitySession(id={self.session_id!s}, "
            f"type={self.activity_type.value}, "
            f"status={self.status.value}, "
            f"credited={self.credited_light_minutes:.2f})"
        )
