"""WindowBuilder — summarises raw SensorSamples into an EvaluationWindow.

    solar     validate_solar_lux(mean lux) at the window's midpoint
    pattern   analyze_lux_pattern(lux history)
    movement  estimate_movement_confidence(steps, duration, GPS distance),
              forced down when any GPS speed reads as a vehicle
    uv        only when every sample carries a UV index
    temp      never produced (no temperature-gradient model)

The builder never touches sessions or progress: it only maps telemetry
to confidence inputs.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from lumis_engine.core.fusion import (
    DEFAULT_VEHICLE_SPEED_MPS,
    estimate_movement_confidence,
    is_likely_in_vehicle,
)
from lumis_engine.domain.enums import ActivityType
from lumis_engine.domain.sensor import ConfidenceInputs, GeoLocation, SensorSample
from lumis_engine.domain.session import EvaluationWindow
from lumis_engine.processors.lux_pattern import MIN_SAMPLES, analyze_lux_pattern
from lumis_engine.processors.solar import is_daytime, validate_solar_lux

VEHICLE_MOVEMENT_CONFIDENCE = 15
UV_CONFIRMED_CONFIDENCE = 100.0
UV_UNCONFIRMED_CONFIDENCE = 30.0


class WindowBuilder:
    """Accumulates samples for one session and emits evaluation windows.

    Args:
        location: Where the user is; needed for solar plausibility.
        activity_type: The activity the user claims.
        started_at: Start of the first window (defaults to the first sample).
        vehicle_speed_cutoff: GPS speed above which movement is implausible.
        lux_min_samples: Readings needed before the pattern is judged.
    """

    def __init__(
        self,
        location: GeoLocation,
        activity_type: ActivityType,
        started_at: datetime | None = None,
        vehicle_speed_cutoff: float = DEFAULT_VEHICLE_SPEED_MPS,
        lux_min_samples: int = MIN_SAMPLES,
    ) -> None:
        self._location = location
        self._activity_type = activity_type
        self._window_start = started_at
        self._vehicle_speed_cutoff = vehicle_speed_cutoff
        self._lux_min_samples = lux_min_samples
        self._samples: list[SensorSample] = []

    def add(self, sample: SensorSample) -> None:
        if self._window_start is None:
            self._window_start = sample.timestamp
        self._samples.append(sample)

    @property
    def sample_count(self) -> int:
        return len(self._samples)

    def build(
        self,
        ended_at: datetime | None = None,
        cloud_cover_percent: float = 0.0,
    ) -> EvaluationWindow:
        """Summarise buffered samples and start a fresh window.

        Raises:
            ValueError: If no samples have been added.
        """
        if not self._samples:
            raise ValueError("cannot build an evaluation window without samples")

        samples = self._samples
        started_at = self._window_start or samples[0].timestamp
        ended_at = ended_at or samples[-1].timestamp
        inputs = self.summarise(samples, started_at, ended_at, cloud_cover_percent)

        window = EvaluationWindow(
            started_at=started_at,
            ended_at=ended_at,
            inputs=inputs,
            steps=sum(s.steps_delta for s in samples),
            lux=mean_lux_of(samples),
        )
        self._samples = []
        self._window_start = ended_at
        return window

    def summarise(
        self,
        samples: list[SensorSample],
        started_at: datetime,
        ended_at: datetime,
        cloud_cover_percent: float = 0.0,
    ) -> ConfidenceInputs:
        midpoint = started_at + (ended_at - started_at) / 2
        mean_lux = mean_lux_of(samples)
        uv_values = [s.uv_index for s in samples if s.uv_index is not None]
        mean_uv = sum(uv_values) / len(uv_values) if uv_values else 0.0

        solar = validate_solar_lux(
            mean_lux,
            self._location.latitude,
            self._location.longitude,
            midpoint,
            cloud_cover_percent=cloud_cover_percent,
            uv_index=mean_uv,
        )
        pattern = analyze_lux_pattern(
            [s.lux for s in samples], min_samples=self._lux_min_samples
        ).confidence

        return ConfidenceInputs(
            solar_confidence=solar,
            lux_pattern_confidence=pattern,
            movement_confidence=self._movement_confidence(samples, started_at, ended_at),
            uv_confidence=self._uv_confidence(samples, uv_values, mean_uv, midpoint),
        )

    def _movement_confidence(
        self,
        samples: list[SensorSample],
        started_at: datetime,
        ended_at: datetime,
    ) -> float:
        speeds = [s.gps_speed_mps for s in samples if s.gps_speed_mps is not None]
        if any(is_likely_in_vehicle(v, self._vehicle_speed_cutoff) for v in speeds):
            return VEHICLE_MOVEMENT_CONFIDENCE

        distances = [s.gps_distance_delta_m for s in samples if s.gps_distance_delta_m is not None]
        return estimate_movement_confidence(
            self._activity_type,
            steps=sum(s.steps_delta for s in samples),
            session_seconds=(ended_at - started_at).total_seconds(),
            gps_distance_meters=sum(distances) if distances else None,
        )

    def _uv_confidence(
        self,
        samples: list[SensorSample],
        uv_values: list[float],
        mean_uv: float,
        midpoint: datetime,
    ) -> Optional[float]:
        if len(uv_values) != len(samples):
            return None
        daytime = is_daytime(self._location.latitude, self._location.longitude, midpoint)
        if daytime and mean_uv >= 1:
            return UV_CONFIRMED_CONFIDENCE
        return UV_UNCONFIRMED_CONFIDENCE


def mean_lux_of(samples: list[SensorSample]) -> float:
    if not samples:
        return 0.0
    return sum(s.lux for s in samples) / len(samples)
