"""Sensor-side value objects — raw samples and summarised confidence inputs.

A SensorSample is one instant of phone telemetry.  ConfidenceInputs is the
per-window summary that the fusion engine consumes.  Numeric ranges are
documented but not enforced: callers sanitise raw sensor data, and the
engine degrades gracefully on anything else.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from lumis_engine.foundation.clock import ensure_aware


# ── Sensor Sample ────────────────────────────────────────────────────────────

class SensorSample(BaseModel):
    """A single instant's readings from the phone's sensor layer.

    Immutable after creation.
    """

    timestamp: datetime = Field(..., description="When the readings were taken (UTC-aware)")
    lux: float = Field(..., description="Ambient illuminance in lux, expected >= 0")
    uv_index: Optional[float] = Field(default=None, description="UV index, if a UV source is available")
    temperature_c: Optional[float] = Field(default=None, description="Ambient temperature in Celsius")
    steps_delta: int = Field(default=0, description="Steps since the previous sample")
    gps_distance_delta_m: Optional[float] = Field(
        default=None,
        description="Metres travelled since the previous sample, if GPS is on",
    )
    gps_speed_mps: Optional[float] = Field(default=None, description="Instantaneous GPS speed in m/s")

    model_config = {"frozen": True}

    @field_validator("timestamp")
    @classmethod
    def timestamp_must_be_aware(cls, v: datetime) -> datetime:
        # Phones frequently report naive local-clock timestamps
        return ensure_aware(v)


# ── Location ─────────────────────────────────────────────────────────────────

class GeoLocation(BaseModel):
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)

    model_config = {"frozen": True}


# ── Confidence Inputs ────────────────────────────────────────────────────────

class ConfidenceInputs(BaseModel):
    """Per-window plausibility signals, each on a 0–100 scale.

    solar / pattern / movement are always present.  uv and temp are
    optional; when absent the fusion engine redistributes their weight.
    """

    solar_confidence: float = Field(..., description="Lux vs. expected solar illuminance")
    lux_pattern_confidence: float = Field(..., description="Temporal lux pattern naturalness")
    movement_confidence: float = Field(..., description="Steps/GPS vs. claimed activity")
    uv_confidence: Optional[float] = Field(default=None)
    temp_confidence: Optional[float] = Field(default=None)

    model_config = {"frozen": True}
