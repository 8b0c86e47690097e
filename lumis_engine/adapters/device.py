"""Platform sensor adapters.

iOS lux feed:
{
    "source_type": "ios_lux",
    "lux": 18250.4,
    "steps": 1204,               # cumulative pedometer count
    "previous_steps": 1180,
    "speed": 1.3,                # m/s, optional
    "distance_m": 14.2,          # optional
    "uv_index": 6,               # optional
    "timestamp": "2026-06-01T07:12:00Z"
}

Android light feed:
{
    "source_type": "android_light",
    "illuminance": 18250.4,
    "step_delta": 24,
    "location": {"speed": 1.3, "distance_m": 14.2},
    "timestamp": 1780297920000    # epoch milliseconds
}
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from lumis_engine.adapters.base import SampleAdapter
from lumis_engine.domain.sensor import SensorSample


def _require(raw: dict[str, Any], key: str, source: str) -> Any:
    value = raw.get(key)
    if value is None:
        raise ValueError(f"{source} payload missing '{key}'")
    return value


def _lux(value: Any) -> float:
    # Sensors occasionally report small negatives around zero
    return max(0.0, float(value))


class IosLuxAdapter(SampleAdapter):
    """Maps the iOS lux + pedometer feed to SensorSamples."""

    @property
    def source_name(self) -> str:
        return "ios_lux"

    def can_handle(self, raw: dict[str, Any]) -> bool:
        return raw.get("source_type") == "ios_lux"

    def adapt(self, raw: dict[str, Any]) -> SensorSample:
        lux = _require(raw, "lux", self.source_name)
        timestamp = _require(raw, "timestamp", self.source_name)

        steps = int(raw.get("steps", 0))
        previous = int(raw.get("previous_steps", steps))

        return SensorSample.model_validate({
            "timestamp": timestamp,
            "lux": _lux(lux),
            "uv_index": raw.get("uv_index"),
            "temperature_c": raw.get("temperature_c"),
            "steps_delta": max(0, steps - previous),
            "gps_distance_delta_m": raw.get("distance_m"),
            "gps_speed_mps": raw.get("speed"),
        })


class AndroidLightAdapter(SampleAdapter):
    """Maps the Android light-sensor feed to SensorSamples."""

    @property
    def source_name(self) -> str:
        return "android_light"

    def can_handle(self, raw: dict[str, Any]) -> bool:
        return raw.get("source_type") == "android_light"

    def adapt(self, raw: dict[str, Any]) -> SensorSample:
        illuminance = _require(raw, "illuminance", self.source_name)
        epoch_ms = _require(raw, "timestamp", self.source_name)
        location = raw.get("location") or {}

        return SensorSample.model_validate({
            "timestamp": datetime.fromtimestamp(float(epoch_ms) / 1000, tz=timezone.utc),
            "lux": _lux(illuminance),
            "uv_index": raw.get("uv_index"),
            "steps_delta": max(0, int(raw.get("step_delta", 0))),
            "gps_distance_delta_m": location.get("distance_m"),
            "gps_speed_mps": location.get("speed"),
        })
