"""Biometric estimators — vitamin-D synthesis and morning light quality.

Pure functions over environmental readings.  No state, no I/O, no
validation: a negative UV index simply fails the synthesis threshold.

Vitamin D (modified Holick estimate):
    IU = round(40 * uv_index * minutes * body_surface_fraction / skin_multiplier)

    40 IU/min is the assumed synthesis rate at UVI 1 with full skin
    exposure; the Fitzpatrick multiplier stretches the time darker skin
    needs for the same dose.

Light quality:
    score = lux bucket (0/10/30/50) + recency-after-sunrise bucket (0/10/30/50)
"""

from __future__ import annotations

import math

from pydantic import BaseModel, Field

BASE_IU_PER_MINUTE = 40.0
MIN_SYNTHESIS_UV_INDEX = 1.0
DEFAULT_SKIN_MULTIPLIER = 1.2

# Fitzpatrick type → time multiplier relative to type 1
SKIN_TYPE_MULTIPLIERS: dict[int, float] = {
    1: 1.0,
    2: 1.2,
    3: 1.5,
    4: 2.0,
    5: 2.5,
    6: 3.0,
}

# (exclusive lower bound in lux, points); first match wins
_LUX_BUCKETS: tuple[tuple[float, int], ...] = (
    (10_000.0, 50),  # direct sunlight
    (2_500.0, 30),   # bright overcast
    (1_000.0, 10),   # outdoor shade
)

# (inclusive upper bound in minutes after sunrise, points)
_RECENCY_BUCKETS: tuple[tuple[float, int], ...] = (
    (60.0, 50),
    (120.0, 30),
    (240.0, 10),
)

_LABELS: tuple[tuple[int, str], ...] = (
    (90, "Biological Gold"),
    (60, "High Impact"),
    (30, "Steady Repair"),
)
LOW_IMPACT_LABEL = "Low Impact"


class LightQuality(BaseModel):
    score: int = Field(..., ge=0, le=100)
    label: str

    model_config = {"frozen": True}


def round_half_up(value: float) -> int:
    """Round .5 away from negative infinity, matching what users see on device."""
    return int(math.floor(value + 0.5))


def skin_multiplier(skin_type: int) -> float:
    """Fitzpatrick multiplier; unknown types fall back to type 2's value."""
    return SKIN_TYPE_MULTIPLIERS.get(skin_type, DEFAULT_SKIN_MULTIPLIER)


def estimate_vitamin_d(
    uv_index: float,
    minutes: float,
    skin_type: int,
    body_surface_fraction: float = 0.25,
) -> int:
    """Estimate vitamin-D synthesis in IU for an exposure.

    Returns 0 below UV index 1, where synthesis is negligible.
    """
    if uv_index < MIN_SYNTHESIS_UV_INDEX:
        return 0
    synthesis = (
        BASE_IU_PER_MINUTE * uv_index * minutes * body_surface_fraction
    ) / skin_multiplier(skin_type)
    return max(0, round_half_up(synthesis))


def estimate_light_quality(lux: float, minutes_since_sunrise: float) -> LightQuality:
    """Score a light exposure by intensity and how early in the day it is."""
    score = 0
    for lower, points in _LUX_BUCKETS:
        if lux > lower:
            score += points
            break
    for upper, points in _RECENCY_BUCKETS:
        if minutes_since_sunrise <= upper:
            score += points
            break

    label = LOW_IMPACT_LABEL
    for threshold, name in _LABELS:
        if score >= threshold:
            label = name
            break
    return LightQuality(score=score, label=label)
