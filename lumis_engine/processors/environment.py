"""Coarse environment classification from a single lux reading and motion.

Informational only: the status explains to the user what the sensors
see, while credit is decided by the fusion engine.
"""

from __future__ import annotations

from typing import Optional

from lumis_engine.domain.enums import EnvironmentStatus

DEFAULT_OUTDOOR_LUX = 1500.0
INDOOR_LUX_MULTIPLIER = 5.0
POCKET_CONFIRMATIONS = 2


def outdoor_threshold(indoor_lux: Optional[float] = None) -> float:
    """Outdoor lux cutoff, raised for users whose indoor lighting is bright."""
    if indoor_lux is None:
        return DEFAULT_OUTDOOR_LUX
    return max(DEFAULT_OUTDOOR_LUX, indoor_lux * INDOOR_LUX_MULTIPLIER)


def classify_environment(
    lux: float,
    is_moving: bool,
    consecutive_low_lux_moving: int = 0,
    indoor_lux: Optional[float] = None,
) -> EnvironmentStatus:
    """Classify one reading.

    *consecutive_low_lux_moving* counts prior dark-while-moving readings,
    including this one; the pocket status needs more than two in a row.
    """
    threshold = outdoor_threshold(indoor_lux)

    if lux > threshold:
        return EnvironmentStatus.OUTDOORS
    if lux < 20 and is_moving:
        if consecutive_low_lux_moving > POCKET_CONFIRMATIONS:
            return EnvironmentStatus.IN_POCKET
        return EnvironmentStatus.IDLE
    if 100 <= lux <= threshold:
        return EnvironmentStatus.INDOORS
    if lux < 10 and not is_moving:
        return EnvironmentStatus.NIGHT
    return EnvironmentStatus.IDLE
