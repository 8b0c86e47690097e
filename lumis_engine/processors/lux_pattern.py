"""Lux pattern analysis — natural daylight versus lamps, flashlights and pockets.

Natural outdoor light drifts smoothly with clouds and sun angle.  Artificial
sources are either suspiciously constant (a lamp aimed at the sensor) or
jump abruptly (a flashlight switched on).  The analyser starts from full
confidence and deducts for each artificial trait.
"""

from __future__ import annotations

import math
from typing import Sequence

from pydantic import BaseModel

MIN_SAMPLES = 5
NEUTRAL_CONFIDENCE = 50.0


class LuxPattern(BaseModel):
    mean: float
    std_dev: float
    variance: float
    min_value: float
    max_value: float
    range: float
    has_spikes: bool
    is_constant: bool
    confidence: float  # 0–100 that this is natural outdoor light

    model_config = {"frozen": True}


def analyze_lux_pattern(history: Sequence[float], min_samples: int = MIN_SAMPLES) -> LuxPattern:
    """Summarise a short lux history and score how natural it looks."""
    if len(history) < min_samples:
        first = history[0] if history else 0.0
        return LuxPattern(
            mean=first,
            std_dev=0.0,
            variance=0.0,
            min_value=first,
            max_value=first,
            range=0.0,
            has_spikes=False,
            is_constant=False,
            confidence=NEUTRAL_CONFIDENCE,
        )

    n = len(history)
    mean = sum(history) / n
    lo, hi = min(history), max(history)
    variance = sum((v - mean) ** 2 for v in history) / n
    std_dev = math.sqrt(variance)
    cv = std_dev / (mean + 1)
    has_spikes = _has_spikes(history, mean)
    is_constant = cv < 0.03

    return LuxPattern(
        mean=mean,
        std_dev=std_dev,
        variance=variance,
        min_value=lo,
        max_value=hi,
        range=hi - lo,
        has_spikes=has_spikes,
        is_constant=is_constant,
        confidence=_pattern_confidence(mean, std_dev, cv, has_spikes, is_constant, hi - lo, history),
    )


def _has_spikes(history: Sequence[float], mean: float) -> bool:
    for prev, curr in zip(history, history[1:]):
        change = abs(curr - prev)
        if change > mean * 2 or change > 5000:
            return True
    return False


def _relative_trend(history: Sequence[float]) -> float:
    """Least-squares slope per sample, normalised by the mean."""
    n = len(history)
    if n < 3:
        return 0.0
    sum_x = sum(range(n))
    sum_y = sum(history)
    sum_xy = sum(i * v for i, v in enumerate(history))
    sum_xx = sum(i * i for i in range(n))
    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x * sum_x)
    return slope / (sum_y / n + 1)


def _pattern_confidence(
    mean: float,
    std_dev: float,
    cv: float,
    has_spikes: bool,
    is_constant: bool,
    value_range: float,
    history: Sequence[float],
) -> float:
    confidence = 100.0

    if has_spikes:
        confidence -= 40
    if is_constant and mean > 500:
        confidence -= 35

    # Daylight readings normally vary by 5–30 %
    if mean > 500:
        if cv < 0.05:
            confidence -= 25
        elif cv > 0.30:
            confidence -= 20

    if abs(_relative_trend(history)) > 0.5:
        confidence += 10

    if mean > 1000 and value_range / mean < 0.1:
        confidence -= 15

    if mean < 100:
        confidence += -20 if std_dev > 50 else 5

    if mean > 30000 and is_constant:
        confidence -= 30

    return max(0.0, min(100.0, confidence))


def is_lux_anomalous(current: float, recent: Sequence[float]) -> bool:
    """Sudden bright spike or sudden darkness relative to recent readings."""
    if len(recent) < 3:
        return False
    recent_mean = sum(recent) / len(recent)
    if current > recent_mean * 3 and current - recent_mean > 10000:
        return True
    if recent_mean > 1000 and current < 50:
        return True  # sensor covered
    return False


def is_in_pocket_pattern(history: Sequence[float]) -> bool:
    """Mostly dark with at least one brief jump from being pulled out."""
    if len(history) < 10:
        return False
    low = sum(1 for v in history if v < 20)
    jumps = sum(1 for prev, curr in zip(history, history[1:]) if curr > prev * 10)
    return low > len(history) * 0.7 and jumps >= 1
