"""ConfidenceFusionEngine — one trustworthy number from gameable signals.

Design principles:
    1. Pure function: accepts ConfidenceInputs, returns a ConfidenceResult.
    2. No side effects, no I/O, never raises on numeric input.
    3. Inputs are assumed pre-clamped to 0–100; nothing is validated.
    4. Weights and thresholds are explicit and configurable.

Fusion formula:
    score = solar * 0.40 + pattern * 0.25 + movement * 0.20
          + (uv * 0.10                       if uv present
             else (solar + pattern + movement) * 0.10 / 3)
          + (temp * 0.05                     if temp present
             else (solar + pattern) * 0.05 / 2)

    The temperature share is redistributed to solar and pattern only,
    while the UV share is spread over all three required signals.

Credit rate on the rounded score:
    >= 80  → 1.0
    >= 50  → 0.5  (borderline warning)
    else   → 0.0  (no-credit warning)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from lumis_engine.core.biometrics import round_half_up
from lumis_engine.domain.confidence import ConfidenceResult, ConfidenceSignals
from lumis_engine.domain.enums import ActivityType
from lumis_engine.domain.sensor import ConfidenceInputs

WARN_SOLAR = "Light levels don't match solar position"
WARN_PATTERN = "Unusual light pattern detected"
WARN_MOVEMENT = "Movement doesn't match activity type"
WARN_HALF_CREDIT = "Borderline outdoor conditions - getting half credit"
WARN_NO_CREDIT = "Not enough confidence in outdoor exposure"

FULL_CREDIT = 1.0
HALF_CREDIT = 0.5
NO_CREDIT = 0.0

DEFAULT_VEHICLE_SPEED_MPS = 9.0


@dataclass(frozen=True)
class FusionWeights:
    """Signal weights; the defaults sum to 1.0."""

    solar: float = 0.40
    pattern: float = 0.25
    movement: float = 0.20
    uv: float = 0.10
    temp: float = 0.05


@dataclass(frozen=True)
class CreditPolicy:
    """Score thresholds for credit tiers and per-signal warnings."""

    full_credit_score: float = 80.0
    half_credit_score: float = 50.0
    low_signal_threshold: float = 40.0


class ConfidenceFusionEngine:
    """Stateless fusion of plausibility signals into a credit decision."""

    def __init__(
        self,
        weights: FusionWeights | None = None,
        policy: CreditPolicy | None = None,
    ) -> None:
        self._weights = weights or FusionWeights()
        self._policy = policy or CreditPolicy()

    @property
    def policy(self) -> CreditPolicy:
        return self._policy

    # ── Public API ───────────────────────────────────────────────────────

    def evaluate(self, inputs: ConfidenceInputs) -> ConfidenceResult:
        """Fuse one window's signals into a score, credit rate and warnings."""
        score = round_half_up(self._weighted_score(inputs))
        warnings = self._signal_warnings(inputs)
        credit_rate, credit_warning = self._credit_for(score)
        if credit_warning:
            warnings.append(credit_warning)

        return ConfidenceResult(
            score=score,
            credit_rate=credit_rate,
            signals=ConfidenceSignals(
                solar=inputs.solar_confidence,
                pattern=inputs.lux_pattern_confidence,
                movement=inputs.movement_confidence,
                uv=inputs.uv_confidence,
                temp=inputs.temp_confidence,
            ),
            warnings=tuple(warnings),
        )

    # ── Scoring ──────────────────────────────────────────────────────────

    def _weighted_score(self, inputs: ConfidenceInputs) -> float:
        w = self._weights
        solar = inputs.solar_confidence
        pattern = inputs.lux_pattern_confidence
        movement = inputs.movement_confidence

        score = solar * w.solar + pattern * w.pattern + movement * w.movement

        if inputs.uv_confidence is not None:
            score += inputs.uv_confidence * w.uv
        else:
            share = w.uv / 3
            score += solar * share + pattern * share + movement * share

        if inputs.temp_confidence is not None:
            score += inputs.temp_confidence * w.temp
        else:
            share = w.temp / 2
            score += solar * share + pattern * share

        return score

    def _signal_warnings(self, inputs: ConfidenceInputs) -> list[str]:
        threshold = self._policy.low_signal_threshold
        warnings: list[str] = []
        if inputs.solar_confidence < threshold:
            warnings.append(WARN_SOLAR)
        if inputs.lux_pattern_confidence < threshold:
            warnings.append(WARN_PATTERN)
        if inputs.movement_confidence < threshold:
            warnings.append(WARN_MOVEMENT)
        return warnings

    def _credit_for(self, score: float) -> tuple[float, Optional[str]]:
        if score >= self._policy.full_credit_score:
            return FULL_CREDIT, None
        if score >= self._policy.half_credit_score:
            return HALF_CREDIT, WARN_HALF_CREDIT
        return NO_CREDIT, WARN_NO_CREDIT


_default_engine = ConfidenceFusionEngine()


def fuse_confidence(inputs: ConfidenceInputs) -> ConfidenceResult:
    """Evaluate *inputs* with the default weights and thresholds."""
    return _default_engine.evaluate(inputs)


# ── Movement plausibility ────────────────────────────────────────────────────

@dataclass(frozen=True)
class MovementExpectation:
    min_steps_per_minute: float
    max_steps_per_minute: float
    min_meters_per_minute: float


MOVEMENT_EXPECTATIONS: dict[ActivityType, MovementExpectation] = {
    ActivityType.WALK: MovementExpectation(20, 150, 25),
    ActivityType.RUN: MovementExpectation(60, 200, 80),
    ActivityType.MEDITATE: MovementExpectation(0, 10, 0),
    ActivityType.SIT_SOAK: MovementExpectation(0, 15, 0),
}

STATIONARY_MAX_METERS_PER_MINUTE = 50.0


def _coerce_activity(activity_type: Union[ActivityType, str]) -> Optional[ActivityType]:
    if isinstance(activity_type, ActivityType):
        return activity_type
    try:
        return ActivityType(activity_type)
    except ValueError:
        return None


def estimate_movement_confidence(
    activity_type: Union[ActivityType, str],
    steps: float,
    session_seconds: float,
    gps_distance_meters: Optional[float] = None,
) -> int:
    """Score (0–100) how well steps and GPS distance match the claimed activity."""
    activity = _coerce_activity(activity_type)
    expectation = MOVEMENT_EXPECTATIONS.get(activity) if activity else None
    if expectation is None:
        # OTHER or unrecognised: coarse heuristic
        return 70 if steps > 10 else 40

    minutes = session_seconds / 60
    steps_per_minute = steps / max(1.0, minutes)

    if steps_per_minute < expectation.min_steps_per_minute * 0.5:
        return 20
    if steps_per_minute > expectation.max_steps_per_minute * 1.5:
        return 30

    if gps_distance_meters is not None and minutes > 0:
        meters_per_minute = gps_distance_meters / minutes
        if activity.is_ambulatory:
            if meters_per_minute < expectation.min_meters_per_minute * 0.3:
                return 10
            if meters_per_minute > expectation.min_meters_per_minute * 10:
                return 15
        if activity.is_stationary and meters_per_minute > STATIONARY_MAX_METERS_PER_MINUTE:
            return 25

    if expectation.min_steps_per_minute <= steps_per_minute <= expectation.max_steps_per_minute:
        return 100
    if steps_per_minute >= expectation.min_steps_per_minute * 0.7:
        return 80
    return 60


def is_likely_in_vehicle(
    gps_speed_meters_per_second: float,
    cutoff: float = DEFAULT_VEHICLE_SPEED_MPS,
) -> bool:
    """True above ~20 mph; walking is ~1.4 m/s and running ~3 m/s."""
    return gps_speed_meters_per_second > cutoff


def explain_confidence(result: ConfidenceResult, policy: CreditPolicy | None = None) -> str:
    """User-facing sentence describing a fusion result."""
    policy = policy or CreditPolicy()
    if result.score >= policy.full_credit_score:
        return "Strong outdoor signal detected. Full credit awarded!"
    if result.score >= policy.half_credit_score:
        return (
            "Partial outdoor exposure detected. Half credit awarded. "
            "Try moving to brighter sunlight for full credit."
        )
    return "Unable to verify outdoor exposure. " + ". ".join(result.warnings) + "."
