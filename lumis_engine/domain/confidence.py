"""Confidence fusion output — one score, one credit multiplier, warnings.

Produced once per evaluation window.  Immutable; consumed by the session
engine to scale elapsed window time into credited minutes.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class ConfidenceSignals(BaseModel):
    """Echo of the inputs that produced a result."""

    solar: float
    pattern: float
    movement: float
    uv: Optional[float] = None
    temp: Optional[float] = None

    model_config = {"frozen": True}


class ConfidenceResult(BaseModel):
    """Fused outdoor confidence for one evaluation window."""

    score: int = Field(..., description="Rounded weighted confidence, nominally 0–100")
    credit_rate: float = Field(..., description="0.0, 0.5 or 1.0 multiplier on window minutes")
    signals: ConfidenceSignals
    warnings: tuple[str, ...] = Field(
        default=(),
        description="Human-readable explanations, per-signal first, credit-rate last",
    )

    model_config = {"frozen": True}

    @property
    def is_full_credit(self) -> bool:
        return self.credit_rate >= 1.0
