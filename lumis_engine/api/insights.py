"""Stateless insight endpoints over the biometric and light estimators.

Paths:
    GET /api/insights/vitamin-d
    GET /api/insights/light-quality
    GET /api/insights/environment       (optional recent lux history)
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Query

from lumis_engine.core.biometrics import estimate_light_quality, estimate_vitamin_d
from lumis_engine.foundation.clock import ensure_aware, utc_now
from lumis_engine.processors.environment import classify_environment
from lumis_engine.processors.lux_pattern import is_in_pocket_pattern, is_lux_anomalous
from lumis_engine.processors.solar import minutes_since_sunrise


def create_insights_router(
    default_skin_type: int = 2,
    default_body_surface_fraction: float = 0.25,
) -> APIRouter:
    """Factory for the insight endpoints; defaults come from settings."""

    router = APIRouter(prefix="/api/insights", tags=["insights"])

    @router.get("/vitamin-d")
    async def vitamin_d(
        uv_index: float = Query(..., ge=0),
        minutes: float = Query(..., ge=0),
        skin_type: Optional[int] = None,
        body_surface_fraction: Optional[float] = Query(default=None, gt=0, le=1),
    ) -> dict[str, Any]:
        skin = skin_type if skin_type is not None else default_skin_type
        surface = body_surface_fraction or default_body_surface_fraction
        return {
            "iu": estimate_vitamin_d(uv_index, minutes, skin, surface),
            "skin_type": skin,
            "body_surface_fraction": surface,
        }

    @router.get("/light-quality")
    async def light_quality(
        lux: float = Query(..., ge=0),
        latitude: float = Query(..., ge=-90, le=90),
        longitude: float = Query(..., ge=-180, le=180),
        at: Optional[datetime] = None,
    ) -> dict[str, Any]:
        when = ensure_aware(at) if at else utc_now()
        since = minutes_since_sunrise(latitude, longitude, when)
        quality = estimate_light_quality(lux, since)
        return {**quality.model_dump(), "minutes_since_sunrise": round(since, 1)}

    @router.get("/environment")
    async def environment(
        lux: float = Query(..., ge=0),
        is_moving: bool = False,
        consecutive_low_lux_moving: int = Query(default=0, ge=0),
        indoor_lux: Optional[float] = Query(default=None, ge=0),
        recent: list[float] = Query(default=[]),
    ) -> dict[str, Any]:
        status = classify_environment(lux, is_moving, consecutive_low_lux_moving, indoor_lux)
        return {
            "status": status.value,
            "lux_anomalous": is_lux_anomalous(lux, recent),
            "pocket_pattern": is_in_pocket_pattern([*recent, lux]),
        }

    return router
