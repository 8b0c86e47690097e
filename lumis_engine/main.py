"""lumis-engine — outdoor verification and progression service.

This is the application entry point.  It wires the fusion engine,
SessionEngine, UserStore, AdapterRegistry and HTTP/WebSocket endpoints
together.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from lumis_engine.adapters.device import AndroidLightAdapter, IosLuxAdapter
from lumis_engine.adapters.registry import AdapterRegistry
from lumis_engine.api.insights import create_insights_router
from lumis_engine.api.progress import create_progress_router
from lumis_engine.api.sessions import create_sessions_router
from lumis_engine.api.ws_telemetry import create_telemetry_router
from lumis_engine.config import settings
from lumis_engine.core.fusion import ConfidenceFusionEngine, CreditPolicy, FusionWeights
from lumis_engine.core.session_engine import SessionEngine
from lumis_engine.store.user_store import UserStore

# ── Logging ──────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

# ── Engines ──────────────────────────────────────────────────────────────────

fusion_engine = ConfidenceFusionEngine(
    weights=FusionWeights(
        solar=settings.fusion_weight_solar,
        pattern=settings.fusion_weight_pattern,
        movement=settings.fusion_weight_movement,
        uv=settings.fusion_weight_uv,
        temp=settings.fusion_weight_temp,
    ),
    policy=CreditPolicy(
        full_credit_score=settings.fusion_full_credit_score,
        half_credit_score=settings.fusion_half_credit_score,
        low_signal_threshold=settings.fusion_low_signal_threshold,
    ),
)

session_engine = SessionEngine(fusion=fusion_engine)

# ── State ────────────────────────────────────────────────────────────────────

store = UserStore(
    engine=session_engine,
    early_bird_hour=settings.early_bird_hour,
    overachiever_factor=settings.overachiever_goal_factor,
    vehicle_speed_cutoff=settings.vehicle_speed_cutoff_mps,
    lux_min_samples=settings.lux_pattern_min_samples,
)

# ── Adapter Registry ────────────────────────────────────────────────────────

registry = AdapterRegistry()
registry.register(IosLuxAdapter())
registry.register(AndroidLightAdapter())

# ── App ──────────────────────────────────────────────────────────────────────

app = FastAPI(
    title=settings.app_name,
    description="Outdoor verification, goal progression, streaks and achievements",
    version="0.1.0",
)

# ── Routes ───────────────────────────────────────────────────────────────────

app.include_router(create_sessions_router(store))
app.include_router(create_progress_router(store))
app.include_router(create_telemetry_router(store, registry))
app.include_router(create_insights_router(
    default_skin_type=settings.default_skin_type,
    default_body_surface_fraction=settings.default_body_surface_fraction,
))


# ── Health ───────────────────────────────────────────────────────────────────

@app.get("/health")
async def health() -> dict:
    summary = await store.summary()
    return {
        "status": "ok",
        "users": summary["users"],
        "running_sessions": summary["running_sessions"],
        "adapters": registry.stats,
        "total_adapted": registry.total_accepted,
        "total_rejected": registry.total_rejected,
    }
