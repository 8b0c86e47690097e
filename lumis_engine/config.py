"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "lumis-engine"
    debug: bool = False
    log_level: str = "INFO"

    # Confidence fusion weights
    fusion_weight_solar: float = 0.40
    fusion_weight_pattern: float = 0.25
    fusion_weight_movement: float = 0.20
    fusion_weight_uv: float = 0.10
    fusion_weight_temp: float = 0.05

    # Confidence fusion thresholds
    fusion_full_credit_score: float = 80.0
    fusion_half_credit_score: float = 50.0
    fusion_low_signal_threshold: float = 40.0

    # Anti-spoofing
    vehicle_speed_cutoff_mps: float = 9.0

    # Progression bookkeeping
    early_bird_hour: int = 8
    overachiever_goal_factor: float = 2.0

    # Biometric defaults
    default_skin_type: int = 2
    default_body_surface_fraction: float = 0.25

    # Window building
    lux_pattern_min_samples: int = 5

    model_config = {"env_prefix": "LUMIS_"}


settings = Settings()
