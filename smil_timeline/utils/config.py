"""Application configuration.

Timeline defaults, playback pacing and export sampling knobs, overridable from
.env or SMIL_TIMELINE_* environment variables.
"""
from __future__ import annotations

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from .env and environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", env_prefix="SMIL_TIMELINE_")

    default_dur: str = "2s"
    default_fill: str = "freeze"
    default_repeat_count: float = 1
    auto_restart_tolerance_s: float = 0.05
    min_playback_rate: float = 0.1
    broadcast_interval_ms: float = 66.0  # ~15 Hz observer updates
    frame_interval_s: float = 1 / 60
    bounds_min_samples: int = 40
    bounds_max_step_s: float = 0.05
    value_precision: int = 3
    compile_precision: int = 4
    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("SMIL_TIMELINE_LOG_LEVEL", "LOG_LEVEL"),
    )


settings = Settings()
