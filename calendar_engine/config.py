"""Engine configuration loaded from the environment."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Tunable windows and limits; override with ``CALENDAR_ENGINE_<NAME>``."""

    lookback_days: int = 45
    lookahead_days: int = 7
    slot_duration_minutes: int = 60

    default_recommendation_count: int = 6
    min_recommendation_count: int = 5
    max_recommendation_count: int = 10

    suggestion_expiry_days: int = 7
    distribution_window_days: int = 14
    recent_window_hours: int = 48
    notes_max_length: int = 500

    productivity_period_days: int = 30
    self_care_lookback_days: int = 30
    default_self_care_count: int = 5

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="CALENDAR_ENGINE_", env_file=".env", extra="ignore")


settings = EngineSettings()
