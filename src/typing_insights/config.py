"""Service configuration with Pydantic validation and environment overrides."""

from __future__ import annotations

import logging
import os
from typing import List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

ENV_PREFIX = "TYPING_INSIGHTS_"


# PUBLIC_INTERFACE
class Settings(BaseModel):
    """Runtime settings for the engine, ingestion path and aggregator."""

    cron_auth_token: Optional[str] = Field(
        default=None,
        description="Shared secret for the aggregation trigger (None leaves it open)",
    )

    # Aggregation
    aggregation_window_days: int = Field(
        default=30, gt=0, description="Trailing window of stored batches (days)"
    )
    max_batches_per_user: int = Field(
        default=100, gt=0, description="Most recent batches loaded per user"
    )
    weakness_list_cap: int = Field(
        default=20, gt=0, description="Maximum weak keys / bigrams kept per profile"
    )
    aggregator_workers: int = Field(
        default=1, ge=1, description="Thread pool size for per-user aggregation"
    )

    # Adaptive content
    focus_key_count: int = Field(
        default=5, ge=0, description="Top weak keys used for focused drills"
    )
    focus_bigram_count: int = Field(
        default=3, ge=0, description="Top weak bigrams used for focused drills"
    )
    focus_probability: float = Field(
        default=0.6, ge=0.0, le=1.0, description="Chance a drill word targets a weakness"
    )

    # Test engine / telemetry
    flush_max_events: int = Field(
        default=50, gt=0, description="Buffered events that force a telemetry flush"
    )
    flush_interval_ms: int = Field(
        default=2000, gt=0, description="Telemetry flush timer (ms)"
    )
    idle_threshold_ms: int = Field(
        default=5000, gt=0, description="Inactivity before a session is flagged idle (ms)"
    )
    refill_threshold: int = Field(
        default=20, ge=1, description="Lookahead words that trigger a refill in time mode"
    )
    refill_batch_size: int = Field(
        default=50, gt=0, description="Words requested per refill"
    )

    # Service
    log_level: str = Field(default="INFO", description="Root log level")
    log_file: Optional[str] = Field(default=None, description="Optional rotating log file")
    access_log: bool = Field(default=True, description="Log one line per HTTP request")
    cors_origins: List[str] = Field(
        default_factory=lambda: ["*"], description="Allowed CORS origins"
    )

    model_config = ConfigDict(extra="ignore")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {v}")
        return level

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, v):
        if isinstance(v, str):
            return [o.strip() for o in v.split(",") if o.strip()]
        return v

    # PUBLIC_INTERFACE
    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``TYPING_INSIGHTS_*`` environment variables.

        ``CRON_AUTH_TOKEN`` is honoured without the prefix as well, since
        schedulers commonly inject it under that name.
        """
        env = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = env.get(ENV_PREFIX + name.upper())
            if raw is not None:
                values[name] = raw
        if "cron_auth_token" not in values and env.get("CRON_AUTH_TOKEN"):
            values["cron_auth_token"] = env["CRON_AUTH_TOKEN"]
        settings = cls(**values)
        logger.debug("Loaded settings: %s", settings.model_dump(exclude={"cron_auth_token"}))
        return settings


_settings: Optional[Settings] = None


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def override_settings(settings: Optional[Settings]) -> None:
    """Replace the process-wide settings (None forces a reload from env)."""
    global _settings
    _settings = settings
