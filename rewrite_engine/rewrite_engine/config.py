"""Rewrite engine configuration loaded from environment variables."""

from __future__ import annotations

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Engine settings loaded from environment variables with SQLSHIFT_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="SQLSHIFT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    debug: bool = False
    log_level: str = "WARNING"

    # Ledger
    check_edit_conflicts: bool = True

    # Pipeline; names resolve through rewrite_engine.rules.resolve_stages
    stages: list[str] = ["presto"]

    @field_validator("log_level")
    @classmethod
    def normalise_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return level

    @field_validator("stages")
    @classmethod
    def require_stages(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("at least one stage is required")
        return [name.strip().lower() for name in v]


def load_settings(**overrides: object) -> Settings:
    """Load settings from environment, with optional overrides for testing."""
    settings = Settings(**overrides)  # type: ignore[arg-type]

    if settings.debug:
        logger.info("Loaded settings with stages: %s", ", ".join(settings.stages))

    return settings
