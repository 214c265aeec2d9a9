"""
Configuration Management for the Forecast Engine

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
None of these values change calculation results; they only tune
logging and the thresholds at which anomalies are reported.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """
    Main engine settings.

    Loads configuration from FORECAST_* environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FORECAST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    debug_mode: bool = Field(
        default=False,
        description="Enable debug logging"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Minimum level for engine log output"
    )
    log_format: str = Field(
        default="json",
        pattern="^(json|console)$",
        description="Renderer used for structured log lines"
    )
    audit_buffer_size: int = Field(
        default=100,
        ge=1,
        le=10000,
        description="How many recent audit events are kept in memory"
    )

    # Anomaly thresholds
    max_window_years: int = Field(
        default=50,
        ge=1,
        description="Expansion windows longer than this are reported as large"
    )
    schedule_size_warning: int = Field(
        default=100,
        ge=1,
        description="Interest schedules longer than this are reported"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept lower-case level names."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def effective_log_level(self) -> str:
        """Debug mode always wins over the configured level."""
        return "DEBUG" if self.debug_mode else self.log_level


@lru_cache()
def get_settings() -> EngineSettings:
    """
    Get engine settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return EngineSettings()
