"""Configuration package."""

from forecast_engine.config.settings import (
    EngineSettings,
    get_settings,
)

__all__ = [
    "EngineSettings",
    "get_settings",
]
