"""Rule validation package."""

from forecast_engine.validation.validator import (
    ANCHOR_DEFAULTS,
    RuleValidator,
)

__all__ = ["ANCHOR_DEFAULTS", "RuleValidator"]
