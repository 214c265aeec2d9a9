"""Savings interest projection package."""

from forecast_engine.interest.projector import (
    PERIODS_PER_YEAR,
    InterestProjector,
    effective_rate,
    elapsed_years,
    project_balance,
)

__all__ = [
    "PERIODS_PER_YEAR",
    "InterestProjector",
    "effective_rate",
    "elapsed_years",
    "project_balance",
]
