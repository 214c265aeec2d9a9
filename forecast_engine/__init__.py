"""
Forecast Engine - Source Package

Recurring rule expansion engine for a personal-finance planner.
Turns declarative recurring rules and savings-interest schedules into
dated financial events, then aggregates and compares them.

DESIGN PRINCIPLES:
1. Every call is a pure projection of the current rule state
2. Nothing is fatal: best-effort results, anomalies are audited
3. One cadence conversion, one rounding rule
4. Dates are naive calendar dates, money is integer cents
5. "Today" is always passed in explicitly
"""

from forecast_engine.engine import (
    ForecastEngine,
    aggregate,
    diff_scenarios,
    expand_rule,
    project_interest,
)

__version__ = "1.0.0"
__author__ = "Forecast Engine Team"

__all__ = [
    "ForecastEngine",
    "aggregate",
    "diff_scenarios",
    "expand_rule",
    "project_interest",
]
