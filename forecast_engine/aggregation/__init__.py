from forecast_engine.aggregation.aggregator import (
    MONTH_LABELS,
    PeriodAggregator,
    budget_status,
)

__all__ = ["MONTH_LABELS", "PeriodAggregator", "budget_status"]
