"""
Engine Output Models

Everything in this module is derived on every call and never persisted:
expanded events, period totals, month summaries and scenario deltas.
"""

from datetime import date
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from forecast_engine.models.rules import EventType


UNCATEGORIZED = "uncategorized"


class EventSourceType(str, Enum):
    """Where an expanded event came from."""
    RULE = "rule"
    INTEREST = "interest"
    EVENT = "event"  # One-off forecast event


class ExpandedEvent(BaseModel):
    """A materialized, dated financial record."""

    date: date
    amount_cents: int = Field(..., ge=0)
    type: EventType
    category_id: Optional[str] = None
    savings_goal_id: Optional[str] = None
    source_type: EventSourceType
    source_id: str
    description: str = ""

    @property
    def grouping_key(self) -> str:
        """
        Key used to bucket this event in per-category totals.

        Savings and interest group by goal first, everything else by
        category first.
        """
        if self.type in (EventType.SAVINGS, EventType.INTEREST):
            key = self.savings_goal_id or self.category_id
        else:
            key = self.category_id or self.savings_goal_id
        return key or UNCATEGORIZED

    def to_record(self) -> dict:
        """Boundary representation: ISO date string and integer cents."""
        return {
            "date": self.date.isoformat(),
            "amount_cents": self.amount_cents,
            "type": self.type.value,
            "category_id": self.category_id,
            "savings_goal_id": self.savings_goal_id,
            "source_type": self.source_type.value,
            "source_id": self.source_id,
            "description": self.description,
        }


class PeriodTotals(BaseModel):
    """
    Totals of expanded events for one inclusive period.

    by_category is keyed by event type first, so budget limits and
    forecast amounts never share a bucket.
    """

    period_start: Optional[date] = None
    period_end: Optional[date] = None
    event_count: int = Field(default=0, ge=0)
    by_type: dict[EventType, int] = Field(default_factory=dict)
    by_category: dict[EventType, dict[str, int]] = Field(default_factory=dict)

    def total(self, event_type: EventType) -> int:
        return self.by_type.get(event_type, 0)

    def category_total(self, key: str, types: Iterable[EventType]) -> int:
        """
        Sum one category across the event types the caller names.

        Combining types (e.g. budget + expense) is a caller decision,
        so there is no default.
        """
        return sum(self.by_category.get(t, {}).get(key, 0) for t in types)

    def to_record(self) -> dict:
        return {
            "period_start": self.period_start.isoformat() if self.period_start else None,
            "period_end": self.period_end.isoformat() if self.period_end else None,
            "event_count": self.event_count,
            "by_type": {t.value: v for t, v in self.by_type.items()},
            "by_category": {
                t.value: dict(buckets) for t, buckets in self.by_category.items()
            },
        }


class MonthSummary(BaseModel):
    """Forecast totals for one calendar month of a trend view."""

    month: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    year: int
    month_index: int = Field(..., ge=0, le=11)
    label: str
    short_label: str

    income: int = 0
    expenses: int = 0
    savings: int = 0
    budget: int = 0
    interest: int = 0
    surplus: int = 0  # income - expenses - savings

    is_past: bool = False
    is_current: bool = False
    is_future: bool = False


class YearSummary(BaseModel):
    """Roll-up of a run of month summaries."""

    total_surplus: int = 0
    months_with_surplus: int = 0
    months_with_shortfall: int = 0


class BudgetStatus(str, Enum):
    OVER = "over"
    ON = "on"
    UNDER = "under"


# =============================================================================
# SCENARIO COMPARISON
# =============================================================================

class ScenarioMetric(str, Enum):
    """Monthly-normalised metrics compared between scenarios."""
    INCOME = "income"
    FIXED = "fixed"      # Forecast expense rules
    BUDGET = "budget"    # Budget-limit rules
    SAVINGS = "savings"
    SURPLUS = "surplus"  # income - fixed - budget - savings


class ScenarioTotals(BaseModel):
    """Monthly totals for one rule set, in cents."""

    income: int = 0
    fixed: int = 0
    budget: int = 0
    savings: int = 0

    @property
    def surplus(self) -> int:
        return self.income - self.fixed - self.budget - self.savings

    def metric(self, metric: ScenarioMetric) -> int:
        if metric == ScenarioMetric.SURPLUS:
            return self.surplus
        return getattr(self, metric.value)


class ScenarioDelta(BaseModel):
    """Signed monthly difference (adjusted - baseline) for one metric."""

    metric: ScenarioMetric
    delta_monthly_cents: int


class CategoryDelta(BaseModel):
    """Monthly budget difference for one category between scenarios."""

    category_key: str
    baseline_monthly_cents: int = 0
    adjusted_monthly_cents: int = 0

    @property
    def delta_monthly_cents(self) -> int:
        return self.adjusted_monthly_cents - self.baseline_monthly_cents
