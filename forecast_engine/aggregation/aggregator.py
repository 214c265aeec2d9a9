"""
Period Aggregation

Sums expanded events into totals for a requested period.

DESIGN DECISION: Budget-limit events and forecast events are separate
aggregation universes. Totals are always keyed by event type first, so
a category's budget limit and its forecast expenses never land in the
same bucket. Combining them is the caller's explicit choice
(PeriodTotals.category_total with the types named).

Cross-cadence normalisation (rules with different cadences compared per
month) goes through monthly_equivalent only.
"""

from collections import defaultdict
from datetime import date
from typing import Iterable, Optional, Union

from forecast_engine.expansion.cadence import month_bounds, month_starts, monthly_equivalent
from forecast_engine.models.events import (
    UNCATEGORIZED,
    BudgetStatus,
    ExpandedEvent,
    MonthSummary,
    PeriodTotals,
    YearSummary,
)
from forecast_engine.models.rules import BudgetRule, EventType, ForecastRule


MONTH_LABELS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

SHORT_LABELS = [label[:3] for label in MONTH_LABELS]


def _resolve_key(key: str, known_keys: Optional[set[str]]) -> str:
    """Ids the caller doesn't recognise are grouped as uncategorized."""
    if known_keys is not None and key not in known_keys:
        return UNCATEGORIZED
    return key


class PeriodAggregator:
    """
    Aggregates expanded events.

    Stateless; every method is a pure function of its arguments.
    """

    def aggregate(
        self,
        events: Iterable[ExpandedEvent],
        period_start: date,
        period_end: date,
        known_keys: Optional[set[str]] = None,
    ) -> PeriodTotals:
        """
        Totals by type and by (type, category/goal) for [period_start, period_end].

        Args:
            events: Expanded events, in any order
            period_start: First day of the period (inclusive)
            period_end: Last day of the period (inclusive)
            known_keys: Category/goal ids the caller can resolve. When
                        given, any other id is bucketed as 'uncategorized'.

        Returns:
            PeriodTotals; empty when period_start > period_end
        """
        by_type: dict[EventType, int] = defaultdict(int)
        by_category: dict[EventType, dict[str, int]] = defaultdict(lambda: defaultdict(int))
        count = 0

        if period_start <= period_end:
            for event in events:
                if not period_start <= event.date <= period_end:
                    continue
                key = _resolve_key(event.grouping_key, known_keys)
                by_type[event.type] += event.amount_cents
                by_category[event.type][key] += event.amount_cents
                count += 1

        return PeriodTotals(
            period_start=period_start,
            period_end=period_end,
            event_count=count,
            by_type=dict(sorted(by_type.items(), key=lambda item: item[0].value)),
            by_category={
                event_type: dict(sorted(buckets.items()))
                for event_type, buckets in sorted(
                    by_category.items(), key=lambda item: item[0].value
                )
            },
        )

    def monthly_rule_totals(
        self,
        rules: Iterable[Union[BudgetRule, ForecastRule]],
        as_of: Optional[date] = None,
        known_keys: Optional[set[str]] = None,
    ) -> dict[EventType, dict[str, int]]:
        """
        Monthly-normalised rule amounts by type and category/goal.

        When `as_of` is given, rules whose validity window excludes that
        date are skipped.
        """
        totals: dict[EventType, dict[str, int]] = defaultdict(lambda: defaultdict(int))

        for rule in rules:
            if as_of is not None and not rule.is_active_on(as_of):
                continue
            if rule.event_type == EventType.SAVINGS:
                key = rule.savings_goal_id or rule.category_id or UNCATEGORIZED
            else:
                key = rule.category_id or rule.savings_goal_id or UNCATEGORIZED
            key = _resolve_key(key, known_keys)
            totals[rule.event_type][key] += monthly_equivalent(rule.amount_cents, rule.cadence)

        return {
            event_type: dict(sorted(buckets.items()))
            for event_type, buckets in sorted(totals.items(), key=lambda item: item[0].value)
        }

    def summarize_months(
        self,
        events: Iterable[ExpandedEvent],
        start: date,
        end: date,
        as_of: date,
    ) -> list[MonthSummary]:
        """
        Month-by-month trend of forecast totals over [start, end].

        `as_of` decides which months are past, current or future; the
        engine never reads the wall clock.
        """
        if start > end:
            return []

        events = list(events)
        summaries = []
        for month_start in month_starts(start, end):
            first, last = month_bounds(month_start.year, month_start.month - 1)
            totals = self.aggregate(events, max(first, start), min(last, end))

            income = totals.total(EventType.INCOME)
            expenses = totals.total(EventType.EXPENSE)
            savings = totals.total(EventType.SAVINGS)
            month_index = month_start.month - 1

            summaries.append(MonthSummary(
                month=month_start.strftime("%Y-%m"),
                year=month_start.year,
                month_index=month_index,
                label=MONTH_LABELS[month_index],
                short_label=SHORT_LABELS[month_index],
                income=income,
                expenses=expenses,
                savings=savings,
                budget=totals.total(EventType.BUDGET),
                interest=totals.total(EventType.INTEREST),
                surplus=income - expenses - savings,
                is_past=last < as_of,
                is_current=first <= as_of <= last,
                is_future=first > as_of,
            ))

        return summaries

    def year_summary(self, months: Iterable[MonthSummary]) -> YearSummary:
        """Roll up a run of month summaries."""
        months = list(months)
        return YearSummary(
            total_surplus=sum(m.surplus for m in months),
            months_with_surplus=sum(1 for m in months if m.surplus > 0),
            months_with_shortfall=sum(1 for m in months if m.surplus < 0),
        )


def budget_status(spent_cents: int, budgeted_cents: int) -> BudgetStatus:
    """Compare spending against a budget."""
    if spent_cents > budgeted_cents:
        return BudgetStatus.OVER
    if spent_cents == budgeted_cents:
        return BudgetStatus.ON
    return BudgetStatus.UNDER
