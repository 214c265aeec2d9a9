"""
Scenario Diff Engine

Compares a baseline rule set against an adjusted ("what-if") rule set
and reports signed monthly deltas, adjusted minus baseline.

Metric membership:
- income:  forecast rules of type income
- fixed:   forecast rules of type expense
- budget:  budget-limit rules
- savings: forecast rules of type savings
- surplus: income - fixed - budget - savings

Each rule is normalised with monthly_equivalent on its own and the
results are summed, so the totals (and the deltas) do not depend on
the order rules are given in.
"""

from collections import defaultdict
from datetime import date
from typing import Iterable, Optional, Union

import structlog

from forecast_engine.expansion.cadence import monthly_equivalent
from forecast_engine.models.events import (
    UNCATEGORIZED,
    CategoryDelta,
    ScenarioDelta,
    ScenarioMetric,
    ScenarioTotals,
)
from forecast_engine.models.rules import BudgetRule, ForecastRule, ForecastType


logger = structlog.get_logger(__name__)

Rule = Union[BudgetRule, ForecastRule]

_FORECAST_METRICS: dict[ForecastType, ScenarioMetric] = {
    ForecastType.INCOME: ScenarioMetric.INCOME,
    ForecastType.EXPENSE: ScenarioMetric.FIXED,
    ForecastType.SAVINGS: ScenarioMetric.SAVINGS,
}


def metric_for_rule(rule: Rule) -> ScenarioMetric:
    """The non-derived metric a rule contributes to."""
    if isinstance(rule, BudgetRule):
        return ScenarioMetric.BUDGET
    return _FORECAST_METRICS[rule.type]


def rules_for_scenario(rules: Iterable[Rule], scenario_id: Optional[str]) -> list[Rule]:
    """Rules belonging to one scenario (None selects rules with no scenario)."""
    return [rule for rule in rules if rule.scenario_id == scenario_id]


class ScenarioDiffEngine:
    """Monthly-normalised comparison of two rule sets."""

    def scenario_totals(
        self,
        rules: Iterable[Rule],
        as_of: Optional[date] = None,
    ) -> ScenarioTotals:
        """
        Monthly totals per metric for one rule set.

        Args:
            rules: Budget and forecast rules, in any order
            as_of: When given, rules not active on this date are left out

        Returns:
            ScenarioTotals with integer cents per month
        """
        sums: dict[ScenarioMetric, int] = defaultdict(int)
        for rule in rules:
            if as_of is not None and not rule.is_active_on(as_of):
                continue
            sums[metric_for_rule(rule)] += monthly_equivalent(rule.amount_cents, rule.cadence)

        return ScenarioTotals(
            income=sums[ScenarioMetric.INCOME],
            fixed=sums[ScenarioMetric.FIXED],
            budget=sums[ScenarioMetric.BUDGET],
            savings=sums[ScenarioMetric.SAVINGS],
        )

    def diff(
        self,
        baseline: Iterable[Rule],
        adjusted: Iterable[Rule],
        metric: Union[ScenarioMetric, str],
        as_of: Optional[date] = None,
    ) -> int:
        """
        Signed monthly delta (adjusted - baseline) for one metric.

        Zero when neither set has a rule relevant to the metric.
        """
        metric = ScenarioMetric(metric)
        baseline_value = self.scenario_totals(baseline, as_of).metric(metric)
        adjusted_value = self.scenario_totals(adjusted, as_of).metric(metric)
        return adjusted_value - baseline_value

    def diff_all(
        self,
        baseline: Iterable[Rule],
        adjusted: Iterable[Rule],
        as_of: Optional[date] = None,
    ) -> list[ScenarioDelta]:
        """One delta per metric, in ScenarioMetric order."""
        baseline_totals = self.scenario_totals(baseline, as_of)
        adjusted_totals = self.scenario_totals(adjusted, as_of)

        deltas = [
            ScenarioDelta(
                metric=metric,
                delta_monthly_cents=adjusted_totals.metric(metric) - baseline_totals.metric(metric),
            )
            for metric in ScenarioMetric
        ]

        logger.debug(
            "scenarios_compared",
            deltas={d.metric.value: d.delta_monthly_cents for d in deltas},
        )
        return deltas

    def category_deltas(
        self,
        baseline: Iterable[Rule],
        adjusted: Iterable[Rule],
        as_of: Optional[date] = None,
    ) -> list[CategoryDelta]:
        """
        Per-category monthly budget differences, sorted by category key.

        Only budget-limit rules take part. A category present in only one
        set is reported against zero on the other side.
        """
        baseline_by_key = self._budget_by_category(baseline, as_of)
        adjusted_by_key = self._budget_by_category(adjusted, as_of)

        return [
            CategoryDelta(
                category_key=key,
                baseline_monthly_cents=baseline_by_key.get(key, 0),
                adjusted_monthly_cents=adjusted_by_key.get(key, 0),
            )
            for key in sorted(set(baseline_by_key) | set(adjusted_by_key))
        ]

    def _budget_by_category(
        self,
        rules: Iterable[Rule],
        as_of: Optional[date],
    ) -> dict[str, int]:
        totals: dict[str, int] = defaultdict(int)
        for rule in rules:
            if not isinstance(rule, BudgetRule):
                continue
            if as_of is not None and not rule.is_active_on(as_of):
                continue
            key = rule.category_id or UNCATEGORIZED
            totals[key] += monthly_equivalent(rule.amount_cents, rule.cadence)
        return dict(totals)
