"""Tests for what-if scenario comparison."""

import pytest
from datetime import date

from forecast_engine.models import BudgetRule, ForecastRule, ScenarioMetric
from forecast_engine.scenarios import ScenarioDiffEngine, metric_for_rule, rules_for_scenario


@pytest.fixture
def engine():
    return ScenarioDiffEngine()


@pytest.fixture
def baseline():
    return [
        ForecastRule(id="inc", type="income", category_id="salary", amount_cents=500000, cadence="monthly"),
        ForecastRule(id="gro", type="expense", category_id="food", amount_cents=10000, cadence="weekly"),
        BudgetRule(id="bud-food", category_id="food", amount_cents=60000, cadence="monthly"),
        ForecastRule(id="sav", type="savings", savings_goal_id="car", amount_cents=30000, cadence="quarterly"),
    ]


@pytest.fixture
def adjusted():
    return [
        ForecastRule(id="inc", type="income", category_id="salary", amount_cents=550000, cadence="monthly"),
        ForecastRule(id="gro", type="expense", category_id="food", amount_cents=10000, cadence="weekly"),
        BudgetRule(id="bud-food", category_id="food", amount_cents=50000, cadence="monthly"),
        BudgetRule(id="bud-fun", category_id="fun", amount_cents=20000, cadence="monthly"),
        ForecastRule(id="sav", type="savings", savings_goal_id="car", amount_cents=30000, cadence="quarterly"),
    ]


class TestScenarioTotals:
    """Tests for monthly totals of one rule set."""

    def test_totals(self, engine, baseline):
        """Test each rule counts toward its metric after normalisation."""
        totals = engine.scenario_totals(baseline)
        assert totals.income == 500000
        assert totals.fixed == 43333
        assert totals.budget == 60000
        assert totals.savings == 10000
        assert totals.surplus == 500000 - 43333 - 60000 - 10000

    def test_metric_membership(self):
        """Test which metric each rule contributes to."""
        assert metric_for_rule(BudgetRule(id="b", cadence="monthly", amount_cents=1)) == ScenarioMetric.BUDGET
        assert metric_for_rule(
            ForecastRule(id="f", type="expense", cadence="monthly", amount_cents=1)
        ) == ScenarioMetric.FIXED

    def test_as_of_filters_inactive_rules(self, engine):
        """Test rules not active on as_of are left out."""
        rules = [
            ForecastRule(id="old", type="income", amount_cents=1000, cadence="monthly",
                         end_date=date(2024, 12, 31)),
            ForecastRule(id="new", type="income", amount_cents=2000, cadence="monthly",
                         start_date=date(2025, 1, 1)),
        ]
        assert engine.scenario_totals(rules, as_of=date(2025, 6, 1)).income == 2000
        assert engine.scenario_totals(rules).income == 3000


class TestDiff:
    """Tests for per-metric deltas."""

    def test_deltas(self, engine, baseline, adjusted):
        """Test adjusted - baseline for each metric."""
        assert engine.diff(baseline, adjusted, ScenarioMetric.INCOME) == 50000
        assert engine.diff(baseline, adjusted, ScenarioMetric.FIXED) == 0
        assert engine.diff(baseline, adjusted, ScenarioMetric.BUDGET) == 10000
        assert engine.diff(baseline, adjusted, ScenarioMetric.SAVINGS) == 0
        assert engine.diff(baseline, adjusted, ScenarioMetric.SURPLUS) == 40000

    def test_metric_by_name(self, engine, baseline, adjusted):
        """Test metrics can be given by their string value."""
        assert engine.diff(baseline, adjusted, "income") == 50000

    @pytest.mark.parametrize("metric", list(ScenarioMetric))
    def test_symmetry(self, engine, baseline, adjusted, metric):
        """Test diff(A, B) == -diff(B, A) for every metric."""
        assert engine.diff(baseline, adjusted, metric) == -engine.diff(adjusted, baseline, metric)

    @pytest.mark.parametrize("metric", list(ScenarioMetric))
    def test_no_relevant_rules_is_zero(self, engine, metric):
        """Test empty rule sets give a zero delta, not an error."""
        assert engine.diff([], [], metric) == 0

    def test_only_irrelevant_rules_is_zero(self, engine):
        """Test rules outside the metric don't affect it."""
        budget_only = [BudgetRule(id="b", category_id="x", amount_cents=5000, cadence="monthly")]
        assert engine.diff([], budget_only, ScenarioMetric.INCOME) == 0

    def test_order_independent(self, engine, baseline, adjusted):
        """Test rule order never changes a delta."""
        for metric in ScenarioMetric:
            assert engine.diff(baseline, adjusted, metric) == engine.diff(
                list(reversed(baseline)), list(reversed(adjusted)), metric
            )

    def test_diff_all(self, engine, baseline, adjusted):
        """Test one delta per metric in enum order."""
        deltas = engine.diff_all(baseline, adjusted)
        assert [d.metric for d in deltas] == list(ScenarioMetric)
        assert {d.metric: d.delta_monthly_cents for d in deltas}[ScenarioMetric.SURPLUS] == 40000


class TestCategoryDeltas:
    """Tests for per-category budget differences."""

    def test_category_deltas(self, engine, baseline, adjusted):
        """Test categories from either set are reported, sorted by key."""
        deltas = engine.category_deltas(baseline, adjusted)

        assert [d.category_key for d in deltas] == ["food", "fun"]
        assert deltas[0].baseline_monthly_cents == 60000
        assert deltas[0].adjusted_monthly_cents == 50000
        assert deltas[0].delta_monthly_cents == -10000
        assert deltas[1].baseline_monthly_cents == 0
        assert deltas[1].delta_monthly_cents == 20000

    def test_forecast_rules_not_included(self, engine):
        """Test only budget rules take part."""
        rules = [ForecastRule(id="f", type="expense", category_id="food", amount_cents=1, cadence="monthly")]
        assert engine.category_deltas(rules, []) == []


class TestRulesForScenario:
    """Tests for scenario filtering."""

    def test_filter(self):
        """Test rules are selected by scenario id."""
        rules = [
            BudgetRule(id="a", scenario_id="s1", cadence="monthly", amount_cents=1),
            BudgetRule(id="b", scenario_id="s2", cadence="monthly", amount_cents=1),
            BudgetRule(id="c", cadence="monthly", amount_cents=1),
        ]
        assert [r.id for r in rules_for_scenario(rules, "s1")] == ["a"]
        assert [r.id for r in rules_for_scenario(rules, None)] == ["c"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
