"""Tests for two-stage rule validation."""

import pytest
from datetime import date

from forecast_engine.models import BudgetRule, ForecastRule
from forecast_engine.validation import ANCHOR_DEFAULTS, RuleValidator


@pytest.fixture
def validator():
    return RuleValidator()


class TestAnchorValidation:
    """Tests for stage 1: anchors per cadence."""

    def test_complete_rule_is_valid(self, validator):
        """Test a well-formed rule has no issues."""
        rule = BudgetRule(id="b1", category_id="food", amount_cents=100, cadence="monthly", day_of_month=5)
        result = validator.validate(rule)
        assert result.is_valid
        assert result.issues == []

    def test_missing_day_of_month(self, validator):
        """Test a missing anchor is a warning with the default substituted."""
        rule = BudgetRule(id="b1", category_id="food", amount_cents=100, cadence="monthly")
        anchor, result = validator.resolve_anchor(rule)

        assert anchor.day_of_month == ANCHOR_DEFAULTS["day_of_month"]
        assert not result.is_valid
        assert result.issues[0].issue_type == "missing"
        assert result.substitutions == {"day_of_month": 1}

    def test_quarterly_needs_both_fields(self, validator):
        """Test quarterly rules need month_of_quarter and day_of_month."""
        rule = BudgetRule(id="b1", category_id="x", amount_cents=1, cadence="quarterly", day_of_month=10)
        anchor, result = validator.resolve_anchor(rule)
        assert anchor.month_of_quarter == 0
        assert anchor.day_of_month == 10
        assert result.substitutions == {"month_of_quarter": 0}

    @pytest.mark.parametrize("field,value", [
        ("month_of_year", 12),
        ("month_of_year", -1),
        ("day_of_month", 0),
        ("day_of_month", 32),
    ])
    def test_out_of_range(self, validator, field, value):
        """Test out-of-range yearly anchors are replaced by defaults."""
        anchor_fields = {"month_of_year": 5, "day_of_month": 10, field: value}
        rule = BudgetRule(id="b1", category_id="x", amount_cents=1, cadence="yearly", **anchor_fields)
        anchor, result = validator.resolve_anchor(rule)
        assert getattr(anchor, field) == ANCHOR_DEFAULTS[field]
        assert result.issues[0].issue_type == "out_of_range"

    def test_irrelevant_fields_ignored(self, validator):
        """Test fields a cadence doesn't use are never checked."""
        rule = ForecastRule(
            id="f1", type="expense", category_id="x", amount_cents=1,
            cadence="weekly", day_of_week=2, day_of_month=99, month_of_year=40,
        )
        anchor, result = validator.resolve_anchor(rule)
        assert anchor.day_of_week == 2
        assert anchor.day_of_month is None
        assert result.issues == []


class TestSemanticValidation:
    """Tests for stage 2: rule-level consistency."""

    def test_inverted_validity_window(self, validator):
        """Test end before start is reported as info."""
        rule = BudgetRule(
            id="b1", category_id="x", amount_cents=1, cadence="monthly", day_of_month=1,
            start_date=date(2025, 6, 1), end_date=date(2025, 1, 1),
        )
        result = validator.validate(rule)
        assert [i.field for i in result.issues] == ["end_date"]
        assert result.issues[0].severity == "info"
        assert result.is_valid

    def test_coerced_amount_is_warning(self, validator):
        """Test a coerced amount is a warning."""
        rule = BudgetRule(id="b1", category_id="x", amount_cents=-1, cadence="monthly", day_of_month=1)
        result = validator.validate(rule)
        assert result.has_warnings
        assert result.issues[0].field == "amount_cents"

    def test_missing_category(self, validator):
        """Test a rule with nothing to group under is reported."""
        rule = BudgetRule(id="b1", amount_cents=1, cadence="monthly", day_of_month=1)
        result = validator.validate(rule)
        assert result.issues[0].field == "category_id"
        assert result.issues[0].severity == "info"

    def test_savings_without_goal(self, validator):
        """Test savings rules are checked for a goal, not a category."""
        rule = ForecastRule(
            id="s1", type="savings", category_id="x", amount_cents=1, cadence="monthly", day_of_month=1,
        )
        result = validator.validate(rule)
        assert result.issues[0].field == "savings_goal_id"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
