"""
Tests for savings interest projection

The piecewise tests are the important ones: a range crossing a rate
change must compound each side at its own rate, carrying the balance
forward, and must not match a single blended rate.
"""

import pytest
from datetime import date
from decimal import Decimal

from forecast_engine.config import EngineSettings
from forecast_engine.interest import (
    InterestProjector,
    effective_rate,
    elapsed_years,
    project_balance,
)
from forecast_engine.models import (
    AuditEventType,
    CompoundingFrequency,
    EventSourceType,
    EventType,
    SavingsGoal,
)


MONTHLY = CompoundingFrequency.MONTHLY


@pytest.fixture
def projector(audit_logger, settings):
    return InterestProjector(audit_logger=audit_logger, settings=settings)


def scheduled_goal(*entries, **kwargs):
    return SavingsGoal(
        id=kwargs.pop("id", "g1"),
        interest_rate_schedule=[
            {"effective_date": effective, "annual_rate": rate} for effective, rate in entries
        ],
        **kwargs,
    )


class TestEffectiveRate:
    """Tests for schedule lookup."""

    def test_latest_entry_on_or_before_wins(self):
        """Test the most recent entry with effective_date <= day applies."""
        goal = scheduled_goal(("2025-01-01", "4"), ("2025-07-01", "5"), annual_interest_rate=Decimal("3"))
        assert effective_rate(goal, date(2024, 12, 31)) == Decimal("3")
        assert effective_rate(goal, date(2025, 1, 1)) == Decimal("4")
        assert effective_rate(goal, date(2025, 6, 30)) == Decimal("4")
        assert effective_rate(goal, date(2025, 7, 1)) == Decimal("5")
        assert effective_rate(goal, date(2030, 1, 1)) == Decimal("5")

    def test_before_schedule_without_flat_rate(self):
        """Test the fallback is 0 when no flat rate exists."""
        goal = scheduled_goal(("2025-01-01", "4"))
        assert effective_rate(goal, date(2024, 6, 1)) == 0

    def test_flat_rate_only(self):
        """Test a goal with only a flat rate."""
        goal = SavingsGoal(id="g1", annual_interest_rate=Decimal("2.5"))
        assert effective_rate(goal, date(2025, 1, 1)) == Decimal("2.5")

    def test_no_rate_information(self):
        """Test a goal with no rate at all earns 0."""
        assert effective_rate(SavingsGoal(id="g1"), date(2025, 1, 1)) == 0

    def test_unsorted_input_schedule(self):
        """Test lookup works when the schedule was given out of order."""
        goal = scheduled_goal(("2025-07-01", "5"), ("2025-01-01", "4"))
        assert effective_rate(goal, date(2025, 3, 1)) == Decimal("4")


class TestProjectBalance:
    """Tests for the compound interest formula."""

    def test_yearly(self):
        """Test one year at 5% compounded yearly."""
        assert project_balance(1_000_000, 5, "yearly", 1) == 1_050_000

    def test_monthly(self):
        """Test one year at 12% compounded monthly (1.01^12)."""
        assert project_balance(1_000_000, 12, MONTHLY, 1) == 1_126_825

    def test_half_year_monthly(self):
        """Test six months at 12% compounded monthly (1.01^6)."""
        assert project_balance(1_000_000, 12, MONTHLY, Decimal("0.5")) == 1_061_520

    def test_zero_rate_or_time(self):
        """Test the principal is unchanged without rate or time."""
        assert project_balance(1_000_000, 0, MONTHLY, 1) == 1_000_000
        assert project_balance(1_000_000, 5, MONTHLY, 0) == 1_000_000
        assert project_balance(0, 5, MONTHLY, 1) == 0

    def test_elapsed_years(self):
        """Test year fractions for each compounding convention."""
        assert elapsed_years(date(2025, 1, 1), date(2026, 1, 1), CompoundingFrequency.DAILY) == 1
        assert elapsed_years(date(2025, 1, 1), date(2025, 7, 1), MONTHLY) == Decimal("0.5")
        assert elapsed_years(date(2025, 7, 1), date(2025, 1, 1), MONTHLY) == 0


class TestProjectOverSchedule:
    """Tests for piecewise projection across rate changes."""

    def test_piecewise_equals_chained_compounding(self, projector):
        """Test 4% for six months then 5% on the carried balance."""
        goal = scheduled_goal(("2025-01-01", "4"), ("2025-07-01", "5"))

        events = projector.project_over_schedule(goal, 1_000_000, date(2025, 1, 1), date(2025, 12, 31))

        first_half = project_balance(1_000_000, 4, MONTHLY, Decimal("0.5"))
        expected = project_balance(first_half, 5, MONTHLY, Decimal("0.5"))
        assert [e.date for e in events] == [date(2025, 6, 30), date(2025, 12, 31)]
        assert events[0].amount_cents == first_half - 1_000_000
        assert 1_000_000 + sum(e.amount_cents for e in events) == expected

    def test_piecewise_is_not_blended(self, projector):
        """Test the result differs from a flat 4.5% year."""
        goal = scheduled_goal(("2025-01-01", "4"), ("2025-07-01", "5"))
        final = projector.project_final_balance(goal, 1_000_000, date(2025, 1, 1), date(2025, 12, 31))
        blended = project_balance(1_000_000, Decimal("4.5"), MONTHLY, 1)
        assert final != blended

    def test_zero_then_ten_percent(self, projector):
        """Test a 0% half earns nothing and the 10% half earns only six months."""
        goal = scheduled_goal(("2025-01-01", "0"), ("2025-07-01", "10"))

        events = projector.project_over_schedule(goal, 1_000_000, date(2025, 1, 1), date(2025, 12, 31))

        assert events[0].amount_cents == 0
        assert events[1].amount_cents == project_balance(1_000_000, 10, MONTHLY, Decimal("0.5")) - 1_000_000
        assert events[1].amount_cents != project_balance(1_000_000, 5, MONTHLY, 1) - 1_000_000

    def test_segments_split_at_changes_inside_range(self, projector):
        """Test segments are inclusive and split only inside the range."""
        goal = scheduled_goal(("2025-01-01", "4"), ("2025-07-01", "5"), ("2026-01-01", "6"))
        assert projector.segments(goal, date(2025, 1, 1), date(2025, 12, 31)) == [
            (date(2025, 1, 1), date(2025, 6, 30)),
            (date(2025, 7, 1), date(2025, 12, 31)),
        ]

    def test_interest_event_fields(self, projector):
        """Test interest events are typed and attributed to the goal."""
        goal = SavingsGoal(id="g9", annual_interest_rate=Decimal("5"), compounding_frequency="yearly")
        events = projector.project_over_schedule(goal, 1_000_000, date(2025, 1, 1), date(2025, 12, 31))

        assert len(events) == 1
        event = events[0]
        assert event.amount_cents == 50_000
        assert event.type == EventType.INTEREST
        assert event.source_type == EventSourceType.INTEREST
        assert event.source_id == "g9"
        assert event.savings_goal_id == "g9"
        assert event.grouping_key == "g9"

    def test_daily_compounding(self, projector):
        """Test daily compounding over a full non-leap year."""
        goal = SavingsGoal(id="g1", annual_interest_rate=Decimal("3.65"), compounding_frequency="daily")
        final = projector.project_final_balance(goal, 1_000_000, date(2025, 1, 1), date(2025, 12, 31))
        assert final == project_balance(1_000_000, Decimal("3.65"), CompoundingFrequency.DAILY, 1)

    def test_schedule_gap_falls_back_to_flat_rate(self, projector, sink):
        """Test time before the first entry uses the flat rate and is reported."""
        goal = scheduled_goal(("2025-07-01", "5"), annual_interest_rate=Decimal("2"))

        events = projector.project_over_schedule(goal, 1_000_000, date(2025, 1, 1), date(2025, 12, 31))

        assert events[0].amount_cents == project_balance(1_000_000, 2, MONTHLY, Decimal("0.5")) - 1_000_000
        assert [e.event_type for e in sink.events] == [AuditEventType.SCHEDULE_GAP]

    def test_no_rate_at_all_reported_once(self, projector, sink):
        """Test a goal with no schedule and no flat rate earns 0% and is reported once."""
        goal = SavingsGoal(id="g1")

        events = projector.project_over_schedule(goal, 1_000_000, date(2025, 1, 1), date(2025, 12, 31))

        assert [e.amount_cents for e in events] == [0]
        assert [e.event_type for e in sink.events] == [AuditEventType.SCHEDULE_GAP]
        assert sink.events[0].entity_id == "g1"

    def test_flat_rate_only_not_reported(self, projector, sink):
        """Test a flat rate without a schedule is not a gap."""
        goal = SavingsGoal(id="g1", annual_interest_rate=Decimal("5"))
        projector.project_over_schedule(goal, 1_000_000, date(2025, 1, 1), date(2025, 12, 31))
        assert sink.events == []

    def test_negative_rate_treated_as_zero(self, projector, sink):
        """Test a negative rate earns nothing and is reported."""
        goal = SavingsGoal(id="g1", annual_interest_rate=Decimal("-1"))
        events = projector.project_over_schedule(goal, 1_000_000, date(2025, 1, 1), date(2025, 12, 31))
        assert events[0].amount_cents == 0
        assert sink.events[0].event_type == AuditEventType.RATE_COERCED

    def test_empty_window(self, projector, sink):
        """Test from > to gives nothing and is reported."""
        goal = SavingsGoal(id="g1", annual_interest_rate=Decimal("5"))
        assert projector.project_over_schedule(goal, 1_000, date(2025, 2, 1), date(2025, 1, 1)) == []
        assert sink.events[0].event_type == AuditEventType.EMPTY_WINDOW

    def test_large_schedule_reported(self, audit_logger, sink):
        """Test schedules above the threshold are reported, still projected."""
        projector = InterestProjector(
            audit_logger=audit_logger,
            settings=EngineSettings(schedule_size_warning=2),
        )
        goal = scheduled_goal(("2025-01-01", "1"), ("2025-02-01", "2"), ("2025-03-01", "3"))

        events = projector.project_over_schedule(goal, 1_000_000, date(2025, 1, 1), date(2025, 3, 31))

        assert len(events) == 3
        assert sink.events[0].event_type == AuditEventType.LARGE_SCHEDULE


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
