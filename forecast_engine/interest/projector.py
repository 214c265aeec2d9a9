"""
Interest Projector

Compound-interest projection for savings goals.

A goal's rate can change over time (interest_rate_schedule). A range
that crosses a rate change is split at every change and compounded one
constant-rate segment at a time, carrying the rounded balance forward.
A single blended rate across a boundary is never used.

Conventions:
- Rates are annual percentages (4.5 means 4.5%)
- A = P * (1 + r/n)^(n*t), n = 365 / 12 / 1 for daily / monthly / yearly
- t for monthly and yearly compounding is calendar months / 12;
  t for daily compounding is actual days / 365
- Ranges are inclusive: [from_date, to_date] runs to the day after to_date
"""

from datetime import date, timedelta
from decimal import Decimal, localcontext
from typing import Optional, Union

import structlog

from forecast_engine.audit import AuditLogger, get_audit_logger
from forecast_engine.config import EngineSettings, get_settings
from forecast_engine.expansion.cadence import months_between, round_half_up
from forecast_engine.models.events import EventSourceType, ExpandedEvent
from forecast_engine.models.rules import EventType
from forecast_engine.models.savings import CompoundingFrequency, SavingsGoal


logger = structlog.get_logger(__name__)

PERIODS_PER_YEAR: dict[CompoundingFrequency, int] = {
    CompoundingFrequency.DAILY: 365,
    CompoundingFrequency.MONTHLY: 12,
    CompoundingFrequency.YEARLY: 1,
}


def effective_rate(goal: SavingsGoal, day: date) -> Decimal:
    """
    Annual rate (percent) in force for `goal` on `day`.

    The most recent schedule entry with effective_date <= day wins;
    before the first entry (or without a schedule) the goal's flat
    rate applies, else 0.
    """
    rate = goal.annual_interest_rate if goal.annual_interest_rate is not None else Decimal(0)
    for entry in goal.interest_rate_schedule:
        if entry.effective_date <= day:
            rate = entry.annual_rate
        else:
            break
    return rate


def elapsed_years(
    start: date,
    end_exclusive: date,
    frequency: CompoundingFrequency,
) -> Decimal:
    """Length of [start, end_exclusive) in years, measured for `frequency`."""
    if end_exclusive <= start:
        return Decimal(0)
    if frequency == CompoundingFrequency.DAILY:
        return Decimal((end_exclusive - start).days) / Decimal(365)
    return months_between(start, end_exclusive) / Decimal(12)


def project_balance(
    principal_cents: int,
    rate_percent: Union[Decimal, int, float, str],
    frequency: Union[CompoundingFrequency, str],
    years: Union[Decimal, int, float, str],
) -> int:
    """
    Balance after compounding `principal_cents` for `years`.

    >>> project_balance(1_000_000, 5, "yearly", 1)
    1050000
    """
    frequency = CompoundingFrequency(frequency)
    rate = Decimal(str(rate_percent))
    t = Decimal(str(years))
    if principal_cents == 0 or rate == 0 or t <= 0:
        return principal_cents

    with localcontext() as ctx:
        ctx.prec = 28
        n = Decimal(PERIODS_PER_YEAR[frequency])
        base = Decimal(1) + rate / Decimal(100) / n
        periods = n * t
        if periods == periods.to_integral_value():
            multiplier = base ** int(periods)
        else:
            multiplier = base ** periods
        return round_half_up(Decimal(principal_cents) * multiplier)


class InterestProjector:
    """
    Projects interest for savings goals as dated interest events.

    Holds no state between calls.
    """

    def __init__(
        self,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[EngineSettings] = None,
    ):
        self._audit_logger = audit_logger or get_audit_logger()
        self._settings = settings or get_settings()

    def segments(
        self,
        goal: SavingsGoal,
        from_date: date,
        to_date: date,
    ) -> list[tuple[date, date]]:
        """
        Split [from_date, to_date] at every rate change inside it.

        Returns inclusive (first_day, last_day) pairs in order.
        """
        starts = [from_date]
        for entry in goal.interest_rate_schedule:
            if from_date < entry.effective_date <= to_date and entry.effective_date != starts[-1]:
                starts.append(entry.effective_date)

        ends = [next_start - timedelta(days=1) for next_start in starts[1:]] + [to_date]
        return list(zip(starts, ends))

    def project_over_schedule(
        self,
        goal: SavingsGoal,
        principal_cents: int,
        from_date: date,
        to_date: date,
    ) -> list[ExpandedEvent]:
        """
        Interest events for `goal` over [from_date, to_date].

        One event per constant-rate segment, dated on the segment's last
        day, holding the interest earned in that segment.
        """
        if from_date > to_date:
            self._audit_logger.log_empty_window(
                window_start=from_date.isoformat(),
                window_end=to_date.isoformat(),
                entity_id=goal.id,
            )
            return []

        schedule_size = len(goal.interest_rate_schedule)
        if schedule_size > self._settings.schedule_size_warning:
            self._audit_logger.log_large_schedule(
                goal_id=goal.id,
                entries=schedule_size,
                threshold=self._settings.schedule_size_warning,
            )

        if not goal.interest_rate_schedule and goal.annual_interest_rate is None:
            self._audit_logger.log_schedule_gap(
                goal_id=goal.id,
                segment_start=from_date.isoformat(),
                fallback="0%",
            )

        frequency = goal.effective_compounding
        first_scheduled = (
            goal.interest_rate_schedule[0].effective_date
            if goal.interest_rate_schedule
            else None
        )

        events = []
        balance = principal_cents
        for segment_start, segment_end in self.segments(goal, from_date, to_date):
            rate = self._segment_rate(goal, segment_start, first_scheduled)
            years = elapsed_years(segment_start, segment_end + timedelta(days=1), frequency)
            new_balance = project_balance(balance, rate, frequency, years)

            events.append(ExpandedEvent(
                date=segment_end,
                amount_cents=max(new_balance - balance, 0),
                type=EventType.INTEREST,
                savings_goal_id=goal.id,
                source_type=EventSourceType.INTEREST,
                source_id=goal.id,
                description=f"Interest at {rate}% ({frequency.value})",
            ))
            balance = new_balance

        logger.debug(
            "interest_projected",
            goal_id=goal.id,
            segments=len(events),
            principal_cents=principal_cents,
            final_balance_cents=balance,
        )
        return events

    def project_final_balance(
        self,
        goal: SavingsGoal,
        principal_cents: int,
        from_date: date,
        to_date: date,
    ) -> int:
        """Principal plus all interest earned over [from_date, to_date]."""
        events = self.project_over_schedule(goal, principal_cents, from_date, to_date)
        return principal_cents + sum(event.amount_cents for event in events)

    def _segment_rate(
        self,
        goal: SavingsGoal,
        segment_start: date,
        first_scheduled: Optional[date],
    ) -> Decimal:
        """Rate for one segment, reporting gaps and negative rates."""
        rate = effective_rate(goal, segment_start)

        if first_scheduled is not None and segment_start < first_scheduled:
            fallback = (
                f"flat rate {goal.annual_interest_rate}%"
                if goal.annual_interest_rate is not None
                else "0%"
            )
            self._audit_logger.log_schedule_gap(
                goal_id=goal.id,
                segment_start=segment_start.isoformat(),
                fallback=fallback,
            )

        if rate < 0:
            self._audit_logger.log_rate_coerced(
                goal_id=goal.id,
                annual_rate=str(rate),
                effective_from=segment_start.isoformat(),
            )
            rate = Decimal(0)

        return rate
