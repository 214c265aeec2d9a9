"""Maps occurrence dates to typed expanded events."""

from datetime import date
from typing import Iterable, Union

from forecast_engine.models.events import EventSourceType, ExpandedEvent
from forecast_engine.models.rules import BudgetRule, EventType, ForecastRule, OneOffEvent


def materialize(
    rule: Union[BudgetRule, ForecastRule],
    dates: Iterable[date],
) -> list[ExpandedEvent]:
    """One event per date, copying the rule's amount, type and grouping ids verbatim."""
    return [
        ExpandedEvent(
            date=d,
            amount_cents=rule.amount_cents,
            type=rule.event_type,
            category_id=rule.category_id,
            savings_goal_id=rule.savings_goal_id,
            source_type=EventSourceType.RULE,
            source_id=rule.id,
            description=rule.description,
        )
        for d in dates
    ]


def materialize_one_off(
    events: Iterable[OneOffEvent],
    window_start: date,
    window_end: date,
) -> list[ExpandedEvent]:
    """Expanded events for the one-off forecast events dated inside the window."""
    return [
        ExpandedEvent(
            date=event.date,
            amount_cents=event.amount_cents,
            type=EventType(event.type.value),
            category_id=event.category_id,
            savings_goal_id=event.savings_goal_id,
            source_type=EventSourceType.EVENT,
            source_id=event.id,
            description=event.description,
        )
        for event in events
        if window_start <= event.date <= window_end
    ]
