"""
Recurring Rule Models

These models define the declarative inputs the engine expands:
budget-limit rules, forecast rules and one-off forecast events.

DESIGN DECISION: Budget and forecast rules are a tagged variant
(`kind`) sharing one CadenceAnchor substructure. The expander matches on
the cadence and reads only the anchor fields that cadence uses.

Reads are tolerant. A rule from the persistence layer never fails to
load because of an anchor or amount problem:
- anchor fields that are not integers are read as missing
- amounts that are not non-negative integers are read as 0 and the
  rule is flagged so the anomaly can be reported
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
    model_validator,
)


# =============================================================================
# ENUMS
# =============================================================================

class Cadence(str, Enum):
    """Repetition interval of a recurring rule."""
    WEEKLY = "weekly"
    FORTNIGHTLY = "fortnightly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class RuleKind(str, Enum):
    """Which aggregation universe a rule belongs to."""
    BUDGET = "budget"
    FORECAST = "forecast"


class ForecastType(str, Enum):
    """Direction of a forecast rule or one-off event."""
    INCOME = "income"
    EXPENSE = "expense"
    SAVINGS = "savings"


class EventType(str, Enum):
    """
    Type tag carried by every expanded event.

    Direction lives here, never in the sign of the amount.
    """
    INCOME = "income"
    EXPENSE = "expense"
    SAVINGS = "savings"
    BUDGET = "budget"      # Budget-limit allocation
    INTEREST = "interest"  # Projected savings interest


# =============================================================================
# AMOUNT COERCION
# =============================================================================

def coerce_amount_cents(value: Any) -> tuple[int, bool]:
    """
    Read an amount as non-negative integer cents.

    Returns:
        (amount_cents, was_coerced)

    Anything that is not a finite, integral, non-negative number
    (including booleans and fractional cents) becomes 0.
    """
    if isinstance(value, bool) or value is None:
        return 0, True

    if isinstance(value, int):
        return (value, False) if value >= 0 else (0, True)

    if isinstance(value, (float, Decimal, str)):
        try:
            number = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return 0, True
        if not number.is_finite() or number < 0 or number != number.to_integral_value():
            return 0, True
        return int(number), False

    return 0, True


# =============================================================================
# CADENCE ANCHOR
# =============================================================================

ANCHOR_FIELDS = ("day_of_week", "day_of_month", "month_of_quarter", "month_of_year")


class CadenceAnchor(BaseModel):
    """
    Cadence-specific fields identifying where occurrences fall.

    Conventions:
    - day_of_week: 0 = Sunday ... 6 = Saturday (weekly, fortnightly)
    - day_of_month: 1-31 (monthly, quarterly, yearly)
    - month_of_quarter: 0-2 (quarterly)
    - month_of_year: 0 = January ... 11 = December (yearly)

    Fields irrelevant to a rule's cadence are ignored, not rejected.
    Range checks happen in RuleValidator, not here.
    """

    day_of_week: Optional[int] = None
    day_of_month: Optional[int] = None
    month_of_quarter: Optional[int] = None
    month_of_year: Optional[int] = None

    @field_validator(*ANCHOR_FIELDS, mode='before')
    @classmethod
    def read_integral_or_missing(cls, v: Any) -> Optional[int]:
        """Non-integral values are read as missing."""
        if v is None or isinstance(v, bool):
            return None
        if isinstance(v, int):
            return v
        try:
            number = Decimal(str(v).strip())
        except (InvalidOperation, ValueError):
            return None
        if not number.is_finite() or number != number.to_integral_value():
            return None
        return int(number)


# =============================================================================
# RULES
# =============================================================================

class _RuleBase(BaseModel):
    """Fields shared by every recurring rule kind."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Rule identifier"
    )
    scenario_id: Optional[str] = Field(
        default=None,
        description="Scenario (plan) this rule belongs to"
    )
    category_id: Optional[str] = None
    savings_goal_id: Optional[str] = None

    amount_cents: int = Field(
        default=0,
        ge=0,
        description="Amount per occurrence in cents"
    )
    cadence: Cadence
    anchor: CadenceAnchor = Field(default_factory=CadenceAnchor)

    # Inclusive validity window, absent = unbounded
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    excluded_dates: set[date] = Field(
        default_factory=set,
        description="Dates whose single occurrence is suppressed"
    )

    description: str = ""
    notes: Optional[str] = None
    updated_at: Optional[datetime] = Field(
        default=None,
        description="Last-modified marker, used by callers for memoisation"
    )

    # Set when amount_cents had to be coerced on read
    amount_was_coerced: bool = Field(default=False, exclude=True)

    @model_validator(mode='before')
    @classmethod
    def tolerant_read(cls, data: Any) -> Any:
        """Coerce the amount and lift flat anchor fields into `anchor`."""
        if not isinstance(data, dict):
            return data

        data = dict(data)

        amount, coerced = coerce_amount_cents(data.get("amount_cents"))
        data["amount_cents"] = amount
        data["amount_was_coerced"] = coerced or bool(data.get("amount_was_coerced"))

        flat = {key: data.pop(key) for key in ANCHOR_FIELDS if key in data}
        if flat:
            anchor = data.get("anchor") or {}
            if isinstance(anchor, CadenceAnchor):
                anchor = anchor.model_dump()
            data["anchor"] = {**flat, **anchor}

        if data.get("excluded_dates") is None:
            data["excluded_dates"] = set()

        return data

    @property
    def rule_kind(self) -> RuleKind:
        return RuleKind(self.kind)

    def is_active_on(self, day: date) -> bool:
        """Is `day` inside the rule's validity window?"""
        if self.start_date and day < self.start_date:
            return False
        if self.end_date and day > self.end_date:
            return False
        return True


class BudgetRule(_RuleBase):
    """
    A spending limit for a category at a cadence.

    Budget rules expand to events of type `budget` and are never mixed
    with forecast totals by the aggregator.
    """

    kind: Literal["budget"] = "budget"

    @property
    def event_type(self) -> EventType:
        return EventType.BUDGET


class ForecastRule(_RuleBase):
    """A recurring income, expense or savings pattern."""

    kind: Literal["forecast"] = "forecast"
    type: ForecastType

    @property
    def event_type(self) -> EventType:
        return EventType(self.type.value)


RecurringRule = Annotated[
    Union[BudgetRule, ForecastRule],
    Field(discriminator="kind"),
]

_rule_adapter = TypeAdapter(RecurringRule)


def parse_rule(data: Any) -> Union[BudgetRule, ForecastRule]:
    """Build the right rule variant from a plain dict using its `kind` tag."""
    return _rule_adapter.validate_python(data)


# =============================================================================
# ONE-OFF EVENTS
# =============================================================================

class OneOffEvent(BaseModel):
    """A single dated forecast item that does not repeat."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    scenario_id: Optional[str] = None
    type: ForecastType
    date: date
    amount_cents: int = Field(default=0, ge=0)
    description: str = ""
    category_id: Optional[str] = None
    savings_goal_id: Optional[str] = None

    amount_was_coerced: bool = Field(default=False, exclude=True)

    @model_validator(mode='before')
    @classmethod
    def coerce_amount(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        amount, coerced = coerce_amount_cents(data.get("amount_cents"))
        data["amount_cents"] = amount
        data["amount_was_coerced"] = coerced or bool(data.get("amount_was_coerced"))
        return data
