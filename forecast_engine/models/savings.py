"""
Savings Goal Models

A savings goal can earn interest at a flat annual rate, at a piecewise
rate given by a schedule of rate changes, or both (the flat rate then
applies before the first schedule entry).
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from forecast_engine.models.rules import coerce_amount_cents


class CompoundingFrequency(str, Enum):
    """How often interest is compounded."""
    DAILY = "daily"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class InterestRateEntry(BaseModel):
    """A rate change taking effect on `effective_date`."""

    effective_date: date
    annual_rate: Decimal = Field(
        ...,
        description="Annual rate in percent (4.5 means 4.5%)"
    )


class SavingsGoal(BaseModel):
    """
    A savings target, optionally earning interest.

    The interest rate schedule is kept sorted ascending by
    effective_date regardless of input order.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    name: str = ""
    target_amount_cents: int = Field(default=0, ge=0)
    deadline: Optional[date] = None

    annual_interest_rate: Optional[Decimal] = Field(
        default=None,
        description="Flat annual rate in percent"
    )
    compounding_frequency: Optional[CompoundingFrequency] = None
    interest_rate_schedule: list[InterestRateEntry] = Field(default_factory=list)

    @field_validator('target_amount_cents', mode='before')
    @classmethod
    def coerce_target(cls, v: Any) -> int:
        amount, _ = coerce_amount_cents(v)
        return amount

    @field_validator('interest_rate_schedule', mode='before')
    @classmethod
    def missing_schedule_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator('interest_rate_schedule')
    @classmethod
    def sort_schedule(cls, v: list[InterestRateEntry]) -> list[InterestRateEntry]:
        return sorted(v, key=lambda entry: entry.effective_date)

    @property
    def has_interest(self) -> bool:
        """Does this goal have any rate information at all?"""
        return self.annual_interest_rate is not None or bool(self.interest_rate_schedule)

    @property
    def effective_compounding(self) -> CompoundingFrequency:
        """Configured compounding frequency, monthly by default."""
        return self.compounding_frequency or CompoundingFrequency.MONTHLY
