"""
Cadence Math

Pure calendar and money helpers shared by every part of the engine.

DESIGN DECISION: There is exactly one cadence conversion table and
exactly one rounding rule in the engine, both defined here:
- Occurrences per year: weekly 52, fortnightly 26, monthly 12,
  quarterly 4, yearly 1. Monthly equivalent = amount * per_year / 12.
- Rounding is round-half-up to the nearest cent, ties away from zero.

Month indexes follow the rule anchor convention: 0 = January.
Week days follow it too: 0 = Sunday ... 6 = Saturday.
"""

import calendar
import math
import re
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, localcontext
from fractions import Fraction
from typing import Union

from forecast_engine.exceptions import InvalidDateError, UnknownCadenceError
from forecast_engine.models.rules import Cadence


Number = Union[int, Decimal, Fraction]

OCCURRENCES_PER_YEAR: dict[Cadence, int] = {
    Cadence.WEEKLY: 52,
    Cadence.FORTNIGHTLY: 26,
    Cadence.MONTHLY: 12,
    Cadence.QUARTERLY: 4,
    Cadence.YEARLY: 1,
}

# Precision of cross-cadence conversions, in cents
PERIOD_QUANTUM = Decimal("0.0001")

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


# =============================================================================
# PARSING
# =============================================================================

def parse_calendar_date(value: Union[str, date]) -> date:
    """
    Read a YYYY-MM-DD string (or a date) as a naive calendar date.

    Raises:
        InvalidDateError: If the value is not a valid calendar date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and _ISO_DATE.match(value.strip()):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise InvalidDateError(value)


def to_cadence(value: Union[str, Cadence]) -> Cadence:
    """
    Read a cadence value.

    Raises:
        UnknownCadenceError: If the value is not a supported cadence
    """
    if isinstance(value, Cadence):
        return value
    try:
        return Cadence(str(value).strip().lower())
    except ValueError:
        raise UnknownCadenceError(value) from None


# =============================================================================
# ROUNDING AND CONVERSION
# =============================================================================

def round_half_up(value: Number) -> int:
    """Round to the nearest whole cent, ties away from zero."""
    if isinstance(value, int):
        return value
    if isinstance(value, Fraction):
        magnitude = math.floor(abs(value) + Fraction(1, 2))
        return magnitude if value >= 0 else -magnitude
    return int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _exact_ratio(amount: Number, from_cadence: Cadence, to_cadence_: Cadence) -> Fraction:
    return (
        Fraction(amount)
        * OCCURRENCES_PER_YEAR[from_cadence]
        / OCCURRENCES_PER_YEAR[to_cadence_]
    )


def monthly_equivalent(amount_cents: Number, cadence: Union[str, Cadence]) -> int:
    """
    Convert an amount at `cadence` to whole cents per month.

    >>> monthly_equivalent(10000, "weekly")
    43333
    >>> monthly_equivalent(30000, "quarterly")
    10000
    """
    return round_half_up(_exact_ratio(amount_cents, to_cadence(cadence), Cadence.MONTHLY))


def period_equivalent(
    amount_cents: Number,
    cadence: Union[str, Cadence],
    target_cadence: Union[str, Cadence],
) -> Decimal:
    """
    Convert an amount at `cadence` to the equivalent amount at `target_cadence`.

    Goes through the monthly equivalent and its inverse in exact
    arithmetic, then quantizes once to 1/10000 cent. The result is in
    cents; apply round_half_up() for whole cents.
    """
    source = to_cadence(cadence)
    target = to_cadence(target_cadence)
    monthly = _exact_ratio(amount_cents, source, Cadence.MONTHLY)
    exact = _exact_ratio(monthly, Cadence.MONTHLY, target)

    with localcontext() as ctx:
        ctx.prec = 28
        value = Decimal(exact.numerator) / Decimal(exact.denominator)
        return value.quantize(PERIOD_QUANTUM, rounding=ROUND_HALF_UP)


# =============================================================================
# CALENDAR
# =============================================================================

def last_day_of_month(year: int, month_index: int) -> int:
    """Number of days in a month (month_index 0 = January), leap-year aware."""
    return calendar.monthrange(year, month_index + 1)[1]


def clamp_day_of_month(day: int, year: int, month_index: int) -> int:
    """
    Clamp a configured day to one that exists in the target month.

    Day 31 in April gives 30, day 29-31 in February gives 28 or 29.
    """
    return max(1, min(day, last_day_of_month(year, month_index)))


def clamped_date(year: int, month_index: int, day: int) -> date:
    """Build a date, clamping `day` to the month's last day."""
    return date(year, month_index + 1, clamp_day_of_month(day, year, month_index))


def add_months(d: date, n: int) -> date:
    """Add n months to d, clamping the day to the target month's end."""
    month = d.month - 1 + n
    year = d.year + month // 12
    return clamped_date(year, month % 12, d.day)


def month_bounds(year: int, month_index: int) -> tuple[date, date]:
    """First and last day of a month."""
    return (
        date(year, month_index + 1, 1),
        date(year, month_index + 1, last_day_of_month(year, month_index)),
    )


def month_starts(start: date, end: date) -> list[date]:
    """First day of every month overlapping [start, end]."""
    months = []
    current = date(start.year, start.month, 1)
    while current <= end:
        months.append(current)
        current = add_months(current, 1)
    return months


def months_between(start: date, end: date) -> Decimal:
    """
    Calendar months from start to end as a fraction.

    Whole months are counted by stepping from `start` (with month-end
    clamping); the remainder is the share of the next month's length.
    """
    if end <= start:
        return Decimal(0)

    whole = (end.year - start.year) * 12 + (end.month - start.month)
    while whole > 0 and add_months(start, whole) > end:
        whole -= 1

    stepped = add_months(start, whole)
    if stepped == end:
        return Decimal(whole)

    following = add_months(start, whole + 1)
    remainder = Decimal((end - stepped).days) / Decimal((following - stepped).days)
    return Decimal(whole) + remainder


def sunday_based_weekday(d: date) -> int:
    """Week day of d with 0 = Sunday ... 6 = Saturday."""
    return (d.weekday() + 1) % 7


def first_weekday_on_or_after(d: date, day_of_week: int) -> date:
    """First date >= d falling on `day_of_week` (0 = Sunday)."""
    return d + timedelta(days=(day_of_week - sunday_based_weekday(d)) % 7)


def years_spanned(start: date, end: date) -> int:
    """Whole calendar years between two dates, rounded down."""
    if end <= start:
        return 0
    years = end.year - start.year
    if (end.month, end.day) < (start.month, start.day):
        years -= 1
    return years
