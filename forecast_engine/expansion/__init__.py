"""Rule expansion package: cadence math, expander and materializer."""

from forecast_engine.expansion.cadence import (
    OCCURRENCES_PER_YEAR,
    add_months,
    clamp_day_of_month,
    last_day_of_month,
    month_bounds,
    month_starts,
    months_between,
    monthly_equivalent,
    parse_calendar_date,
    period_equivalent,
    round_half_up,
    to_cadence,
)
from forecast_engine.expansion.expander import (
    FORTNIGHT_REFERENCE_DATE,
    RuleExpander,
)
from forecast_engine.expansion.materializer import (
    materialize,
    materialize_one_off,
)

__all__ = [
    # Cadence math
    "OCCURRENCES_PER_YEAR",
    "add_months",
    "clamp_day_of_month",
    "last_day_of_month",
    "month_bounds",
    "month_starts",
    "months_between",
    "monthly_equivalent",
    "parse_calendar_date",
    "period_equivalent",
    "round_half_up",
    "to_cadence",
    # Expansion
    "FORTNIGHT_REFERENCE_DATE",
    "RuleExpander",
    "materialize",
    "materialize_one_off",
]
