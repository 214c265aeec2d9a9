"""
Rule Expander

Turns one recurring rule into the ordered occurrence dates inside a
query window. Both window bounds are inclusive.

An occurrence is emitted only when it is:
1. Inside the query window
2. Inside the rule's validity window [start_date, end_date]
3. Not listed in the rule's excluded_dates

Weekly and fortnightly series are anchored to a fixed date that does
not depend on the query window, so fortnightly parity is stable:
- the first anchor weekday on or after the rule's start_date, or
- the first anchor weekday on or after FORTNIGHT_REFERENCE_DATE when
  the rule has no start_date
Occurrences are then anchor + k * step for every integer k.

Monthly, quarterly and yearly occurrences clamp a day that does not
exist in the target month to that month's last day.
"""

from datetime import date, timedelta
from typing import Optional, Union

import structlog

from forecast_engine.audit import AuditLogger, get_audit_logger
from forecast_engine.config import EngineSettings, get_settings
from forecast_engine.expansion.cadence import (
    clamped_date,
    first_weekday_on_or_after,
    years_spanned,
)
from forecast_engine.models.rules import BudgetRule, Cadence, CadenceAnchor, ForecastRule
from forecast_engine.validation import RuleValidator


logger = structlog.get_logger(__name__)

Rule = Union[BudgetRule, ForecastRule]

# A Sunday. Changing this shifts every fortnightly rule without a start_date.
FORTNIGHT_REFERENCE_DATE = date(1970, 1, 4)

WEEK_STEPS: dict[Cadence, int] = {
    Cadence.WEEKLY: 7,
    Cadence.FORTNIGHTLY: 14,
}


class RuleExpander:
    """
    Expands recurring rules into occurrence dates.

    Holds no state between calls: the same rule and window always
    produce the same dates.
    """

    def __init__(
        self,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[RuleValidator] = None,
        settings: Optional[EngineSettings] = None,
    ):
        self._audit_logger = audit_logger or get_audit_logger()
        self._validator = validator or RuleValidator()
        self._settings = settings or get_settings()

    def expand(self, rule: Rule, window_start: date, window_end: date) -> list[date]:
        """
        Occurrence dates of `rule` inside [window_start, window_end].

        Never raises for a malformed rule: missing or invalid anchors
        are replaced by defaults and reported as warnings.
        """
        if window_start > window_end:
            self._audit_logger.log_empty_window(
                window_start=window_start.isoformat(),
                window_end=window_end.isoformat(),
                entity_id=rule.id,
            )
            return []

        if years_spanned(window_start, window_end) > self._settings.max_window_years:
            self._audit_logger.log_large_window(
                window_start=window_start.isoformat(),
                window_end=window_end.isoformat(),
                max_years=self._settings.max_window_years,
            )

        effective_start = max(window_start, rule.start_date) if rule.start_date else window_start
        effective_end = min(window_end, rule.end_date) if rule.end_date else window_end
        if effective_start > effective_end:
            return []

        anchor, validation = self._validator.resolve_anchor(rule)
        if validation.has_warnings:
            self._audit_logger.log_anchor_defaulted(
                rule_id=rule.id,
                cadence=rule.cadence.value,
                substitutions=validation.substitutions,
                issues=[issue.message for issue in validation.issues],
            )

        if rule.cadence in WEEK_STEPS:
            candidates = self._weekly_dates(rule, anchor, effective_start, effective_end)
        elif rule.cadence == Cadence.MONTHLY:
            candidates = self._monthly_dates(anchor, effective_start, effective_end)
        elif rule.cadence == Cadence.QUARTERLY:
            candidates = self._quarterly_dates(anchor, effective_start, effective_end)
        else:
            candidates = self._yearly_dates(anchor, effective_start, effective_end)

        excluded = rule.excluded_dates
        dates = [
            d for d in candidates
            if effective_start <= d <= effective_end and d not in excluded
        ]

        logger.debug(
            "rule_expanded",
            rule_id=rule.id,
            cadence=rule.cadence.value,
            occurrences=len(dates),
        )
        return dates

    def series_anchor(self, rule: Rule, day_of_week: int) -> date:
        """First date of a weekly/fortnightly series, independent of any window."""
        return first_weekday_on_or_after(
            rule.start_date or FORTNIGHT_REFERENCE_DATE,
            day_of_week,
        )

    def _weekly_dates(
        self,
        rule: Rule,
        anchor: CadenceAnchor,
        start: date,
        end: date,
    ) -> list[date]:
        step = WEEK_STEPS[rule.cadence]
        series_start = self.series_anchor(rule, anchor.day_of_week)

        # Smallest k with series_start + k*step >= start (k may be negative)
        offset = (start - series_start).days
        k = -(-offset // step)
        current = series_start + timedelta(days=k * step)

        dates = []
        while current <= end:
            dates.append(current)
            current += timedelta(days=step)
        return dates

    def _monthly_dates(self, anchor: CadenceAnchor, start: date, end: date) -> list[date]:
        dates = []
        year, month_index = start.year, start.month - 1
        while (year, month_index) <= (end.year, end.month - 1):
            dates.append(clamped_date(year, month_index, anchor.day_of_month))
            month_index += 1
            if month_index > 11:
                year, month_index = year + 1, 0
        return dates

    def _quarterly_dates(self, anchor: CadenceAnchor, start: date, end: date) -> list[date]:
        dates = []
        year, quarter = start.year, (start.month - 1) // 3
        while (year, quarter * 3) <= (end.year, end.month - 1):
            month_index = quarter * 3 + anchor.month_of_quarter
            dates.append(clamped_date(year, month_index, anchor.day_of_month))
            quarter += 1
            if quarter > 3:
                year, quarter = year + 1, 0
        return dates

    def _yearly_dates(self, anchor: CadenceAnchor, start: date, end: date) -> list[date]:
        return [
            clamped_date(year, anchor.month_of_year, anchor.day_of_month)
            for year in range(start.year, end.year + 1)
        ]
