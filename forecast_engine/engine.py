"""
Forecast Engine Facade

This module ties the components together and defines the operations
callers use:
1. Rule expansion (rule -> occurrence dates -> expanded events)
2. Interest projection (goal + principal -> interest events)
3. Aggregation (events -> period totals, month summaries)
4. Scenario comparison (two rule sets -> monthly deltas)

DESIGN DECISION: The facade is the boundary where loose input meets the
engine. Dates may arrive as YYYY-MM-DD strings, rules as plain dicts and
amounts as anything at all. Whatever cannot be interpreted is reported
to the audit logger and answered with an empty, best-effort result.
Nothing here raises for bad data.

The engine caches nothing. Callers that memoise expansion should key on
cache_key(rule, start, end).
"""

from datetime import date
from typing import Any, Iterable, Optional, Union

import structlog
from pydantic import ValidationError

from forecast_engine.aggregation import PeriodAggregator
from forecast_engine.audit import AuditLogger, get_audit_logger
from forecast_engine.config import EngineSettings, get_settings
from forecast_engine.exceptions import ForecastEngineError, UnknownCadenceError
from forecast_engine.expansion import (
    RuleExpander,
    materialize,
    materialize_one_off,
    parse_calendar_date,
    to_cadence,
)
from forecast_engine.interest import InterestProjector
from forecast_engine.models.events import (
    CategoryDelta,
    ExpandedEvent,
    MonthSummary,
    PeriodTotals,
    ScenarioDelta,
    ScenarioMetric,
)
from forecast_engine.models.rules import (
    BudgetRule,
    ForecastRule,
    OneOffEvent,
    coerce_amount_cents,
    parse_rule,
)
from forecast_engine.models.savings import SavingsGoal
from forecast_engine.scenarios import ScenarioDiffEngine
from forecast_engine.validation import RuleValidator


logger = structlog.get_logger(__name__)

Rule = Union[BudgetRule, ForecastRule]
DateInput = Union[str, date]


class ForecastEngine:
    """
    Entry point for every engine operation.

    Holds collaborators only; no state carries over between calls.
    """

    def __init__(
        self,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[EngineSettings] = None,
    ):
        self._settings = settings or get_settings()
        self._audit_logger = audit_logger or get_audit_logger()
        self._validator = RuleValidator()
        self._expander = RuleExpander(
            audit_logger=self._audit_logger,
            validator=self._validator,
            settings=self._settings,
        )
        self._projector = InterestProjector(
            audit_logger=self._audit_logger,
            settings=self._settings,
        )
        self._aggregator = PeriodAggregator()
        self._scenarios = ScenarioDiffEngine()

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit_logger

    # =========================================================================
    # EXPANSION
    # =========================================================================

    def expand_rule(
        self,
        rule: Union[Rule, dict],
        start: DateInput,
        end: DateInput,
    ) -> list[ExpandedEvent]:
        """
        Expand one rule into dated events inside [start, end].

        Args:
            rule: A BudgetRule/ForecastRule, or a dict with a `kind` tag
            start: Window start, date or YYYY-MM-DD (inclusive)
            end: Window end, date or YYYY-MM-DD (inclusive)

        Returns:
            Events in date order; empty when the input can't be read
        """
        try:
            window_start = parse_calendar_date(start)
            window_end = parse_calendar_date(end)
        except ForecastEngineError as e:
            self._audit_logger.log_invalid_input("expand_rule", str(e))
            return []

        rule = self._read_rule(rule)
        if rule is None:
            return []

        if rule.amount_was_coerced:
            self._audit_logger.log_amount_coerced(f"{rule.rule_kind.value}_rule", rule.id)

        dates = self._expander.expand(rule, window_start, window_end)
        return materialize(rule, dates)

    def expand_rules(
        self,
        rules: Iterable[Union[Rule, dict]],
        start: DateInput,
        end: DateInput,
    ) -> list[ExpandedEvent]:
        """Expand several rules; events sorted by date, then source id."""
        events = []
        for rule in rules:
            events.extend(self.expand_rule(rule, start, end))
        return sorted(events, key=lambda e: (e.date, e.source_id))

    def materialize_one_off(
        self,
        events: Iterable[OneOffEvent],
        start: DateInput,
        end: DateInput,
    ) -> list[ExpandedEvent]:
        """Expanded events for one-off forecast items dated inside [start, end]."""
        try:
            window_start = parse_calendar_date(start)
            window_end = parse_calendar_date(end)
        except ForecastEngineError as e:
            self._audit_logger.log_invalid_input("materialize_one_off", str(e))
            return []

        events = list(events)
        for event in events:
            if event.amount_was_coerced:
                self._audit_logger.log_amount_coerced("one_off_event", event.id)

        return sorted(
            materialize_one_off(events, window_start, window_end),
            key=lambda e: (e.date, e.source_id),
        )

    def cache_key(self, rule: Rule, start: DateInput, end: DateInput) -> tuple:
        """Memoisation key for an expansion: (rule id, last modified, start, end)."""
        return (rule.id, rule.updated_at, _date_key(start), _date_key(end))

    # =========================================================================
    # INTEREST
    # =========================================================================

    def project_interest(
        self,
        goal: Union[SavingsGoal, dict],
        principal: Any,
        start: DateInput,
        end: DateInput,
    ) -> list[ExpandedEvent]:
        """
        Interest events for `goal` on `principal` cents over [start, end].

        `goal` may be a SavingsGoal or a plain dict; a dict that can't be
        read gives []. An unreadable principal is projected as 0 and
        reported.
        """
        try:
            from_date = parse_calendar_date(start)
            to_date = parse_calendar_date(end)
        except ForecastEngineError as e:
            self._audit_logger.log_invalid_input("project_interest", str(e))
            return []

        goal = self._read_goal(goal)
        if goal is None:
            return []

        principal_cents, coerced = coerce_amount_cents(principal)
        if coerced:
            self._audit_logger.log_amount_coerced("savings_principal", goal.id)

        return self._projector.project_over_schedule(goal, principal_cents, from_date, to_date)

    # =========================================================================
    # AGGREGATION
    # =========================================================================

    def aggregate(
        self,
        events: Iterable[ExpandedEvent],
        start: DateInput,
        end: DateInput,
        known_keys: Optional[set[str]] = None,
    ) -> PeriodTotals:
        """Totals by type and by (type, category/goal) for [start, end]."""
        try:
            period_start = parse_calendar_date(start)
            period_end = parse_calendar_date(end)
        except ForecastEngineError as e:
            self._audit_logger.log_invalid_input("aggregate", str(e))
            return PeriodTotals()

        if period_start > period_end:
            self._audit_logger.log_empty_window(
                window_start=period_start.isoformat(),
                window_end=period_end.isoformat(),
            )

        return self._aggregator.aggregate(events, period_start, period_end, known_keys)

    def summarize_months(
        self,
        events: Iterable[ExpandedEvent],
        start: DateInput,
        end: DateInput,
        as_of: DateInput,
    ) -> list[MonthSummary]:
        """Month-by-month trend of [start, end] relative to `as_of`."""
        try:
            first = parse_calendar_date(start)
            last = parse_calendar_date(end)
            reference = parse_calendar_date(as_of)
        except ForecastEngineError as e:
            self._audit_logger.log_invalid_input("summarize_months", str(e))
            return []

        return self._aggregator.summarize_months(events, first, last, reference)

    # =========================================================================
    # SCENARIOS
    # =========================================================================

    def diff_scenarios(
        self,
        baseline: Iterable[Union[Rule, dict]],
        adjusted: Iterable[Union[Rule, dict]],
        metric: Union[ScenarioMetric, str],
        as_of: Optional[DateInput] = None,
    ) -> int:
        """
        Signed monthly delta (adjusted - baseline) for `metric`.

        Returns 0 when the metric or `as_of` can't be read.
        """
        try:
            metric = ScenarioMetric(metric)
            reference = parse_calendar_date(as_of) if as_of is not None else None
        except (ForecastEngineError, ValueError) as e:
            self._audit_logger.log_invalid_input("diff_scenarios", str(e))
            return 0

        return self._scenarios.diff(
            self._read_rules(baseline),
            self._read_rules(adjusted),
            metric,
            reference,
        )

    def diff_all(
        self,
        baseline: Iterable[Union[Rule, dict]],
        adjusted: Iterable[Union[Rule, dict]],
        as_of: Optional[DateInput] = None,
    ) -> list[ScenarioDelta]:
        """Deltas for every metric; [] when `as_of` can't be read."""
        try:
            reference = parse_calendar_date(as_of) if as_of is not None else None
        except ForecastEngineError as e:
            self._audit_logger.log_invalid_input("diff_all", str(e))
            return []

        return self._scenarios.diff_all(
            self._read_rules(baseline),
            self._read_rules(adjusted),
            reference,
        )

    def category_deltas(
        self,
        baseline: Iterable[Union[Rule, dict]],
        adjusted: Iterable[Union[Rule, dict]],
        as_of: Optional[DateInput] = None,
    ) -> list[CategoryDelta]:
        try:
            reference = parse_calendar_date(as_of) if as_of is not None else None
        except ForecastEngineError as e:
            self._audit_logger.log_invalid_input("category_deltas", str(e))
            return []

        return self._scenarios.category_deltas(
            self._read_rules(baseline),
            self._read_rules(adjusted),
            reference,
        )

    # =========================================================================
    # INPUT HANDLING
    # =========================================================================

    def _read_rule(self, rule: Union[Rule, dict]) -> Optional[Rule]:
        """Accept a rule model or a tagged dict; None if it can't be read."""
        if isinstance(rule, (BudgetRule, ForecastRule)):
            return rule
        try:
            return parse_rule(rule)
        except ValidationError as e:
            rule_id = rule.get("id") if isinstance(rule, dict) else None
            logger.debug("rule_unreadable", rule_id=rule_id, errors=e.error_count())

            cadence = rule.get("cadence") if isinstance(rule, dict) else None
            if cadence is not None:
                try:
                    to_cadence(cadence)
                except UnknownCadenceError:
                    self._audit_logger.log_unknown_cadence(rule_id, cadence)
                    return None

            self._audit_logger.log_invalid_input(
                "read_rule",
                f"rule {rule_id!r}: {e.error_count()} validation error(s)",
            )
            return None

    def _read_rules(self, rules: Iterable[Union[Rule, dict]]) -> list[Rule]:
        readable = (self._read_rule(rule) for rule in rules)
        return [rule for rule in readable if rule is not None]

    def _read_goal(self, goal: Union[SavingsGoal, dict]) -> Optional[SavingsGoal]:
        """Accept a goal model or a plain dict; None if it can't be read."""
        if isinstance(goal, SavingsGoal):
            return goal
        try:
            return SavingsGoal.model_validate(goal)
        except ValidationError as e:
            goal_id = goal.get("id") if isinstance(goal, dict) else None
            self._audit_logger.log_invalid_input(
                "read_goal",
                f"goal {goal_id!r}: {e.error_count()} validation error(s)",
            )
            return None


def _date_key(value: DateInput) -> str:
    return value.isoformat() if isinstance(value, date) else str(value).strip()


# =============================================================================
# MODULE-LEVEL SHORTCUTS
# =============================================================================

_default_engine: Optional[ForecastEngine] = None


def get_engine() -> ForecastEngine:
    """Process-wide engine used by the module-level shortcuts."""
    global _default_engine
    if _default_engine is None:
        _default_engine = ForecastEngine()
    return _default_engine


def expand_rule(rule: Union[Rule, dict], start: DateInput, end: DateInput) -> list[ExpandedEvent]:
    return get_engine().expand_rule(rule, start, end)


def project_interest(
    goal: Union[SavingsGoal, dict],
    principal: Any,
    start: DateInput,
    end: DateInput,
) -> list[ExpandedEvent]:
    return get_engine().project_interest(goal, principal, start, end)


def aggregate(
    events: Iterable[ExpandedEvent],
    start: DateInput,
    end: DateInput,
    known_keys: Optional[set[str]] = None,
) -> PeriodTotals:
    return get_engine().aggregate(events, start, end, known_keys)


def diff_scenarios(
    baseline: Iterable[Union[Rule, dict]],
    adjusted: Iterable[Union[Rule, dict]],
    metric: Union[ScenarioMetric, str],
    as_of: Optional[DateInput] = None,
) -> int:
    return get_engine().diff_scenarios(baseline, adjusted, metric, as_of)
