"""
Data Models Package

This package contains all Pydantic models used by the forecast engine.
All data flowing into and out of the engine conforms to these schemas.
"""

from forecast_engine.models.rules import (
    BudgetRule,
    Cadence,
    CadenceAnchor,
    EventType,
    ForecastRule,
    ForecastType,
    OneOffEvent,
    RecurringRule,
    RuleKind,
    coerce_amount_cents,
    parse_rule,
)
from forecast_engine.models.savings import (
    CompoundingFrequency,
    InterestRateEntry,
    SavingsGoal,
)
from forecast_engine.models.events import (
    UNCATEGORIZED,
    BudgetStatus,
    CategoryDelta,
    EventSourceType,
    ExpandedEvent,
    MonthSummary,
    PeriodTotals,
    ScenarioDelta,
    ScenarioMetric,
    ScenarioTotals,
    YearSummary,
)
from forecast_engine.models.validation import (
    ValidationIssue,
    ValidationResult,
)
from forecast_engine.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Rule models
    "BudgetRule",
    "Cadence",
    "CadenceAnchor",
    "EventType",
    "ForecastRule",
    "ForecastType",
    "OneOffEvent",
    "RecurringRule",
    "RuleKind",
    "coerce_amount_cents",
    "parse_rule",
    # Savings models
    "CompoundingFrequency",
    "InterestRateEntry",
    "SavingsGoal",
    # Output models
    "UNCATEGORIZED",
    "BudgetStatus",
    "CategoryDelta",
    "EventSourceType",
    "ExpandedEvent",
    "MonthSummary",
    "PeriodTotals",
    "ScenarioDelta",
    "ScenarioMetric",
    "ScenarioTotals",
    "YearSummary",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
