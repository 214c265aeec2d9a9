"""
Audit Models for the Forecast Engine

The engine never fails a calculation because of bad input. Instead it
substitutes a safe value and records what it did as an audit event, so
the anomaly stays visible to whoever is observing the engine.

Audit events are append-only. They are never modified after creation.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of anomalies the engine reports.

    Each recoverable failure class has its own event type.
    """
    # Invalid rule configuration (cadence/anchor mismatch)
    RULE_ANCHOR_DEFAULTED = "rule_anchor_defaulted"
    UNKNOWN_CADENCE = "unknown_cadence"

    # Bad numeric input
    AMOUNT_COERCED = "amount_coerced"
    RATE_COERCED = "rate_coerced"

    # Windows
    EMPTY_WINDOW = "empty_window"
    LARGE_WINDOW = "large_window"
    INVALID_INPUT = "invalid_input"

    # Interest schedules
    SCHEDULE_GAP = "schedule_gap"
    LARGE_SCHEDULE = "large_schedule"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """A single reported anomaly."""

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event was recorded (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'rule', 'savings_goal', 'window')"
    )
    entity_id: Optional[str] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.anchor_defaulted(rule_id, "monthly", issues)
        event = AuditEventBuilder.empty_window(start, end)
    """

    @staticmethod
    def anchor_defaulted(
        rule_id: str,
        cadence: str,
        substitutions: dict[str, int],
        issues: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RULE_ANCHOR_DEFAULTED,
            severity=AuditSeverity.WARNING,
            entity_type="rule",
            entity_id=rule_id,
            description=f"Rule {rule_id} has an invalid {cadence} anchor; defaults substituted",
            details={
                "cadence": cadence,
                "substitutions": substitutions,
                "issues": issues,
            },
        )

    @staticmethod
    def unknown_cadence(
        entity_id: Optional[str],
        cadence: Any,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.UNKNOWN_CADENCE,
            severity=AuditSeverity.WARNING,
            entity_type="rule",
            entity_id=entity_id,
            description=f"Unknown cadence {cadence!r}; rule contributes nothing",
            details={"cadence": repr(cadence)},
        )

    @staticmethod
    def amount_coerced(
        entity_type: str,
        entity_id: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AMOUNT_COERCED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"Invalid amount on {entity_type} {entity_id} was read as 0",
        )

    @staticmethod
    def rate_coerced(
        goal_id: str,
        annual_rate: str,
        effective_from: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RATE_COERCED,
            severity=AuditSeverity.WARNING,
            entity_type="savings_goal",
            entity_id=goal_id,
            description=f"Negative interest rate {annual_rate}% on goal {goal_id} treated as 0%",
            details={
                "annual_rate": annual_rate,
                "effective_from": effective_from,
            },
        )

    @staticmethod
    def empty_window(
        window_start: str,
        window_end: str,
        entity_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EMPTY_WINDOW,
            severity=AuditSeverity.DEBUG,
            entity_type="window",
            entity_id=entity_id,
            description=f"Window {window_start}..{window_end} is empty",
            details={
                "window_start": window_start,
                "window_end": window_end,
            },
        )

    @staticmethod
    def large_window(
        window_start: str,
        window_end: str,
        max_years: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LARGE_WINDOW,
            severity=AuditSeverity.INFO,
            entity_type="window",
            description=(
                f"Window {window_start}..{window_end} spans more than {max_years} years"
            ),
            details={
                "window_start": window_start,
                "window_end": window_end,
                "max_years": max_years,
            },
        )

    @staticmethod
    def invalid_input(
        operation: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVALID_INPUT,
            severity=AuditSeverity.WARNING,
            description=f"Invalid input to {operation}; returning empty result",
            details={
                "operation": operation,
                "error_message": error_message,
            },
        )

    @staticmethod
    def schedule_gap(
        goal_id: str,
        segment_start: str,
        fallback: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SCHEDULE_GAP,
            severity=AuditSeverity.INFO,
            entity_type="savings_goal",
            entity_id=goal_id,
            description=f"No scheduled rate for goal {goal_id} from {segment_start}; using {fallback}",
            details={
                "segment_start": segment_start,
                "fallback": fallback,
            },
        )

    @staticmethod
    def large_schedule(
        goal_id: str,
        entries: int,
        threshold: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LARGE_SCHEDULE,
            severity=AuditSeverity.INFO,
            entity_type="savings_goal",
            entity_id=goal_id,
            description=f"Interest schedule for goal {goal_id} has {entries} entries",
            details={
                "entries": entries,
                "threshold": threshold,
            },
        )
