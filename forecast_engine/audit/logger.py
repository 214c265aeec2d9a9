"""
Audit Logger

Every anomaly the engine recovers from is reported here. The engine
keeps calculating; the audit logger is how the problem stays visible.

The audit logger:
- Is synchronous (the engine has no suspension points)
- Keeps the most recent events in a bounded in-memory buffer
- Forwards events to an optional sink
- Never lets a sink failure reach the caller
"""

import logging
from abc import ABC, abstractmethod
from collections import deque
from typing import Optional

import structlog

from forecast_engine.config import EngineSettings, get_settings
from forecast_engine.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


def configure_structlog(log_format: str = "json") -> None:
    """Configure structlog processors only; stdlib handlers are left alone."""
    renderer = (
        structlog.dev.ConsoleRenderer()
        if log_format == "console"
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(settings: Optional[EngineSettings] = None) -> None:
    """
    Set up stdlib output and levels for an application using the engine.

    Not called on import: a host application owns its root logger and
    calls this explicitly if it wants the engine's defaults.
    """
    settings = settings or get_settings()

    logging.basicConfig(format="%(message)s", level=settings.effective_log_level)
    logging.getLogger("forecast_engine").setLevel(settings.effective_log_level)
    configure_structlog(settings.log_format)


configure_structlog(get_settings().log_format)


class AuditSink(ABC):
    """
    Somewhere audit events can be forwarded to.

    Implementations live outside the engine (UI debug panel, file,
    telemetry). The engine only ever appends.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> None:
        """Store one audit event."""
        pass


class InMemoryAuditSink(AuditSink):
    """Unbounded list-backed sink, mostly for tests and debugging."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> None:
        self.events.append(event)


class AuditLogger:
    """
    Observability collaborator for the engine.

    Logs events both to:
    1. Structured local log (structlog)
    2. An optional sink
    """

    def __init__(
        self,
        sink: Optional[AuditSink] = None,
        buffer_size: Optional[int] = None,
    ):
        """
        Initialize audit logger.

        Args:
            sink: Where events are forwarded. If None, only logs locally.
            buffer_size: How many recent events to keep in memory.
                         Defaults to the configured audit_buffer_size.
        """
        self._sink = sink
        self._buffer: deque[AuditEvent] = deque(
            maxlen=buffer_size or get_settings().audit_buffer_size
        )
        self._logger = structlog.get_logger("forecast_engine.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Record an audit event.

        Returns True if the sink accepted it (or no sink is configured).
        """
        self._buffer.append(event)

        log_dict = event.to_log_dict()
        if event.severity == AuditSeverity.ERROR:
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.INFO:
            self._logger.info("audit_event", **log_dict)
        else:
            self._logger.debug("audit_event", **log_dict)

        if self._sink:
            try:
                self._sink.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_sink_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def recent_events(self) -> list[AuditEvent]:
        """Most recent events, oldest first."""
        return list(self._buffer)

    def clear(self) -> None:
        self._buffer.clear()

    def log_anchor_defaulted(
        self,
        rule_id: str,
        cadence: str,
        substitutions: dict[str, int],
        issues: list[str],
    ) -> None:
        """Log that a rule expanded with default anchor values."""
        self.log(AuditEventBuilder.anchor_defaulted(
            rule_id=rule_id,
            cadence=cadence,
            substitutions=substitutions,
            issues=issues,
        ))

    def log_unknown_cadence(self, entity_id: Optional[str], cadence) -> None:
        self.log(AuditEventBuilder.unknown_cadence(entity_id=entity_id, cadence=cadence))

    def log_amount_coerced(self, entity_type: str, entity_id: str) -> None:
        """Log that an invalid amount was read as zero."""
        self.log(AuditEventBuilder.amount_coerced(
            entity_type=entity_type,
            entity_id=entity_id,
        ))

    def log_rate_coerced(self, goal_id: str, annual_rate: str, effective_from: str) -> None:
        self.log(AuditEventBuilder.rate_coerced(
            goal_id=goal_id,
            annual_rate=annual_rate,
            effective_from=effective_from,
        ))

    def log_empty_window(
        self,
        window_start: str,
        window_end: str,
        entity_id: Optional[str] = None,
    ) -> None:
        self.log(AuditEventBuilder.empty_window(
            window_start=window_start,
            window_end=window_end,
            entity_id=entity_id,
        ))

    def log_large_window(self, window_start: str, window_end: str, max_years: int) -> None:
        self.log(AuditEventBuilder.large_window(
            window_start=window_start,
            window_end=window_end,
            max_years=max_years,
        ))

    def log_invalid_input(self, operation: str, error_message: str) -> None:
        """Log input the facade could not interpret at all."""
        self.log(AuditEventBuilder.invalid_input(
            operation=operation,
            error_message=error_message,
        ))

    def log_schedule_gap(self, goal_id: str, segment_start: str, fallback: str) -> None:
        self.log(AuditEventBuilder.schedule_gap(
            goal_id=goal_id,
            segment_start=segment_start,
            fallback=fallback,
        ))

    def log_large_schedule(self, goal_id: str, entries: int, threshold: int) -> None:
        self.log(AuditEventBuilder.large_schedule(
            goal_id=goal_id,
            entries=entries,
            threshold=threshold,
        ))


_default_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """Process-wide audit logger used when none is passed in."""
    global _default_logger
    if _default_logger is None:
        _default_logger = AuditLogger()
    return _default_logger
