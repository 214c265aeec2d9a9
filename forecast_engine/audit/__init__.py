"""Audit logging package."""

from forecast_engine.audit.logger import (
    AuditLogger,
    AuditSink,
    InMemoryAuditSink,
    configure_logging,
    configure_structlog,
    get_audit_logger,
)

__all__ = [
    "AuditLogger",
    "AuditSink",
    "InMemoryAuditSink",
    "configure_logging",
    "configure_structlog",
    "get_audit_logger",
]
