"""Shared fixtures for forecast engine tests."""

import pytest

from forecast_engine.audit import AuditLogger, InMemoryAuditSink
from forecast_engine.config import EngineSettings


@pytest.fixture
def sink():
    return InMemoryAuditSink()


@pytest.fixture
def audit_logger(sink):
    return AuditLogger(sink=sink, buffer_size=100)


@pytest.fixture
def settings():
    return EngineSettings()
