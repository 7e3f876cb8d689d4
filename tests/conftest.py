from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from jobtrack.config import Settings, get_settings
from jobtrack.db import session as db_session
from jobtrack.main import create_app
from jobtrack.observability.channel import InMemoryChannel
from jobtrack.observability.metrics import InMemoryMetrics, PerformanceMetric, PerformanceMonitor
from jobtrack.observability.security import SecurityEventLogger
from jobtrack.observability.telemetry import Telemetry


@dataclass
class RecordedLog:
    level: str
    message: str
    context: dict[str, Any] = field(default_factory=dict)
    category: str = "app"


class RecordingLogger:
    """Stands in for StructuredLogger; keeps every call in memory."""

    def __init__(self) -> None:
        self.records: list[RecordedLog] = []
        self.breadcrumbs: list[tuple[str, str, dict[str, Any], str]] = []
        self.alerts: list[tuple[str, str]] = []

    def log(self, level: str, message: str, context: Any = None, *, category: str = "app") -> None:
        self.records.append(RecordedLog(level, message, dict(context or {}), category))

    def debug(self, message: str, context: Any = None) -> None:
        self.log("debug", message, context)

    def info(self, message: str, context: Any = None) -> None:
        self.log("info", message, context)

    def warn(self, message: str, context: Any = None) -> None:
        self.log("warn", message, context)

    def error(self, message: str, context: Any = None) -> None:
        self.log("error", message, context)

    def breadcrumb(self, category: str, message: str, data: Any = None, level: str = "info") -> None:
        self.breadcrumbs.append((category, message, dict(data or {}), level))

    def alert(self, message: str, level: str = "warning") -> None:
        self.alerts.append((message, level))

    def find(self, message: str, level: str | None = None) -> list[RecordedLog]:
        return [r for r in self.records if r.message == message and (level is None or r.level == level)]


class RecordingSink:
    def __init__(self) -> None:
        self.metrics: list[PerformanceMetric] = []

    def write(self, metric: PerformanceMetric) -> None:
        self.metrics.append(metric)

    def named(self, name: str) -> list[PerformanceMetric]:
        return [m for m in self.metrics if m.name == name]


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'jobtrack.db'}")
    monkeypatch.setenv("RATE_LIMIT_MAX_REQUESTS", "1000")
    monkeypatch.setenv("JWT_SECRET", "test-secret-with-enough-length-for-hs256")
    monkeypatch.delenv("SENTRY_DSN", raising=False)
    monkeypatch.delenv("ENABLE_METRICS_ENDPOINT", raising=False)
    get_settings.cache_clear()
    db_session._engine_for.cache_clear()

    yield

    get_settings.cache_clear()
    db_session._engine_for.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def metric_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def channel() -> InMemoryChannel:
    return InMemoryChannel()


@pytest.fixture
def telemetry(recording_logger: RecordingLogger, metric_sink: RecordingSink) -> Telemetry:
    monitor = PerformanceMonitor(recording_logger, metric_sink)
    return Telemetry(
        logger=recording_logger,
        monitor=monitor,
        security=SecurityEventLogger(recording_logger),
        metrics=InMemoryMetrics(),
    )


@pytest.fixture
def app(settings: Settings, telemetry: Telemetry) -> FastAPI:
    application = create_app(settings, telemetry)

    @application.get("/api/jobs")
    async def list_jobs() -> list[dict[str, str]]:
        return [{"id": "1", "company": "Acme"}]

    @application.get("/api/boom")
    async def boom() -> None:
        raise RuntimeError("handler exploded")

    return application


@pytest.fixture
async def api_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
