"""Interfaces the telemetry services depend on.

Every service receives its collaborators through its constructor, so tests and
alternative deployments substitute any object that satisfies these protocols.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Literal, Protocol, runtime_checkable

if TYPE_CHECKING:
    from jobtrack.observability.metrics import PerformanceMetric


LogLevel = Literal["debug", "info", "warn", "error"]
LogContext = Mapping[str, Any]

# Sentry severity names.
ChannelLevel = Literal["debug", "info", "warning", "error", "fatal"]


@runtime_checkable
class MonitoringChannelPort(Protocol):
    """External error-tracking service receiving breadcrumbs and alerts."""

    def add_breadcrumb(self, *, category: str, message: str, level: ChannelLevel, data: Mapping[str, Any]) -> None: ...

    def capture_message(self, message: str, level: ChannelLevel) -> None: ...


@runtime_checkable
class MetricsSinkPort(Protocol):
    """Receives performance metrics; aggregation and storage are the sink's concern."""

    def write(self, metric: PerformanceMetric) -> None: ...


@runtime_checkable
class LoggerPort(Protocol):
    def log(self, level: LogLevel, message: str, context: LogContext | None = None, *, category: str = "app") -> None: ...

    def debug(self, message: str, context: LogContext | None = None) -> None: ...

    def info(self, message: str, context: LogContext | None = None) -> None: ...

    def warn(self, message: str, context: LogContext | None = None) -> None: ...

    def error(self, message: str, context: LogContext | None = None) -> None: ...

    def breadcrumb(self, category: str, message: str, data: LogContext | None = None, level: ChannelLevel = "info") -> None: ...

    def alert(self, message: str, level: ChannelLevel = "warning") -> None: ...


@runtime_checkable
class MetricsPort(Protocol):
    def track_metric(self, metric: PerformanceMetric) -> None: ...
