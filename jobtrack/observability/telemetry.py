from __future__ import annotations

from dataclasses import dataclass

from jobtrack.config import Settings
from jobtrack.observability.channel import SentryChannel
from jobtrack.observability.logging import StructuredLogger
from jobtrack.observability.metrics import InMemoryMetrics, PerformanceMonitor
from jobtrack.observability.ports import LoggerPort, MetricsSinkPort, MonitoringChannelPort
from jobtrack.observability.security import SecurityEventLogger


@dataclass(frozen=True)
class Telemetry:
    """The telemetry services handed to middleware and request handlers."""

    logger: LoggerPort
    monitor: PerformanceMonitor
    security: SecurityEventLogger
    metrics: InMemoryMetrics | None = None


def build_telemetry(
    settings: Settings,
    channel: MonitoringChannelPort | None = None,
    sink: MetricsSinkPort | None = None,
) -> Telemetry:
    """Wire logger, monitor and security logger from settings.

    Defaults: Sentry as the monitoring channel and an ``InMemoryMetrics`` sink.
    """

    logger = StructuredLogger(channel if channel is not None else SentryChannel())
    metrics = None
    if sink is None:
        metrics = InMemoryMetrics()
        sink = metrics
    elif isinstance(sink, InMemoryMetrics):
        metrics = sink

    monitor = PerformanceMonitor(
        logger,
        sink,
        production=settings.is_production,
        thresholds_ms=settings.slow_operation_thresholds_ms,
        default_threshold_ms=settings.default_slow_operation_threshold_ms,
        breadcrumb_sample_rate=settings.sentry_sample_rate,
        metrics_sample_rate=settings.metrics_sample_rate,
    )
    return Telemetry(logger=logger, monitor=monitor, security=SecurityEventLogger(logger), metrics=metrics)
