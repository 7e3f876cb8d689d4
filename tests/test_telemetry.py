from structlog.testing import capture_logs

from jobtrack.config import Settings
from jobtrack.observability.channel import InMemoryChannel, SentryChannel, init_sentry
from jobtrack.observability.metrics import InMemoryMetrics, PerformanceMetric
from jobtrack.observability.ports import LoggerPort, MetricsSinkPort, MonitoringChannelPort
from jobtrack.observability.telemetry import build_telemetry


def test_sentry_is_not_initialised_without_dsn() -> None:
    assert init_sentry(Settings(APP_ENV="test", SENTRY_DSN="")) is False


def test_sentry_channel_is_a_no_op_without_a_client() -> None:
    channel = SentryChannel()
    assert isinstance(channel, MonitoringChannelPort)

    channel.add_breadcrumb(category="app", message="hello", level="warning", data={"k": "v"})
    channel.capture_message("Security Alert: auth_failure", "warning")


def test_build_telemetry_wires_one_logger_through_every_service() -> None:
    channel = InMemoryChannel()
    telemetry = build_telemetry(Settings(APP_ENV="test"), channel=channel)

    assert isinstance(telemetry.logger, LoggerPort)
    assert isinstance(telemetry.metrics, InMemoryMetrics)
    assert isinstance(telemetry.metrics, MetricsSinkPort)

    with capture_logs():
        telemetry.monitor.track_metric(PerformanceMetric(name="jobs_listed", value=3, unit="count"))
        telemetry.security.log_auth_failure("10.1.1.1", "unknown", {"reason": "DecodeError"})

    assert telemetry.metrics.snapshot()["jobs_listed"]["count"] == 1
    assert [c.category for c in channel.breadcrumbs] == ["security"]
    assert [a.message for a in channel.alerts] == ["Security Alert: auth_failure"]


def test_build_telemetry_keeps_a_custom_sink() -> None:
    written: list[PerformanceMetric] = []

    class ListSink:
        def write(self, metric: PerformanceMetric) -> None:
            written.append(metric)

    telemetry = build_telemetry(Settings(APP_ENV="test"), channel=InMemoryChannel(), sink=ListSink())
    with capture_logs():
        telemetry.monitor.track_metric(PerformanceMetric(name="upload", value=10, unit="bytes"))

    assert telemetry.metrics is None
    assert [m.name for m in written] == ["upload"]
