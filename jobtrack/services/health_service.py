"""Dependency health checks.

``HealthReporter.check_health`` always returns a report; a failing probe only
degrades it. Mapping the verdict to an HTTP status is the caller's job.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from time import monotonic, perf_counter
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from starlette.concurrency import run_in_threadpool

from jobtrack.config import Settings
from jobtrack.db.session import ping_database
from jobtrack.observability.clock import elapsed_ms, utc_timestamp
from jobtrack.observability.metrics import PerformanceMonitor
from jobtrack.observability.ports import LoggerPort


HealthStatus = Literal["healthy", "unhealthy"]

_PROCESS_STARTED = monotonic()


class CheckResult(BaseModel):
    status: HealthStatus
    message: str | None = None


class HealthReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: HealthStatus
    timestamp: str
    uptime: float
    response_time: float = Field(alias="responseTime")
    checks: dict[str, CheckResult]
    version: str

    @property
    def healthy(self) -> bool:
        return self.status == "healthy"


Probe = Callable[[], Awaitable[CheckResult]]


def database_probe(ping: Callable[[], None] = ping_database) -> Probe:
    async def probe() -> CheckResult:
        await run_in_threadpool(ping)
        return CheckResult(status="healthy")

    return probe


def environment_probe(settings: Settings) -> Probe:
    async def probe() -> CheckResult:
        if settings.database_url:
            return CheckResult(status="healthy", message="All required env vars present")
        return CheckResult(status="unhealthy", message="Missing DATABASE_URL")

    return probe


class HealthReporter:
    def __init__(
        self,
        logger: LoggerPort,
        monitor: PerformanceMonitor,
        probes: Mapping[str, Probe],
        version: str,
        started_at: float = _PROCESS_STARTED,
    ) -> None:
        self._logger = logger
        self._monitor = monitor
        self._probes = dict(probes)
        self._version = version
        self._started_at = started_at

    async def check_health(self) -> HealthReport:
        start = perf_counter()
        checks: dict[str, CheckResult] = {}
        for name, probe in self._probes.items():
            checks[name] = await self._run_probe(name, probe)

        response_time = round(elapsed_ms(start), 2)
        status: HealthStatus = "healthy" if all(c.status == "healthy" for c in checks.values()) else "unhealthy"
        report = HealthReport(
            status=status,
            timestamp=utc_timestamp(),
            uptime=round(monotonic() - self._started_at, 3),
            response_time=response_time,
            checks=checks,
            version=self._version,
        )
        self._logger.debug("Health check completed", {"status": status, "response_time": response_time})
        return report

    async def _run_probe(self, name: str, probe: Probe) -> CheckResult:
        try:
            return await self._monitor.time_async(f"health-check-{name}", probe)
        except Exception as exc:
            self._logger.error("Health check failed", {"check": name, "error": f"{type(exc).__name__}: {exc}"})
            return CheckResult(status="unhealthy", message=str(exc) or type(exc).__name__)
