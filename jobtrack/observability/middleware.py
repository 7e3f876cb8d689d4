from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Callable

import structlog
from starlette.datastructures import Headers, MutableHeaders

from jobtrack.observability.clock import elapsed_ms
from jobtrack.observability.metrics import PerformanceMetric
from jobtrack.observability.ports import LoggerPort, MetricsPort


REQUEST_ID_HEADER = "x-request-id"
DEFAULT_CLIENT_IP = "127.0.0.1"
DEFAULT_USER_AGENT = "unknown"

_fallback = logging.getLogger("jobtrack.middleware")


def new_request_id() -> str:
    return uuid.uuid4().hex


def client_ip(scope: dict[str, Any], default: str = DEFAULT_CLIENT_IP) -> str:
    """First address of ``x-forwarded-for``, or ``default`` when the header is absent."""

    forwarded = Headers(scope=scope).get("x-forwarded-for")
    if forwarded is None:
        return default
    return forwarded.split(",", 1)[0].strip()


@dataclass(frozen=True)
class RequestTrace:
    request_id: str
    start: float
    method: str
    url: str
    ip: str
    user_agent: str


class RequestTracingMiddleware:
    """Correlation ids, start/completion logs and a ``request_duration`` metric per request."""

    def __init__(
        self,
        app: Callable[..., Any],
        logger: LoggerPort,
        monitor: MetricsPort,
        id_factory: Callable[[], str] = new_request_id,
    ) -> None:
        self.app = app
        self.logger = logger
        self.monitor = monitor
        self.id_factory = id_factory

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        # Not guarded: a request without a correlation id is not served.
        request_id = self.id_factory()
        trace = RequestTrace(
            request_id=request_id,
            start=perf_counter(),
            method=scope.get("method", ""),
            url=scope.get("path", ""),
            ip=client_ip(scope),
            user_agent=Headers(scope=scope).get("user-agent", DEFAULT_USER_AGENT),
        )

        status_code: int = 500

        async def send_wrapper(message: dict[str, Any]) -> None:
            nonlocal status_code

            if message.get("type") == "http.response.start":
                status_code = int(message.get("status", 500))
                headers = MutableHeaders(scope=message)
                headers[REQUEST_ID_HEADER] = request_id

            await send(message)

        try:
            structlog.contextvars.bind_contextvars(request_id=request_id)
            self._emit(
                trace,
                self.logger.info,
                "Request started",
                {
                    "request_id": trace.request_id,
                    "method": trace.method,
                    "url": trace.url,
                    "ip": trace.ip,
                    "user_agent": trace.user_agent,
                },
            )
            await self.app(scope, receive, send_wrapper)
        finally:
            self._record_completion(trace, status_code)
            structlog.contextvars.clear_contextvars()

    def _record_completion(self, trace: RequestTrace, status_code: int) -> None:
        duration = elapsed_ms(trace.start)
        self._emit(
            trace,
            self.logger.info,
            "Request completed",
            {
                "request_id": trace.request_id,
                "method": trace.method,
                "url": trace.url,
                "duration": round(duration, 2),
                "status": status_code,
            },
        )
        self._emit(
            trace,
            self.monitor.track_metric,
            PerformanceMetric(
                name="request_duration",
                value=duration,
                unit="ms",
                tags={"method": trace.method, "endpoint": trace.url, "status": str(status_code)},
            ),
        )

    def _emit(self, trace: RequestTrace, emit: Callable[..., Any], *args: Any) -> None:
        """Run one telemetry call; failures become a warn entry and never reach the request."""

        try:
            emit(*args)
        except Exception as exc:
            error = f"{type(exc).__name__}: {exc}"
            try:
                self.logger.warn("Request telemetry failed", {"request_id": trace.request_id, "error": error})
            except Exception:
                _fallback.warning("Request telemetry failed for %s: %s", trace.request_id, error, exc_info=True)
