from __future__ import annotations

from fastapi import FastAPI

from jobtrack.api.health import router as health_router
from jobtrack.api.metrics import router as metrics_router
from jobtrack.config import Settings, get_settings
from jobtrack.observability.channel import init_sentry
from jobtrack.observability.logging import configure_logging
from jobtrack.observability.middleware import RequestTracingMiddleware
from jobtrack.observability.telemetry import Telemetry, build_telemetry
from jobtrack.services.health_service import HealthReporter, database_probe, environment_probe
from jobtrack.services.rate_limit import FixedWindowRateLimiter, RateLimitMiddleware


def create_app(settings: Settings | None = None, telemetry: Telemetry | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)
    if telemetry is None:
        init_sentry(settings)
        telemetry = build_telemetry(settings)

    app = FastAPI(title="Job Tracker", version=settings.app_version)
    app.state.telemetry = telemetry
    app.state.health = HealthReporter(
        telemetry.logger,
        telemetry.monitor,
        probes={
            "database": database_probe(),
            "environment": environment_probe(settings),
        },
        version=settings.app_version,
    )
    app.include_router(health_router)
    app.include_router(metrics_router)

    # Last added runs first: tracing wraps the rate limiter so 429s carry a request id.
    app.add_middleware(
        RateLimitMiddleware,
        limiter=FixedWindowRateLimiter(settings.rate_limit_max_requests, settings.rate_limit_window_seconds),
        security=telemetry.security,
    )
    app.add_middleware(RequestTracingMiddleware, logger=telemetry.logger, monitor=telemetry.monitor)
    return app


app = create_app()
