from __future__ import annotations

from fastapi import Request

from jobtrack.observability.telemetry import Telemetry
from jobtrack.services.health_service import HealthReporter


def get_telemetry(request: Request) -> Telemetry:
    return request.app.state.telemetry


def get_health_reporter(request: Request) -> HealthReporter:
    return request.app.state.health
