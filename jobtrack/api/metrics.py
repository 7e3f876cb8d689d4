from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from jobtrack.api.deps import get_telemetry
from jobtrack.config import get_settings
from jobtrack.observability.middleware import client_ip
from jobtrack.observability.security import SecurityEvent, SecurityEventType
from jobtrack.observability.telemetry import Telemetry
from jobtrack.services.auth_dependencies import require_session


router = APIRouter(prefix="/api", tags=["metrics"])


@router.get("/metrics")
async def metrics(
    request: Request,
    claims: dict[str, Any] = Depends(require_session),
    telemetry: Telemetry = Depends(get_telemetry),
) -> dict:
    settings = get_settings()
    if not settings.enable_metrics_endpoint or telemetry.metrics is None:
        raise HTTPException(status_code=404, detail="Not found")

    telemetry.security.log(
        SecurityEvent(
            type=SecurityEventType.DATA_ACCESS,
            user_id=str(claims["sub"]),
            ip=client_ip(request.scope),
            details={"resource": "metrics"},
        )
    )
    return telemetry.metrics.snapshot()
