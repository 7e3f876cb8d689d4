from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from jobtrack.api.deps import get_health_reporter
from jobtrack.services.health_service import HealthReporter


router = APIRouter(prefix="/api", tags=["health"])

NO_CACHE = "no-cache, no-store, must-revalidate"


@router.get("/health")
async def health(reporter: HealthReporter = Depends(get_health_reporter)) -> JSONResponse:
    report = await reporter.check_health()
    return JSONResponse(
        report.model_dump(by_alias=True),
        status_code=200 if report.healthy else 503,
        headers={"Cache-Control": NO_CACHE},
    )
