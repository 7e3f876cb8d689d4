from __future__ import annotations

from typing import Any

import jwt
from fastapi import Depends, HTTPException, Request

from jobtrack.api.deps import get_telemetry
from jobtrack.config import get_settings
from jobtrack.observability.middleware import DEFAULT_USER_AGENT, client_ip
from jobtrack.observability.telemetry import Telemetry
from jobtrack.services.auth_service import decode_session_token


def require_session(request: Request, telemetry: Telemetry = Depends(get_telemetry)) -> dict[str, Any]:
    """Decoded session claims; 401 without a valid session cookie.

    A present but unusable token is reported as an authentication failure.
    """

    settings = get_settings()
    token = request.cookies.get(settings.jwt_cookie_name)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        claims = decode_session_token(token, settings)
    except jwt.PyJWTError as exc:
        telemetry.security.log_auth_failure(
            client_ip(request.scope),
            request.headers.get("user-agent", DEFAULT_USER_AGENT),
            {"reason": type(exc).__name__, "pathname": request.url.path},
        )
        raise HTTPException(status_code=401, detail="Invalid session") from exc

    if not claims.get("sub"):
        telemetry.security.log_auth_failure(
            client_ip(request.scope),
            request.headers.get("user-agent", DEFAULT_USER_AGENT),
            {"reason": "missing_subject", "pathname": request.url.path},
        )
        raise HTTPException(status_code=401, detail="Invalid session")
    return claims
