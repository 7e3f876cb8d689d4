"""Session cookie verification."""

from __future__ import annotations

from typing import Any

import jwt

from jobtrack.config import Settings, get_settings


SESSION_ALGORITHM = "HS256"


def decode_session_token(token: str, settings: Settings | None = None) -> dict[str, Any]:
    """Claims of a signed session token; raises ``jwt.PyJWTError`` when it cannot be trusted.

    Tokens without an expiry are rejected.
    """

    settings = settings or get_settings()
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[SESSION_ALGORITHM],
        options={"require": ["exp"]},
    )
