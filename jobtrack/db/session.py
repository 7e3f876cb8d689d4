from __future__ import annotations

from functools import lru_cache

from sqlalchemy import Engine, create_engine, text

from jobtrack.config import get_settings


@lru_cache(maxsize=4)
def _engine_for(database_url: str) -> Engine:
    return create_engine(database_url, pool_pre_ping=True)


def get_engine() -> Engine:
    settings = get_settings()
    if not settings.database_url:
        raise RuntimeError("DATABASE_URL is not configured")
    return _engine_for(settings.database_url)


def ping_database() -> None:
    """Run a trivial query; raises on any connectivity problem."""

    with get_engine().connect() as conn:
        conn.execute(text("SELECT 1"))
