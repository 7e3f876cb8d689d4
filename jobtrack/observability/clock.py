from __future__ import annotations

from datetime import datetime, timezone
from time import perf_counter


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2026-01-31T09:15:02.123Z."""

    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def elapsed_ms(start: float) -> float:
    """Milliseconds since ``start``, a ``perf_counter()`` reading."""

    return (perf_counter() - start) * 1000.0
