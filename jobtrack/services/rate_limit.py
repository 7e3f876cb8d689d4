from __future__ import annotations

import math
from dataclasses import dataclass
from threading import Lock
from time import monotonic
from typing import Any, Callable

from starlette.responses import PlainTextResponse

from jobtrack.observability.middleware import client_ip
from jobtrack.observability.security import SecurityEventLogger


@dataclass
class _Window:
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after: int = 0


class FixedWindowRateLimiter:
    """Per-key request counter over fixed windows (process-local)."""

    def __init__(self, max_requests: int, window_seconds: float, clock: Callable[[], float] = monotonic) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = Lock()
        self._windows: dict[tuple[str, int], _Window] = {}
        self._current_slot = -1

    def hit(self, key: str) -> RateLimitDecision:
        now = self._clock()
        slot = int(now // self.window_seconds)
        with self._lock:
            if slot != self._current_slot:
                self._windows = {k: w for k, w in self._windows.items() if k[1] >= slot}
                self._current_slot = slot

            window = self._windows.get((key, slot))
            if window is None:
                window = self._windows[(key, slot)] = _Window(count=0, reset_at=now + self.window_seconds)

            if window.count >= self.max_requests:
                return RateLimitDecision(allowed=False, retry_after=max(0, math.ceil(window.reset_at - now)))
            window.count += 1
            return RateLimitDecision(allowed=True)

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)


class RateLimitMiddleware:
    """Answers 429 once a client exceeds its budget on ``/api/`` paths."""

    def __init__(
        self,
        app: Callable[..., Any],
        limiter: FixedWindowRateLimiter,
        security: SecurityEventLogger,
        path_prefix: str = "/api/",
    ) -> None:
        self.app = app
        self.limiter = limiter
        self.security = security
        self.path_prefix = path_prefix

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        path = scope.get("path", "")
        if scope.get("type") != "http" or not path.startswith(self.path_prefix):
            await self.app(scope, receive, send)
            return

        ip = client_ip(scope, default="unknown")
        decision = self.limiter.hit(ip)
        if decision.allowed:
            await self.app(scope, receive, send)
            return

        self.security.log_rate_limit(ip, path)
        response = PlainTextResponse(
            "Too Many Requests",
            status_code=429,
            headers={"Retry-After": str(decision.retry_after)},
        )
        await response(scope, receive, send)
