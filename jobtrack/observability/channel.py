from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from threading import Lock
from typing import Any

import sentry_sdk

from jobtrack.config import Settings
from jobtrack.observability.ports import ChannelLevel


def init_sentry(settings: Settings) -> bool:
    """Initialise the Sentry client when a DSN is configured.

    Without a DSN the SDK stays uninitialised and every call on
    ``SentryChannel`` is a no-op.
    """

    if not settings.sentry_dsn:
        return False
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        release=settings.app_version,
        traces_sample_rate=settings.sentry_sample_rate,
    )
    return True


class SentryChannel:
    """Monitoring channel backed by the process-wide Sentry client."""

    def add_breadcrumb(self, *, category: str, message: str, level: ChannelLevel, data: Mapping[str, Any]) -> None:
        sentry_sdk.add_breadcrumb(category=category, message=message, level=level, data=dict(data))

    def capture_message(self, message: str, level: ChannelLevel) -> None:
        sentry_sdk.capture_message(message, level=level)


@dataclass(frozen=True)
class Breadcrumb:
    category: str
    message: str
    level: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Alert:
    message: str
    level: str


class InMemoryChannel:
    """Thread-safe recording channel for local runs and tests."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._breadcrumbs: list[Breadcrumb] = []
        self._alerts: list[Alert] = []

    def add_breadcrumb(self, *, category: str, message: str, level: ChannelLevel, data: Mapping[str, Any]) -> None:
        crumb = Breadcrumb(category=category, message=message, level=level, data=dict(data))
        with self._lock:
            self._breadcrumbs.append(crumb)

    def capture_message(self, message: str, level: ChannelLevel) -> None:
        with self._lock:
            self._alerts.append(Alert(message=message, level=level))

    @property
    def breadcrumbs(self) -> list[Breadcrumb]:
        with self._lock:
            return list(self._breadcrumbs)

    @property
    def alerts(self) -> list[Alert]:
        with self._lock:
            return list(self._alerts)

    def clear(self) -> None:
        with self._lock:
            self._breadcrumbs.clear()
            self._alerts.clear()
