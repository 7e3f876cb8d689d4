from __future__ import annotations

import logging
import sys
from typing import Any, Callable

import structlog

from jobtrack.config import Settings
from jobtrack.observability.ports import ChannelLevel, LogContext, LogLevel, MonitoringChannelPort


_CONFIGURED = False

_STRUCTLOG_METHODS: dict[str, str] = {
    "debug": "debug",
    "info": "info",
    "warn": "warning",
    "error": "error",
}

# Only warn and error entries leave the process.
_CHANNEL_LEVELS: dict[str, ChannelLevel] = {
    "warn": "warning",
    "error": "error",
}


def configure_logging(settings: Settings) -> None:
    """Configure structlog + stdlib logging.

    Development gets coloured console lines at DEBUG; every other environment
    gets JSON at ``settings.log_level``. Safe to call multiple times (no-op
    after first call).
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    if settings.is_development:
        level = logging.DEBUG
        renderer: Any = structlog.dev.ConsoleRenderer(colors=True)
    else:
        level = getattr(logging, settings.log_level.upper(), logging.INFO)
        renderer = structlog.processors.JSONRenderer()

    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=pre_chain,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logger = logging.getLogger(name)
        logger.handlers = [handler]
        logger.propagate = False
        logger.setLevel(level)

    _CONFIGURED = True


class StructuredLogger:
    """Leveled logger that writes to the diagnostic stream and the monitoring channel.

    Never raises: a broken channel is reported once to the local stream and
    then ignored, and an entry that cannot be rendered is dropped with a
    stdlib warning.
    """

    def __init__(self, channel: MonitoringChannelPort | None = None, name: str = "jobtrack") -> None:
        self._channel = channel
        self._name = name
        self._channel_failure_reported = False

    def log(self, level: LogLevel, message: str, context: LogContext | None = None, *, category: str = "app") -> None:
        fields = dict(context or {})
        try:
            emit = getattr(structlog.get_logger(self._name), _STRUCTLOG_METHODS[level])
            emit(message, **fields)
        except Exception:
            logging.getLogger(self._name).warning("Dropped log entry %r", message, exc_info=True)

        channel_level = _CHANNEL_LEVELS.get(level)
        if channel_level is None:
            return
        data = {**structlog.contextvars.get_contextvars(), **fields}
        self.breadcrumb(category, message, data, level=channel_level)
        if level == "error":
            self.alert(message, level="error")

    def debug(self, message: str, context: LogContext | None = None) -> None:
        self.log("debug", message, context)

    def info(self, message: str, context: LogContext | None = None) -> None:
        self.log("info", message, context)

    def warn(self, message: str, context: LogContext | None = None) -> None:
        self.log("warn", message, context)

    def error(self, message: str, context: LogContext | None = None) -> None:
        self.log("error", message, context)

    def breadcrumb(self, category: str, message: str, data: LogContext | None = None, level: ChannelLevel = "info") -> None:
        if self._channel is None:
            return
        channel = self._channel
        self._forward(lambda: channel.add_breadcrumb(category=category, message=message, level=level, data=dict(data or {})))

    def alert(self, message: str, level: ChannelLevel = "warning") -> None:
        if self._channel is None:
            return
        channel = self._channel
        self._forward(lambda: channel.capture_message(message, level))

    def _forward(self, call: Callable[[], None]) -> None:
        try:
            call()
        except Exception as exc:
            if self._channel_failure_reported:
                return
            self._channel_failure_reported = True
            logging.getLogger(self._name).warning("Monitoring channel unavailable: %s: %s", type(exc).__name__, exc)
