"""Security event taxonomy and logger.

Each event type carries an explicit escalation policy. Adding a member to
``SecurityEventType`` without a matching ``ESCALATION_POLICIES`` entry fails at
import time.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from jobtrack.observability.clock import utc_timestamp
from jobtrack.observability.ports import LoggerPort


class SecurityEventType(str, Enum):
    AUTH_FAILURE = "auth_failure"
    RATE_LIMIT = "rate_limit"
    SUSPICIOUS_REQUEST = "suspicious_request"
    DATA_ACCESS = "data_access"


@dataclass(frozen=True)
class EscalationPolicy:
    message: str
    alert: bool


ESCALATION_POLICIES: dict[SecurityEventType, EscalationPolicy] = {
    SecurityEventType.AUTH_FAILURE: EscalationPolicy(message="Authentication failure", alert=True),
    SecurityEventType.SUSPICIOUS_REQUEST: EscalationPolicy(message="Suspicious request", alert=True),
    SecurityEventType.RATE_LIMIT: EscalationPolicy(message="Rate limit exceeded", alert=False),
    SecurityEventType.DATA_ACCESS: EscalationPolicy(message="Data access", alert=False),
}

_unmapped = set(SecurityEventType) - set(ESCALATION_POLICIES)
if _unmapped:
    raise RuntimeError(f"Security event types without an escalation policy: {sorted(t.value for t in _unmapped)}")


@dataclass(frozen=True)
class SecurityEvent:
    type: SecurityEventType
    details: Mapping[str, Any] = field(default_factory=dict)
    user_id: str | None = None
    ip: str | None = None
    user_agent: str | None = None


class SecurityEventLogger:
    def __init__(self, logger: LoggerPort) -> None:
        self._logger = logger

    def log(self, event: SecurityEvent) -> None:
        timestamp = utc_timestamp()
        policy = ESCALATION_POLICIES[SecurityEventType(event.type)]

        context: dict[str, Any] = dict(event.details)
        for key in ("user_id", "ip", "user_agent"):
            value = getattr(event, key)
            if value is not None:
                context[key] = value
        context["timestamp"] = timestamp

        self._logger.log("warn", policy.message, context, category="security")
        if policy.alert:
            self._logger.alert(f"Security Alert: {SecurityEventType(event.type).value}", level="warning")

    def log_auth_failure(self, ip: str, user_agent: str, details: Mapping[str, Any] | None = None) -> None:
        self.log(
            SecurityEvent(
                type=SecurityEventType.AUTH_FAILURE,
                ip=ip,
                user_agent=user_agent,
                details=dict(details or {}),
            )
        )

    def log_rate_limit(self, ip: str, endpoint: str) -> None:
        self.log(SecurityEvent(type=SecurityEventType.RATE_LIMIT, ip=ip, details={"pathname": endpoint}))
