"""Domain events — typed records of things that happened in the domain.

Provider-layer events are published on the in-process bus so diagnostics
consumers can react without the provider manager knowing about them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from chainwallet.domain.enums import Severity


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class DomainEvent:
    """Base class for all domain events."""

    event_type: str = "DOMAIN_EVENT"
    severity: Severity = Severity.LOW
    occurred_at: datetime = field(default_factory=_utcnow)
    metadata: dict[str, Any] = field(default_factory=dict)


# ── Provider events ──────────────────────────────────────────
@dataclass(frozen=True, slots=True)
class CircuitBreakerOpenedEvent(DomainEvent):
    event_type: str = "CIRCUIT_BREAKER_OPENED"
    severity: Severity = Severity.HIGH
    network: str = ""
    provider: str = ""
    failure_count: int = 0
    reason: str = "Circuit breaker opened due to consecutive failures"


@dataclass(frozen=True, slots=True)
class ProvidersExhaustedEvent(DomainEvent):
    event_type: str = "PROVIDERS_EXHAUSTED"
    severity: Severity = Severity.CRITICAL
    network: str = ""
    operation: str = ""
    last_error: str | None = None
    reason: str = "All providers failed"
