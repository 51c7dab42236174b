"""Event consumers (handlers) for domain events.

Keeps a bounded in-memory log of provider diagnostics so health endpoints
can show what happened recently.
"""

from __future__ import annotations

from collections import deque
from dataclasses import fields
from typing import Any

import structlog

from chainwallet.domain.enums import Severity
from chainwallet.domain.events import DomainEvent

logger = structlog.get_logger(__name__)


class DiagnosticEventLog:
    """Consumes provider events, logs them by severity, and keeps the last N."""

    def __init__(self, max_events: int = 10_000) -> None:
        self._events: deque[DomainEvent] = deque(maxlen=max_events)

    async def handle(self, event: DomainEvent) -> None:
        self._events.append(event)
        details = _details(event)
        if event.severity == Severity.CRITICAL:
            logger.error("diagnostic_event", **details)
        elif event.severity == Severity.HIGH:
            logger.warning("diagnostic_event", **details)
        else:
            logger.info("diagnostic_event", **details)

    def recent(
        self, limit: int = 100, *, min_severity: Severity = Severity.LOW
    ) -> list[DomainEvent]:
        """Newest first."""
        matching = [e for e in reversed(self._events) if e.severity.at_least(min_severity)]
        return matching[:limit]

    def __len__(self) -> int:
        return len(self._events)


def _details(event: DomainEvent) -> dict[str, Any]:
    details = {
        f.name: getattr(event, f.name)
        for f in fields(event)
        if f.name not in ("occurred_at", "metadata")
    }
    details["severity"] = event.severity.value
    details.update(event.metadata)
    return details
