"""Tests for the diagnostic event log and the in-process event bus."""

from __future__ import annotations

import pytest

from chainwallet.adapters.outbound.event_bus import ALL_EVENTS, InProcessEventBus
from chainwallet.application.consumers import DiagnosticEventLog
from chainwallet.domain.enums import Severity
from chainwallet.domain.events import (
    CircuitBreakerOpenedEvent,
    DomainEvent,
    ProvidersExhaustedEvent,
)


def _opened(provider: str = "alpha") -> CircuitBreakerOpenedEvent:
    return CircuitBreakerOpenedEvent(network="1", provider=provider, failure_count=5)


def _exhausted() -> ProvidersExhaustedEvent:
    return ProvidersExhaustedEvent(network="1", operation="getGasPrice(1)", last_error="boom")


class TestSeverity:
    def test_ordering(self) -> None:
        assert Severity.CRITICAL.at_least(Severity.HIGH)
        assert Severity.HIGH.at_least(Severity.HIGH)
        assert not Severity.MEDIUM.at_least(Severity.HIGH)

    def test_event_defaults(self) -> None:
        assert _opened().severity == Severity.HIGH
        assert _exhausted().severity == Severity.CRITICAL
        assert _exhausted().event_type == "PROVIDERS_EXHAUSTED"


class TestDiagnosticEventLog:
    @pytest.mark.asyncio
    async def test_recent_is_newest_first(self) -> None:
        log = DiagnosticEventLog()
        await log.handle(_opened("alpha"))
        await log.handle(_opened("beta"))
        assert [e.provider for e in log.recent()] == ["beta", "alpha"]

    @pytest.mark.asyncio
    async def test_bounded_buffer(self) -> None:
        log = DiagnosticEventLog(max_events=2)
        for name in ("a", "b", "c"):
            await log.handle(_opened(name))
        assert len(log) == 2
        assert [e.provider for e in log.recent()] == ["c", "b"]

    @pytest.mark.asyncio
    async def test_filters_by_severity_and_limit(self) -> None:
        log = DiagnosticEventLog()
        await log.handle(DomainEvent())
        await log.handle(_opened())
        await log.handle(_exhausted())
        assert len(log.recent(min_severity=Severity.HIGH)) == 2
        assert [e.event_type for e in log.recent(min_severity=Severity.CRITICAL)] == [
            "PROVIDERS_EXHAUSTED"
        ]
        assert len(log.recent(limit=1)) == 1


class TestInProcessEventBus:
    @pytest.mark.asyncio
    async def test_wildcard_and_typed_subscribers(self) -> None:
        bus = InProcessEventBus()
        everything: list[DomainEvent] = []
        opened_only: list[DomainEvent] = []

        async def on_any(event: DomainEvent) -> None:
            everything.append(event)

        async def on_opened(event: DomainEvent) -> None:
            opened_only.append(event)

        bus.subscribe(ALL_EVENTS, on_any)
        bus.subscribe("CIRCUIT_BREAKER_OPENED", on_opened)
        await bus.publish(_opened())
        await bus.publish(_exhausted())

        assert len(everything) == 2
        assert len(opened_only) == 1

    @pytest.mark.asyncio
    async def test_failing_handler_is_isolated(self) -> None:
        bus = InProcessEventBus()
        received: list[DomainEvent] = []

        async def broken(event: DomainEvent) -> None:
            raise RuntimeError("handler crashed")

        async def healthy(event: DomainEvent) -> None:
            received.append(event)

        bus.subscribe(ALL_EVENTS, broken)
        bus.subscribe(ALL_EVENTS, healthy)
        await bus.publish(_opened())

        assert len(received) == 1
