"""Provider fallback manager — the entry-point for every blockchain read.

Owns the per-network provider registry, one client per enabled provider, the
health trackers, and the circuit breakers. Callers hand in an operation over a
``ChainClient`` and the manager picks the healthiest provider, retries
locally with exponential backoff, fails over to the next provider, and keeps
health scores and breakers up to date.

Live-call exhaustion and failed health probes share one failure-accounting
path, so a provider is penalised the same way whichever of the two notices
that it is degraded.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from functools import partial
from typing import Any, TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from chainwallet.domain.events import (
    CircuitBreakerOpenedEvent,
    DomainEvent,
    ProvidersExhaustedEvent,
)
from chainwallet.domain.exceptions import AllProvidersFailedError, NoProvidersConfiguredError
from chainwallet.ports.outbound import ChainClient, EventBusPort
from chainwallet.shared.observability.metrics import (
    CIRCUIT_BREAKER_OPEN,
    HEALTH_CHECK_DURATION,
    PROVIDER_CALL_DURATION,
    PROVIDER_CALLS_TOTAL,
    PROVIDER_FAILOVERS_TOTAL,
    PROVIDER_HEALTH_SCORE,
    PROVIDERS_EXHAUSTED_TOTAL,
)
from chainwallet.shared.providers.circuit_breaker import CircuitBreaker
from chainwallet.shared.providers.health import ProviderHealthTracker
from chainwallet.shared.providers.registry import NetworkRegistry
from chainwallet.shared.providers.router import ProviderRouter
from chainwallet.shared.providers.scheduler import HealthCheckScheduler
from chainwallet.shared.providers.types import (
    CircuitState,
    ClientLease,
    NetworkId,
    ProviderConfig,
    ProviderHealth,
    ProviderKey,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")

ClientFactory = Callable[[NetworkId, ProviderConfig], ChainClient]
Operation = Callable[[ChainClient], Awaitable[T]]


class ProviderFallbackManager:
    """Routes chain operations across competing RPC providers.

    Usage::

        manager = ProviderFallbackManager(registry, client_factory=make_client)
        manager.start_health_checks()

        gas_price = await manager.execute_with_fallback(
            1, lambda client: client.get_gas_price(), "getGasPrice(1)"
        )

        await manager.close()

    One instance is created per process and injected where needed.
    """

    def __init__(
        self,
        registry: NetworkRegistry,
        *,
        client_factory: ClientFactory,
        event_bus: EventBusPort | None = None,
        failure_threshold: int = 5,
        open_timeout_seconds: float = 60.0,
        max_retry_attempts: int = 3,
        backoff_base: float = 1.0,
        backoff_max: float = 8.0,
        request_timeout: float = 15.0,
        health_check_interval: float = 30.0,
        probe_bonus: int = 10,
        success_bonus: int = 5,
        failure_penalty: int = 20,
        uptime_window_seconds: float = 3600.0,
    ) -> None:
        self._registry = registry
        self._client_factory = client_factory
        self._event_bus = event_bus
        self._failure_threshold = failure_threshold
        self._open_timeout = open_timeout_seconds
        self._max_attempts = max_retry_attempts
        self._backoff_base = backoff_base
        self._backoff_max = backoff_max
        self._request_timeout = request_timeout
        self._probe_bonus = probe_bonus
        self._success_bonus = success_bonus
        self._failure_penalty = failure_penalty
        self._uptime_window = uptime_window_seconds

        self._clients: dict[ProviderKey, ChainClient] = {}
        self._trackers: dict[ProviderKey, ProviderHealthTracker] = {}
        self._breakers: dict[ProviderKey, CircuitBreaker] = {}

        self._router = ProviderRouter(registry)
        self._scheduler = HealthCheckScheduler(
            self.run_health_checks, interval_seconds=health_check_interval
        )
        self.initialize()

    # ── Initialisation ───────────────────────────────────────
    def initialize(self) -> None:
        """Create trackers and eagerly construct a client per enabled provider.

        Never raises for a provider whose client cannot be built: that
        provider is disabled and the network runs on the rest.
        """
        for key, provider in self._registry.items():
            self._trackers.setdefault(
                key, ProviderHealthTracker(str(key), window_seconds=self._uptime_window)
            )
            self._export_score(key, provider)
            if not provider.enabled or key in self._clients:
                continue
            try:
                self._clients[key] = self._client_factory(key.network, provider)
            except Exception as exc:
                provider.enabled = False
                logger.error(
                    "provider_client_init_failed",
                    network=key.network,
                    provider=key.name,
                    error=_describe(exc),
                )

        logger.info(
            "provider_manager_initialized",
            networks=len(self._registry),
            clients=len(self._clients),
        )

    @property
    def registry(self) -> NetworkRegistry:
        return self._registry

    # ── Main entry-point ─────────────────────────────────────
    async def execute_with_fallback(
        self,
        network: NetworkId,
        operation: Operation[T],
        label: str,
    ) -> T:
        """Run ``operation`` against the best available provider of ``network``.

        Args:
            network: Network identifier (chain ID).
            operation: Async callable receiving a ``ChainClient``.
            label: Human-readable operation name for logs and errors.

        Returns:
            The result from the first provider that succeeds.

        Raises:
            NoProvidersConfiguredError: The network has no enabled provider.
            AllProvidersFailedError: Every candidate was skipped or failed.
        """
        candidates = self._router.get_fallback_chain(network)
        if not candidates:
            raise NoProvidersConfiguredError(network, label)

        last_error: BaseException | None = None
        attempted: list[str] = []

        for provider in candidates:
            key = ProviderKey(network, provider.name)
            client = self._clients.get(key)
            if client is None:
                continue

            breaker = self._breakers.get(key)
            is_trial = False
            if breaker is not None:
                is_trial = breaker.state == CircuitState.HALF_OPEN
                if not breaker.allow_request():
                    logger.debug("provider_circuit_open", network=network, provider=provider.name)
                    continue

            attempted.append(provider.name)
            log = logger.bind(network=network, provider=provider.name, operation=label)
            start = time.monotonic()
            try:
                result = await self._call_with_retries(client, operation, log)
            except asyncio.CancelledError:
                if is_trial and breaker is not None:
                    breaker.release_trial()
                raise
            except Exception as exc:
                last_error = exc
                PROVIDER_CALLS_TOTAL.labels(str(network), provider.name, "exhausted").inc()
                log.warning(
                    "provider_exhausted",
                    attempts=self._max_attempts,
                    error=_describe(exc),
                )
                await self._handle_provider_failure(key, provider, exc)
                continue

            duration = time.monotonic() - start
            provider.record_success(self._success_bonus)
            self._export_score(key, provider)
            if is_trial and breaker is not None:
                self._clear_breaker(key, breaker, reason="trial_succeeded")

            PROVIDER_CALLS_TOTAL.labels(str(network), provider.name, "success").inc()
            PROVIDER_CALL_DURATION.labels(str(network), provider.name).observe(duration)
            log.info("provider_call_succeeded", duration_ms=round(duration * 1000, 1))
            if len(attempted) > 1:
                PROVIDER_FAILOVERS_TOTAL.labels(str(network)).inc()
                log.info("provider_failover_success", failed_providers=attempted[:-1])
            return result

        PROVIDERS_EXHAUSTED_TOTAL.labels(str(network)).inc()
        logger.error(
            "all_providers_failed",
            network=network,
            operation=label,
            attempted=attempted,
            last_error=_describe(last_error) if last_error else None,
        )
        await self._publish(
            ProvidersExhaustedEvent(
                network=str(network),
                operation=label,
                last_error=str(last_error) if last_error else None,
                metadata={"attempted": attempted},
            )
        )
        raise AllProvidersFailedError(network, label, last_error) from last_error

    def get_client_with_fallback(self, network: NetworkId) -> ClientLease | None:
        """Return the first usable client without running anything on it.

        Only peeks at breaker state, so a half-open breaker's trial is left
        for ``execute_with_fallback``.
        """
        for provider in self._router.get_fallback_chain(network):
            key = ProviderKey(network, provider.name)
            breaker = self._breakers.get(key)
            if breaker is not None and breaker.is_blocking():
                continue
            client = self._clients.get(key)
            if client is not None:
                return ClientLease(client, provider.name)
        return None

    # ── Retries within one provider ──────────────────────────
    async def _call_with_retries(
        self,
        client: ChainClient,
        operation: Operation[T],
        log: Any,
    ) -> T:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=self._backoff_base, max=self._backoff_max),
            retry=retry_if_exception_type(Exception),
            before_sleep=partial(_log_retry, log),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                result = await asyncio.wait_for(operation(client), timeout=self._request_timeout)
        return result

    # ── Shared failure accounting ────────────────────────────
    async def _handle_provider_failure(
        self, key: ProviderKey, provider: ProviderConfig, error: BaseException
    ) -> None:
        failures = provider.record_failure(self._failure_penalty)
        self._export_score(key, provider)

        breaker = self._breakers.get(key)
        if breaker is None:
            breaker = self._breakers.setdefault(
                key,
                CircuitBreaker(
                    str(key),
                    failure_threshold=self._failure_threshold,
                    open_timeout_seconds=self._open_timeout,
                ),
            )
        opened = breaker.record_failure()
        self._trackers[key].record_failure()

        logger.warning(
            "provider_failure_recorded",
            network=key.network,
            provider=key.name,
            consecutive_failures=failures,
            health_score=provider.health_score,
            breaker_failures=breaker.failure_count,
            error=_describe(error),
        )

        if opened:
            CIRCUIT_BREAKER_OPEN.labels(str(key.network), key.name).set(1)
            await self._publish(
                CircuitBreakerOpenedEvent(
                    network=str(key.network),
                    provider=key.name,
                    failure_count=breaker.failure_count,
                    metadata={"error": _describe(error)},
                )
            )

    def _clear_breaker(self, key: ProviderKey, breaker: CircuitBreaker, *, reason: str) -> None:
        # A concurrent failure may already have replaced the record.
        if self._breakers.get(key) is breaker:
            del self._breakers[key]
        CIRCUIT_BREAKER_OPEN.labels(str(key.network), key.name).set(0)
        if breaker.is_open:
            logger.info(
                "circuit_breaker_closed",
                network=key.network,
                provider=key.name,
                reason=reason,
            )

    async def _publish(self, event: DomainEvent) -> None:
        if self._event_bus is None:
            return
        try:
            await self._event_bus.publish(event)
        except Exception as exc:
            logger.error("diagnostic_event_publish_failed", event_type=event.event_type, error=str(exc))

    # ── Health checks ────────────────────────────────────────
    def start_health_checks(self) -> None:
        self._scheduler.start()

    async def stop_health_checks(self) -> None:
        await self._scheduler.stop()

    @property
    def health_checks_running(self) -> bool:
        return self._scheduler.running

    async def run_health_checks(self) -> None:
        """Probe every enabled provider once. Never raises."""
        probes = [
            self._probe(key, provider)
            for key, provider in self._registry.items()
            if provider.enabled and key in self._clients
        ]
        results = await asyncio.gather(*probes, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.error("health_check_crashed", error=_describe(result))

    async def _probe(self, key: ProviderKey, provider: ProviderConfig) -> None:
        client = self._clients[key]
        start = time.monotonic()
        try:
            block = await asyncio.wait_for(client.get_block_number(), timeout=self._request_timeout)
        except Exception as exc:
            logger.warning(
                "health_check_failed",
                network=key.network,
                provider=key.name,
                error=_describe(exc),
            )
            await self._handle_provider_failure(key, provider, exc)
            return

        latency = time.monotonic() - start
        self._trackers[key].record_success(latency * 1000)
        provider.record_success(self._probe_bonus)
        self._export_score(key, provider)
        breaker = self._breakers.get(key)
        if breaker is not None:
            self._clear_breaker(key, breaker, reason="health_check_passed")

        HEALTH_CHECK_DURATION.labels(str(key.network), key.name).observe(latency)
        logger.debug(
            "health_check_passed",
            network=key.network,
            provider=key.name,
            block=block,
            latency_ms=round(latency * 1000, 1),
        )

    # ── Health observation ───────────────────────────────────
    def get_provider_health(
        self, network: NetworkId | None = None
    ) -> list[ProviderHealth] | dict[NetworkId, list[ProviderHealth]]:
        """Diagnostics for one network, or for all networks keyed by network."""
        if network is not None:
            return [
                self._snapshot(ProviderKey(network, p.name), p)
                for p in self._registry.providers(network)
            ]
        return {net: self.get_provider_health(net) for net in self._registry.networks}  # type: ignore[misc]

    def get_circuit_breaker(self, network: NetworkId, name: str) -> CircuitBreaker | None:
        return self._breakers.get(ProviderKey(network, name))

    def _snapshot(self, key: ProviderKey, provider: ProviderConfig) -> ProviderHealth:
        health = ProviderHealth(
            network=key.network,
            name=provider.name,
            priority=provider.priority,
            enabled=provider.enabled,
            health_score=provider.health_score,
            consecutive_failures=provider.consecutive_failures,
            last_failure_at=provider.last_failure_at,
        )
        tracker = self._trackers.get(key)
        record = tracker.latest if tracker else None
        if record is not None:
            health.is_healthy = record.is_healthy
            health.latency_ms = record.latency_ms
            health.uptime_percent = record.uptime_percent
            health.last_checked_at = record.last_checked_at
        breaker = self._breakers.get(key)
        if breaker is not None:
            health.circuit_state = breaker.state
            health.circuit_open = health.circuit_state == CircuitState.OPEN
            health.breaker_failure_count = breaker.failure_count
        return health

    # ── Shutdown ─────────────────────────────────────────────
    async def close(self) -> None:
        await self.stop_health_checks()
        for key, client in list(self._clients.items()):
            try:
                await client.aclose()
            except Exception as exc:
                logger.warning("provider_client_close_failed", provider=str(key), error=str(exc))
        self._clients.clear()
        logger.info("provider_manager_closed")

    def _export_score(self, key: ProviderKey, provider: ProviderConfig) -> None:
        PROVIDER_HEALTH_SCORE.labels(str(key.network), key.name).set(provider.health_score)


def _describe(exc: BaseException | None) -> str:
    if exc is None:
        return ""
    message = str(exc)
    return f"{type(exc).__name__}: {message}" if message else type(exc).__name__


def _log_retry(log: Any, retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
    log.warning(
        "provider_retry",
        attempt=retry_state.attempt_number,
        delay_s=round(delay, 2),
        error=_describe(outcome.exception()) if outcome else "",
    )
