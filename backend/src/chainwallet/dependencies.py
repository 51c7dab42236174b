"""Dependency injection container — wires adapters to ports.

FastAPI's ``Depends()`` system uses these factories to inject the
correct adapter implementations into route handlers. The provider manager and
the diagnostic log are built once in the application lifespan and kept on
``app.state``.
"""

from __future__ import annotations

from fastapi import Depends, Request

from chainwallet.adapters.outbound.rpc import build_network_registry, json_rpc_client_factory
from chainwallet.application.consumers import DiagnosticEventLog
from chainwallet.application.services import ChainReadService
from chainwallet.config import Settings
from chainwallet.ports.outbound import EventBusPort
from chainwallet.shared.providers import ClientFactory, ProviderFallbackManager


# ── Builders (called from the lifespan) ──────────────────────
def build_provider_manager(
    settings: Settings,
    *,
    client_factory: ClientFactory | None = None,
    event_bus: EventBusPort | None = None,
) -> ProviderFallbackManager:
    """Construct the process-wide fallback manager from settings."""
    return ProviderFallbackManager(
        build_network_registry(settings),
        client_factory=client_factory or json_rpc_client_factory(settings.provider_timeout_seconds),
        event_bus=event_bus,
        failure_threshold=settings.circuit_breaker_failure_threshold,
        open_timeout_seconds=settings.circuit_breaker_open_timeout_seconds,
        max_retry_attempts=settings.provider_max_retry_attempts,
        backoff_base=settings.provider_backoff_base,
        backoff_max=settings.provider_backoff_max,
        request_timeout=settings.provider_timeout_seconds,
        health_check_interval=settings.health_check_interval_seconds,
        probe_bonus=settings.health_score_probe_bonus,
        success_bonus=settings.health_score_success_bonus,
        failure_penalty=settings.health_score_failure_penalty,
        uptime_window_seconds=settings.health_uptime_window_seconds,
    )


# ── Request-scoped accessors ─────────────────────────────────
def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_provider_manager(request: Request) -> ProviderFallbackManager:
    return request.app.state.provider_manager


def get_event_log(request: Request) -> DiagnosticEventLog:
    return request.app.state.event_log


def get_chain_read_service(
    manager: ProviderFallbackManager = Depends(get_provider_manager),
) -> ChainReadService:
    return ChainReadService(manager)
