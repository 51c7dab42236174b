"""Multi-provider blockchain access layer.

Provides health-ordered routing, in-provider retries, fail-over, circuit
breaking, and periodic health checks across competing RPC providers.
"""

from chainwallet.shared.providers.types import (
    CircuitState,
    ClientLease,
    HealthRecord,
    NetworkId,
    ProviderConfig,
    ProviderDescriptor,
    ProviderHealth,
    ProviderKey,
    RpcEndpoint,
)
from chainwallet.shared.providers.health import ProviderHealthTracker
from chainwallet.shared.providers.circuit_breaker import CircuitBreaker
from chainwallet.shared.providers.registry import NetworkRegistry, resolve_providers
from chainwallet.shared.providers.router import ProviderRouter
from chainwallet.shared.providers.scheduler import HealthCheckScheduler
from chainwallet.shared.providers.manager import ClientFactory, ProviderFallbackManager

__all__ = [
    "CircuitBreaker",
    "CircuitState",
    "ClientFactory",
    "ClientLease",
    "HealthCheckScheduler",
    "HealthRecord",
    "NetworkId",
    "NetworkRegistry",
    "ProviderConfig",
    "ProviderDescriptor",
    "ProviderFallbackManager",
    "ProviderHealth",
    "ProviderHealthTracker",
    "ProviderKey",
    "ProviderRouter",
    "RpcEndpoint",
    "resolve_providers",
]
