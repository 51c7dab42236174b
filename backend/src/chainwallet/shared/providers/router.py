"""Provider router — orders a network's providers for fail-over.

Only enabled providers are candidates. Better health comes first; priority
breaks ties. Circuit-breaker gating is left to the caller, which must decide
per candidate whether to admit a half-open trial.
"""

from __future__ import annotations

import structlog

from chainwallet.shared.providers.registry import NetworkRegistry
from chainwallet.shared.providers.types import NetworkId, ProviderConfig

logger = structlog.get_logger(__name__)


class ProviderRouter:
    """Computes the candidate order for a network from current health state."""

    def __init__(self, registry: NetworkRegistry) -> None:
        self._registry = registry

    def get_fallback_chain(self, network: NetworkId) -> list[ProviderConfig]:
        candidates = [p for p in self._registry.providers(network) if p.enabled]
        if not candidates:
            logger.warning(
                "no_enabled_providers",
                network=network,
                total_configured=len(self._registry.providers(network)),
            )
        return sorted(candidates, key=lambda p: (-p.health_score, p.priority))
