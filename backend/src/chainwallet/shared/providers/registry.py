"""Network registry — the fixed set of providers configured per network."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence

import structlog

from chainwallet.domain.exceptions import ProviderConfigurationError
from chainwallet.shared.providers.types import (
    NetworkId,
    ProviderConfig,
    ProviderDescriptor,
    ProviderKey,
    RpcEndpoint,
)

logger = structlog.get_logger(__name__)


class NetworkRegistry:
    """Maps each network to its ordered providers.

    The shape is fixed at construction: networks and their provider sets never
    change afterwards, only the mutable fields of each ``ProviderConfig`` do.
    """

    def __init__(self, providers: Mapping[NetworkId, Sequence[ProviderConfig]]) -> None:
        self._providers: dict[NetworkId, tuple[ProviderConfig, ...]] = {}
        for network, configs in providers.items():
            seen: set[str] = set()
            for cfg in configs:
                if cfg.name in seen:
                    raise ProviderConfigurationError(
                        f"Duplicate provider {cfg.name!r} for network {network}"
                    )
                seen.add(cfg.name)
            self._providers[network] = tuple(sorted(configs, key=lambda c: c.priority))

    @property
    def networks(self) -> list[NetworkId]:
        return list(self._providers)

    def providers(self, network: NetworkId) -> tuple[ProviderConfig, ...]:
        """Providers of a network in priority order (empty if unknown)."""
        return self._providers.get(network, ())

    def get(self, network: NetworkId, name: str) -> ProviderConfig | None:
        return next((p for p in self.providers(network) if p.name == name), None)

    def items(self) -> Iterator[tuple[ProviderKey, ProviderConfig]]:
        for network, configs in self._providers.items():
            for cfg in configs:
                yield ProviderKey(network, cfg.name), cfg

    def __contains__(self, network: object) -> bool:
        return network in self._providers

    def __len__(self) -> int:
        return len(self._providers)


def resolve_providers(
    descriptors: Mapping[NetworkId, Sequence[ProviderDescriptor]],
    credentials: Mapping[str, str],
) -> NetworkRegistry:
    """Build a registry, filling each endpoint template with its credential.

    A descriptor whose credential is missing or blank yields a disabled
    provider rather than an error, so the system runs on whatever subset of
    backends is configured.
    """
    providers: dict[NetworkId, list[ProviderConfig]] = {}
    for network, entries in descriptors.items():
        configs: list[ProviderConfig] = []
        for desc in entries:
            credential = credentials.get(desc.credential_env_var, "").strip()
            url = desc.endpoint_template.format(credential=credential) if credential else ""
            configs.append(
                ProviderConfig(
                    name=desc.name,
                    priority=desc.priority,
                    endpoint=RpcEndpoint(url=url, credential=credential),
                    enabled=bool(credential),
                )
            )
        providers[network] = configs

        enabled = [c.name for c in configs if c.enabled]
        logger.info(
            "network_providers_resolved",
            network=network,
            enabled=enabled,
            disabled=[c.name for c in configs if not c.enabled],
        )
    return NetworkRegistry(providers)
