"""Supported chains and the RPC providers configured for each of them."""

from __future__ import annotations

from dataclasses import dataclass

from chainwallet.adapters.outbound.rpc.client import JsonRpcClient
from chainwallet.config import Settings
from chainwallet.ports.outbound import ChainClient
from chainwallet.shared.providers import (
    ClientFactory,
    NetworkRegistry,
    ProviderConfig,
    ProviderDescriptor,
    resolve_providers,
)
from chainwallet.shared.providers.types import NetworkId


@dataclass(frozen=True)
class Chain:
    chain_id: int
    name: str
    native_symbol: str


SUPPORTED_CHAINS: dict[int, Chain] = {
    1: Chain(1, "Ethereum", "ETH"),
    56: Chain(56, "BSC", "BNB"),
    137: Chain(137, "Polygon", "POL"),
    8453: Chain(8453, "Base", "ETH"),
    42161: Chain(42161, "Arbitrum", "ETH"),
}

_ALCHEMY = "ALCHEMY_API_KEY"
_INFURA = "INFURA_API_KEY"
_ANKR = "ANKR_API_KEY"
_QUICKNODE = "QUICKNODE_ENDPOINT"

CHAIN_PROVIDERS: dict[int, tuple[ProviderDescriptor, ...]] = {
    1: (
        ProviderDescriptor("alchemy", 1, "https://eth-mainnet.g.alchemy.com/v2/{credential}", _ALCHEMY),
        ProviderDescriptor("infura", 2, "https://mainnet.infura.io/v3/{credential}", _INFURA),
        ProviderDescriptor("ankr", 3, "https://rpc.ankr.com/eth/{credential}", _ANKR),
        # The QuickNode credential is the full endpoint URL.
        ProviderDescriptor("quicknode", 4, "{credential}", _QUICKNODE),
    ),
    137: (
        ProviderDescriptor("alchemy", 1, "https://polygon-mainnet.g.alchemy.com/v2/{credential}", _ALCHEMY),
        ProviderDescriptor("infura", 2, "https://polygon-mainnet.infura.io/v3/{credential}", _INFURA),
        ProviderDescriptor("ankr", 3, "https://rpc.ankr.com/polygon/{credential}", _ANKR),
    ),
    56: (
        ProviderDescriptor("alchemy", 1, "https://bnb-mainnet.g.alchemy.com/v2/{credential}", _ALCHEMY),
        ProviderDescriptor("ankr", 2, "https://rpc.ankr.com/bsc/{credential}", _ANKR),
    ),
    8453: (
        ProviderDescriptor("alchemy", 1, "https://base-mainnet.g.alchemy.com/v2/{credential}", _ALCHEMY),
        ProviderDescriptor("ankr", 2, "https://rpc.ankr.com/base/{credential}", _ANKR),
    ),
    42161: (
        ProviderDescriptor("alchemy", 1, "https://arb-mainnet.g.alchemy.com/v2/{credential}", _ALCHEMY),
        ProviderDescriptor("infura", 2, "https://arbitrum-mainnet.infura.io/v3/{credential}", _INFURA),
        ProviderDescriptor("ankr", 3, "https://rpc.ankr.com/arbitrum/{credential}", _ANKR),
    ),
}


def build_network_registry(settings: Settings) -> NetworkRegistry:
    """Resolve the provider table against the credentials present in settings."""
    return resolve_providers(CHAIN_PROVIDERS, settings.credentials())


def json_rpc_client_factory(timeout: float) -> ClientFactory:
    """Client factory building one ``JsonRpcClient`` per provider endpoint."""

    def _factory(network: NetworkId, provider: ProviderConfig) -> ChainClient:
        return JsonRpcClient(
            provider.endpoint.url,
            timeout=timeout,
            provider_name=f"{network}-{provider.name}",
        )

    return _factory
