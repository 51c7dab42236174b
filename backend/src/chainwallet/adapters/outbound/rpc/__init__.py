"""RPC adapter — JSON-RPC chain clients and the per-chain provider table."""

from chainwallet.adapters.outbound.rpc.client import JsonRpcClient
from chainwallet.adapters.outbound.rpc.chains import (
    CHAIN_PROVIDERS,
    SUPPORTED_CHAINS,
    Chain,
    build_network_registry,
    json_rpc_client_factory,
)

__all__ = [
    "CHAIN_PROVIDERS",
    "SUPPORTED_CHAINS",
    "Chain",
    "JsonRpcClient",
    "build_network_registry",
    "json_rpc_client_factory",
]
