"""In-memory chain clients and provider helpers shared by the tests."""

from __future__ import annotations

import asyncio
from typing import Any

from chainwallet.ports.outbound import ChainClient
from chainwallet.shared.providers import (
    NetworkId,
    ProviderConfig,
    RpcEndpoint,
)


class FakeChainClient(ChainClient):
    """In-memory chain client whose failures and latency are scriptable.

    ``fail_times`` makes the next N calls raise ``error``; ``always_fail``
    makes every call raise until it is switched off again.
    """

    def __init__(
        self,
        name: str = "fake",
        *,
        block_number: int = 19_000_000,
        gas_price: int = 30_000_000_000,
        balance: int = 1_500_000_000_000_000_000,
        delay: float = 0.0,
    ) -> None:
        self.name = name
        self.block_number = block_number
        self.gas_price = gas_price
        self.balance = balance
        self.delay = delay
        self.always_fail = False
        self.fail_times = 0
        self.error: Exception = ConnectionError(f"{name} unreachable")
        self.transactions: dict[str, dict[str, Any]] = {}
        self.receipts: dict[str, dict[str, Any]] = {}
        self.calls = 0
        self.closed = False

    async def _respond(self, value: Any) -> Any:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.always_fail:
            raise self.error
        if self.fail_times > 0:
            self.fail_times -= 1
            raise self.error
        return value

    async def get_block_number(self) -> int:
        return await self._respond(self.block_number)

    async def get_balance(self, address: str, block: str = "latest") -> int:
        return await self._respond(self.balance)

    async def get_gas_price(self) -> int:
        return await self._respond(self.gas_price)

    async def get_transaction(self, tx_hash: str) -> dict[str, Any] | None:
        return await self._respond(self.transactions.get(tx_hash))

    async def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any] | None:
        return await self._respond(self.receipts.get(tx_hash))

    async def aclose(self) -> None:
        self.closed = True


def make_provider(name: str, priority: int, *, enabled: bool = True) -> ProviderConfig:
    return ProviderConfig(
        name=name,
        priority=priority,
        endpoint=RpcEndpoint(url=f"https://{name}.example/rpc", credential="secret"),
        enabled=enabled,
    )


class FakeClientPool:
    """Client factory handing out one ``FakeChainClient`` per provider name."""

    def __init__(self) -> None:
        self.clients: dict[tuple[NetworkId, str], FakeChainClient] = {}

    def __call__(self, network: NetworkId, provider: ProviderConfig) -> FakeChainClient:
        client = FakeChainClient(provider.name)
        self.clients[(network, provider.name)] = client
        return client

    def get(self, name: str, network: NetworkId = 1) -> FakeChainClient:
        return self.clients[(network, name)]

