"""Outbound ports — interfaces that infrastructure adapters must implement.

The provider manager and application services depend only on these
abstractions, never on a concrete RPC transport.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from chainwallet.domain.events import DomainEvent


# ═══════════════════════════════════════════════════════════════
#  Chain access
# ═══════════════════════════════════════════════════════════════
class ChainClient(ABC):
    """Read capabilities every provider client offers for an EVM network.

    Quantities (block numbers, wei amounts) are returned as ``int``.
    Lookups of unknown transactions return ``None``.
    """

    @abstractmethod
    async def get_block_number(self) -> int: ...

    @abstractmethod
    async def get_balance(self, address: str, block: str = "latest") -> int: ...

    @abstractmethod
    async def get_gas_price(self) -> int: ...

    @abstractmethod
    async def get_transaction(self, tx_hash: str) -> dict[str, Any] | None: ...

    @abstractmethod
    async def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any] | None: ...

    @abstractmethod
    async def aclose(self) -> None: ...


# ═══════════════════════════════════════════════════════════════
#  Events
# ═══════════════════════════════════════════════════════════════
class EventBusPort(ABC):
    """Publish/subscribe for domain events."""

    @abstractmethod
    async def publish(self, event: DomainEvent) -> None: ...

    @abstractmethod
    def subscribe(
        self,
        event_type: str,
        handler: Any,
    ) -> None: ...
