"""Chain read service: the wallet's blockchain reads, routed through the
provider fallback manager.

Each method wraps one logical read in an operation closure; provider choice,
retries, and fail-over are left entirely to the manager.
"""

from __future__ import annotations

import re
from typing import Any

import structlog

from chainwallet.application.dtos import ADDRESS_PATTERN, TX_HASH_PATTERN
from chainwallet.domain.exceptions import UnsupportedChainError, ValidationError
from chainwallet.shared.providers import ProviderFallbackManager

logger = structlog.get_logger(__name__)


class ChainReadService:
    """Read-only chain queries for the route layer."""

    def __init__(self, manager: ProviderFallbackManager) -> None:
        self._manager = manager

    async def get_block_number(self, chain_id: int) -> int:
        self._require_chain(chain_id)
        return await self._manager.execute_with_fallback(
            chain_id,
            lambda client: client.get_block_number(),
            f"getBlockNumber({chain_id})",
        )

    async def get_gas_price(self, chain_id: int) -> int:
        self._require_chain(chain_id)
        return await self._manager.execute_with_fallback(
            chain_id,
            lambda client: client.get_gas_price(),
            f"getGasPrice({chain_id})",
        )

    async def get_native_balance(self, address: str, chain_id: int) -> int:
        self._require_chain(chain_id)
        _require_format(address, ADDRESS_PATTERN, "address")
        return await self._manager.execute_with_fallback(
            chain_id,
            lambda client: client.get_balance(address),
            f"getBalance({address})",
        )

    async def get_transaction(self, tx_hash: str, chain_id: int) -> dict[str, Any] | None:
        self._require_chain(chain_id)
        _require_format(tx_hash, TX_HASH_PATTERN, "transaction hash")
        tx = await self._manager.execute_with_fallback(
            chain_id,
            lambda client: client.get_transaction(tx_hash),
            f"getTransaction({tx_hash})",
        )
        if tx is None:
            logger.info("transaction_not_found", tx_hash=tx_hash, chain_id=chain_id)
        return tx

    async def get_transaction_receipt(
        self, tx_hash: str, chain_id: int
    ) -> dict[str, Any] | None:
        self._require_chain(chain_id)
        _require_format(tx_hash, TX_HASH_PATTERN, "transaction hash")
        return await self._manager.execute_with_fallback(
            chain_id,
            lambda client: client.get_transaction_receipt(tx_hash),
            f"getTransactionReceipt({tx_hash})",
        )

    def _require_chain(self, chain_id: int) -> None:
        if chain_id not in self._manager.registry:
            raise UnsupportedChainError(chain_id)


def _require_format(value: str, pattern: str, what: str) -> None:
    if not re.fullmatch(pattern, value):
        raise ValidationError(f"Invalid {what}: {value!r}")
