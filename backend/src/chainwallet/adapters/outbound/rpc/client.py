"""JSON-RPC chain client — the concrete ``ChainClient`` every provider uses.

Speaks plain Ethereum JSON-RPC 2.0 over ``httpx``, so any provider that
exposes a standard endpoint (Alchemy, Infura, Ankr, QuickNode, ...) is
reachable without a vendor SDK. Calls never retry: retries and fail-over are
the provider manager's job.
"""

from __future__ import annotations

import itertools
from typing import Any

import httpx
import structlog

from chainwallet.domain.exceptions import RpcError
from chainwallet.ports.outbound import ChainClient

logger = structlog.get_logger(__name__)


def _to_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Expected hex quantity, got {value!r}")
    return int(value, 16)


class JsonRpcClient(ChainClient):
    """Async Ethereum JSON-RPC client bound to one provider endpoint."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 15.0,
        provider_name: str = "",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not url:
            raise ValueError("JSON-RPC endpoint URL is required")
        self._provider = provider_name
        self._url = url
        self._ids = itertools.count(1)
        self._client = httpx.AsyncClient(
            headers={"Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    async def call(self, method: str, params: list[Any] | None = None) -> Any:
        """Send one JSON-RPC request and return its ``result`` member."""
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }
        resp = await self._client.post(self._url, json=payload)
        resp.raise_for_status()
        data = resp.json()

        error = data.get("error")
        if error:
            logger.debug(
                "rpc_error_response",
                provider=self._provider,
                method=method,
                code=error.get("code"),
            )
            raise RpcError(int(error.get("code", -32000)), str(error.get("message", "")))
        if "result" not in data:
            raise RpcError(-32603, f"Malformed response to {method}: no result")
        return data["result"]

    # ── ChainClient implementation ────────────────────────────
    async def get_block_number(self) -> int:
        return _to_int(await self.call("eth_blockNumber"))

    async def get_balance(self, address: str, block: str = "latest") -> int:
        return _to_int(await self.call("eth_getBalance", [address, block]))

    async def get_gas_price(self) -> int:
        return _to_int(await self.call("eth_gasPrice"))

    async def get_transaction(self, tx_hash: str) -> dict[str, Any] | None:
        return await self.call("eth_getTransactionByHash", [tx_hash])

    async def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any] | None:
        return await self.call("eth_getTransactionReceipt", [tx_hash])

    async def aclose(self) -> None:
        await self._client.aclose()
