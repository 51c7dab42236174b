"""Data Transfer Objects — Pydantic models for API boundaries.

DTOs handle serialisation, validation, and documentation.  They live in the
application layer because they are *not* domain objects; they adapt between
the external world and the provider layer.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from chainwallet.domain.enums import Severity
from chainwallet.shared.providers.types import CircuitState

ADDRESS_PATTERN = r"^0x[a-fA-F0-9]{40}$"
TX_HASH_PATTERN = r"^0x[a-fA-F0-9]{64}$"

WEI_PER_ETHER = Decimal(10) ** 18
WEI_PER_GWEI = Decimal(10) ** 9


def format_units(value: int, unit: Decimal) -> str:
    """Render an integer amount in a larger unit without float rounding."""
    amount = (Decimal(value) / unit).normalize()
    return format(amount, "f")


# ═══════════════════════════════════════════════════════════════
#  Common
# ═══════════════════════════════════════════════════════════════
class ErrorResponse(BaseModel):
    code: str
    message: str
    details: dict | None = None  # type: ignore[type-arg]


# ═══════════════════════════════════════════════════════════════
#  Provider diagnostics
# ═══════════════════════════════════════════════════════════════
class ProviderHealthResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    network: int | str
    name: str
    priority: int
    enabled: bool
    health_score: int = Field(ge=0, le=100)
    consecutive_failures: int
    last_failure_at: datetime | None = None
    is_healthy: bool
    latency_ms: float
    uptime_percent: float
    last_checked_at: datetime | None = None
    circuit_state: CircuitState
    circuit_open: bool
    breaker_failure_count: int


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    environment: str = "development"
    providers: dict[str, list[ProviderHealthResponse]] = Field(default_factory=dict)


class DiagnosticEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    event_type: str
    severity: Severity
    occurred_at: datetime
    network: str = ""
    provider: str | None = None
    operation: str | None = None
    failure_count: int | None = None
    last_error: str | None = None
    reason: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)


# ═══════════════════════════════════════════════════════════════
#  Chains
# ═══════════════════════════════════════════════════════════════
class ChainResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    chain_id: int
    name: str
    native_symbol: str


class BlockNumberResponse(BaseModel):
    chain_id: int
    block_number: int


class GasPriceResponse(BaseModel):
    chain_id: int
    wei: str
    gwei: str

    @classmethod
    def from_wei(cls, chain_id: int, wei: int) -> GasPriceResponse:
        return cls(chain_id=chain_id, wei=str(wei), gwei=format_units(wei, WEI_PER_GWEI))


class BalanceResponse(BaseModel):
    chain_id: int
    address: str
    symbol: str
    wei: str
    formatted: str

    @classmethod
    def from_wei(cls, chain_id: int, address: str, symbol: str, wei: int) -> BalanceResponse:
        return cls(
            chain_id=chain_id,
            address=address,
            symbol=symbol,
            wei=str(wei),
            formatted=format_units(wei, WEI_PER_ETHER),
        )


class TransactionResponse(BaseModel):
    chain_id: int
    tx_hash: str
    found: bool
    data: dict[str, Any] | None = None
