"""Health, Provider diagnostics, Chains — REST routers."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import JSONResponse, Response

from chainwallet.adapters.outbound.rpc import SUPPORTED_CHAINS
from chainwallet.application.consumers import DiagnosticEventLog
from chainwallet.application.dtos import (
    BalanceResponse,
    BlockNumberResponse,
    ChainResponse,
    DiagnosticEventResponse,
    ErrorResponse,
    GasPriceResponse,
    HealthResponse,
    ProviderHealthResponse,
    TransactionResponse,
)
from chainwallet.application.services import ChainReadService
from chainwallet.config import Settings
from chainwallet.dependencies import (
    get_app_settings,
    get_chain_read_service,
    get_event_log,
    get_provider_manager,
)
from chainwallet.domain.enums import Severity
from chainwallet.domain.exceptions import UnsupportedChainError
from chainwallet.shared.providers import ProviderFallbackManager, ProviderHealth


def _is_available(health: ProviderHealth) -> bool:
    return health.enabled and not health.circuit_open


# ═══════════════════════════════════════════════════════════════
#  Health
# ═══════════════════════════════════════════════════════════════
health_router = APIRouter(tags=["Health"])


@health_router.get("/health", response_model=HealthResponse)
async def health_check(
    settings: Settings = Depends(get_app_settings),
    manager: ProviderFallbackManager = Depends(get_provider_manager),
) -> JSONResponse:
    """Overall status plus provider health for every network.

    Degraded when some network has no enabled provider with a usable circuit.
    """
    by_network = manager.get_provider_health()
    providers = {
        str(network): [ProviderHealthResponse.model_validate(h) for h in healths]
        for network, healths in by_network.items()  # type: ignore[union-attr]
    }
    degraded = any(
        not any(_is_available(h) for h in healths)
        for healths in by_network.values()  # type: ignore[union-attr]
    )
    body = HealthResponse(
        status="degraded" if degraded else "ok",
        environment=settings.app_env.value,
        providers=providers,
    )
    return JSONResponse(
        content=body.model_dump(mode="json"),
        status_code=503 if degraded else 200,
    )


@health_router.get("/metrics")
async def prometheus_metrics() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


# ═══════════════════════════════════════════════════════════════
#  Provider diagnostics
# ═══════════════════════════════════════════════════════════════
providers_router = APIRouter(prefix="/providers", tags=["Provider Health"])


@providers_router.get("/health", response_model=list[ProviderHealthResponse])
async def provider_health(
    chain_id: int | None = Query(None, description="Restrict to one chain"),
    manager: ProviderFallbackManager = Depends(get_provider_manager),
) -> list[ProviderHealthResponse]:
    """Health snapshots for the configured RPC providers."""
    if chain_id is not None:
        if chain_id not in manager.registry:
            raise UnsupportedChainError(chain_id)
        healths = manager.get_provider_health(chain_id)
    else:
        by_network = manager.get_provider_health()
        healths = [h for items in by_network.values() for h in items]  # type: ignore[union-attr]
    return [ProviderHealthResponse.model_validate(h) for h in healths]  # type: ignore[union-attr]


@providers_router.get("/events", response_model=list[DiagnosticEventResponse])
async def provider_events(
    limit: int = Query(100, ge=1, le=1000),
    min_severity: Severity = Query(Severity.LOW),
    event_log: DiagnosticEventLog = Depends(get_event_log),
) -> list[DiagnosticEventResponse]:
    """Recent circuit-breaker and exhaustion events, newest first."""
    return [
        DiagnosticEventResponse.model_validate(e)
        for e in event_log.recent(limit, min_severity=min_severity)
    ]


# ═══════════════════════════════════════════════════════════════
#  Chains
# ═══════════════════════════════════════════════════════════════
chains_router = APIRouter(
    prefix="/chains",
    tags=["Chains"],
    responses={
        404: {"model": ErrorResponse, "description": "Unsupported chain"},
        422: {"model": ErrorResponse, "description": "Malformed address or hash"},
        503: {"model": ErrorResponse, "description": "No provider could serve the read"},
    },
)


def _chain_or_404(chain_id: int) -> None:
    if chain_id not in SUPPORTED_CHAINS:
        raise UnsupportedChainError(chain_id)


@chains_router.get("", response_model=list[ChainResponse])
async def list_chains() -> list[ChainResponse]:
    return [ChainResponse.model_validate(c) for c in SUPPORTED_CHAINS.values()]


@chains_router.get("/{chain_id}/block-number", response_model=BlockNumberResponse)
async def get_block_number(
    chain_id: int,
    service: ChainReadService = Depends(get_chain_read_service),
) -> BlockNumberResponse:
    _chain_or_404(chain_id)
    block = await service.get_block_number(chain_id)
    return BlockNumberResponse(chain_id=chain_id, block_number=block)


@chains_router.get("/{chain_id}/gas-price", response_model=GasPriceResponse)
async def get_gas_price(
    chain_id: int,
    service: ChainReadService = Depends(get_chain_read_service),
) -> GasPriceResponse:
    _chain_or_404(chain_id)
    wei = await service.get_gas_price(chain_id)
    return GasPriceResponse.from_wei(chain_id, wei)


@chains_router.get("/{chain_id}/balance/{address}", response_model=BalanceResponse)
async def get_balance(
    chain_id: int,
    address: str,
    service: ChainReadService = Depends(get_chain_read_service),
) -> BalanceResponse:
    _chain_or_404(chain_id)
    wei = await service.get_native_balance(address, chain_id)
    symbol = SUPPORTED_CHAINS[chain_id].native_symbol
    return BalanceResponse.from_wei(chain_id, address, symbol, wei)


@chains_router.get("/{chain_id}/transactions/{tx_hash}", response_model=TransactionResponse)
async def get_transaction(
    chain_id: int,
    tx_hash: str,
    service: ChainReadService = Depends(get_chain_read_service),
) -> TransactionResponse:
    _chain_or_404(chain_id)
    tx = await service.get_transaction(tx_hash, chain_id)
    return TransactionResponse(chain_id=chain_id, tx_hash=tx_hash, found=tx is not None, data=tx)


@chains_router.get(
    "/{chain_id}/transactions/{tx_hash}/receipt", response_model=TransactionResponse
)
async def get_transaction_receipt(
    chain_id: int,
    tx_hash: str,
    service: ChainReadService = Depends(get_chain_read_service),
) -> TransactionResponse:
    _chain_or_404(chain_id)
    receipt = await service.get_transaction_receipt(tx_hash, chain_id)
    return TransactionResponse(
        chain_id=chain_id, tx_hash=tx_hash, found=receipt is not None, data=receipt
    )
