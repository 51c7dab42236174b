"""Global exception handlers — map domain errors to HTTP responses."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import ORJSONResponse
import structlog

from chainwallet.application.dtos import ErrorResponse
from chainwallet.domain.exceptions import (
    DomainError,
    ProviderUnavailableError,
    UnsupportedChainError,
    ValidationError,
)

logger = structlog.get_logger(__name__)


def _error(
    status_code: int, code: str, message: str, details: dict[str, Any] | None = None
) -> ORJSONResponse:
    body = ErrorResponse(code=code, message=message, details=details)
    return ORJSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def register_exception_handlers(app: FastAPI) -> None:
    """Register all domain→HTTP exception mappings."""

    @app.exception_handler(ValidationError)
    async def handle_validation(request: Request, exc: ValidationError) -> ORJSONResponse:
        return _error(422, exc.code, exc.message)

    @app.exception_handler(UnsupportedChainError)
    async def handle_unsupported_chain(
        request: Request, exc: UnsupportedChainError
    ) -> ORJSONResponse:
        return _error(404, exc.code, exc.message)

    @app.exception_handler(ProviderUnavailableError)
    async def handle_provider_unavailable(
        request: Request, exc: ProviderUnavailableError
    ) -> ORJSONResponse:
        logger.error(
            "provider_unavailable_http",
            network=exc.network,
            operation=exc.operation,
            message=exc.message,
        )
        return _error(
            503,
            exc.code,
            exc.message,
            {"network": str(exc.network), "operation": exc.operation},
        )

    @app.exception_handler(DomainError)
    async def handle_domain(request: Request, exc: DomainError) -> ORJSONResponse:
        return _error(400, exc.code, exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> ORJSONResponse:
        logger.exception("unhandled_exception", error=str(exc))
        return _error(500, "INTERNAL_ERROR", "An unexpected error occurred")
