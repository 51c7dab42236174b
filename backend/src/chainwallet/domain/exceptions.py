"""Domain-specific exception hierarchy.

All exceptions inherit from ``DomainError`` so callers can catch the entire
family in one clause while still discriminating on subclass.
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base class for all domain-layer errors."""

    def __init__(self, message: str, *, code: str = "DOMAIN_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(message)


# ── Validation ───────────────────────────────────────────────
class ValidationError(DomainError):
    """Input failed domain validation rules."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="VALIDATION_ERROR")


class UnsupportedChainError(DomainError):
    def __init__(self, chain_id: Any) -> None:
        self.chain_id = chain_id
        super().__init__(f"Unsupported chain ID: {chain_id}", code="UNSUPPORTED_CHAIN")


# ── Providers ────────────────────────────────────────────────
class ProviderConfigurationError(DomainError):
    def __init__(self, message: str) -> None:
        super().__init__(message, code="PROVIDER_CONFIGURATION_ERROR")


class ProviderUnavailableError(DomainError):
    """No provider could serve a request. The only provider error callers see."""

    def __init__(self, message: str, *, network: Any, operation: str, code: str) -> None:
        self.network = network
        self.operation = operation
        super().__init__(message, code=code)


class NoProvidersConfiguredError(ProviderUnavailableError):
    def __init__(self, network: Any, operation: str) -> None:
        super().__init__(
            f"No providers available for network {network} ({operation})",
            network=network,
            operation=operation,
            code="NO_PROVIDERS",
        )


class AllProvidersFailedError(ProviderUnavailableError):
    """Every candidate provider was skipped or exhausted its retries."""

    def __init__(
        self, network: Any, operation: str, last_error: BaseException | None = None
    ) -> None:
        self.last_error = last_error
        if last_error is not None:
            cause = f"{type(last_error).__name__}: {last_error}"
        else:
            cause = "every provider was skipped"
        super().__init__(
            f"All providers failed for network {network} ({operation}): {cause}",
            network=network,
            operation=operation,
            code="PROVIDERS_EXHAUSTED",
        )


class RpcError(DomainError):
    """A provider answered a JSON-RPC call with an ``error`` member."""

    def __init__(self, rpc_code: int, message: str) -> None:
        self.rpc_code = rpc_code
        super().__init__(f"JSON-RPC error {rpc_code}: {message}", code="RPC_ERROR")
