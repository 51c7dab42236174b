"""Core types for the multi-provider blockchain access layer."""

from __future__ import annotations

import enum
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, NamedTuple, Union

if TYPE_CHECKING:
    from chainwallet.ports.outbound import ChainClient

NetworkId = Union[int, str]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CircuitState(str, enum.Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class ProviderKey(NamedTuple):
    """Identifies one backend of one network, e.g. ``(1, "alchemy")``."""

    network: NetworkId
    name: str

    def __str__(self) -> str:
        return f"{self.network}-{self.name}"


@dataclass(frozen=True)
class RpcEndpoint:
    """Connection descriptor for a JSON-RPC backend."""

    url: str
    credential: str = ""

    def __repr__(self) -> str:
        # Credentials are embedded in most provider URLs; keep them out of logs.
        return f"RpcEndpoint(url=<redacted>, has_credential={bool(self.credential)})"


@dataclass(frozen=True)
class ProviderDescriptor:
    """Static description of a backend before credentials are resolved.

    Attributes:
        name:               Unique per network (e.g. "alchemy", "infura").
        priority:           Lower = preferred when health scores tie.
        endpoint_template:  URL with a ``{credential}`` placeholder.
        credential_env_var: Environment variable holding the credential.
    """

    name: str
    priority: int
    endpoint_template: str
    credential_env_var: str


@dataclass(eq=False)
class ProviderConfig:
    """Runtime state of one backend for one network.

    ``health_score`` is always kept within ``[MIN_SCORE, MAX_SCORE]``; all
    mutation goes through :meth:`record_success` / :meth:`record_failure`.
    """

    MIN_SCORE = 0
    MAX_SCORE = 100

    name: str
    priority: int
    endpoint: RpcEndpoint
    enabled: bool = True
    health_score: int = MAX_SCORE
    consecutive_failures: int = 0
    last_failure_at: datetime | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __post_init__(self) -> None:
        self.health_score = self._clamp(self.health_score)

    def record_success(self, bonus: int) -> int:
        with self._lock:
            self.health_score = self._clamp(self.health_score + bonus)
            self.consecutive_failures = 0
            return self.health_score

    def record_failure(self, penalty: int) -> int:
        with self._lock:
            self.consecutive_failures += 1
            self.health_score = self._clamp(self.health_score - penalty)
            self.last_failure_at = utcnow()
            return self.consecutive_failures

    @classmethod
    def _clamp(cls, score: int) -> int:
        return max(cls.MIN_SCORE, min(cls.MAX_SCORE, score))


@dataclass(frozen=True)
class HealthRecord:
    """Outcome of the latest health sample for a provider."""

    is_healthy: bool
    latency_ms: float
    uptime_percent: float
    last_checked_at: datetime


@dataclass
class ProviderHealth:
    """Read-only diagnostics snapshot of one provider."""

    network: NetworkId
    name: str
    priority: int
    enabled: bool
    health_score: int
    consecutive_failures: int
    last_failure_at: datetime | None = None
    is_healthy: bool = False
    latency_ms: float = -1.0
    uptime_percent: float = 0.0
    last_checked_at: datetime | None = None
    circuit_state: CircuitState = CircuitState.CLOSED
    circuit_open: bool = False
    breaker_failure_count: int = 0


class ClientLease(NamedTuple):
    """A raw client handed out by ``get_client_with_fallback``."""

    client: ChainClient
    provider_name: str
