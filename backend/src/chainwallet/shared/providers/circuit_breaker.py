"""Circuit breaker — stops routing to a provider that keeps failing.

State machine:
    CLOSED    → (failure_count reaches threshold) → OPEN
    OPEN      → (open timeout elapses)            → HALF_OPEN
    HALF_OPEN → (trial succeeds)                  → record deleted (CLOSED)
    HALF_OPEN → (trial fails)                     → OPEN, fresh ``opened_at``

Breakers are created lazily by the manager on a provider's first failure and
dropped again on recovery, so "no breaker" means CLOSED with zero failures.
While HALF_OPEN, at most one trial request is admitted at a time.
"""

from __future__ import annotations

import threading
import time

import structlog

from chainwallet.shared.providers.types import CircuitState

logger = structlog.get_logger(__name__)


class CircuitBreaker:
    """Per-(network, provider) circuit breaker with single-trial half-open probing."""

    def __init__(
        self,
        provider: str,
        *,
        failure_threshold: int = 5,
        open_timeout_seconds: float = 60.0,
    ) -> None:
        self._provider = provider
        self._failure_threshold = failure_threshold
        self._open_timeout = open_timeout_seconds

        self._is_open = False
        self._opened_at: float = 0.0
        self._failure_count = 0
        self._trial_in_flight = False
        self._lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def opened_at(self) -> float:
        """``time.monotonic()`` reading taken when the breaker last opened."""
        return self._opened_at

    @property
    def failure_count(self) -> int:
        return self._failure_count

    @property
    def trial_in_flight(self) -> bool:
        return self._trial_in_flight

    @property
    def state(self) -> CircuitState:
        """Current state, derived without side effects."""
        with self._lock:
            return self._current_state()

    def is_blocking(self) -> bool:
        """True while OPEN and the timeout has not elapsed. Does not admit a trial."""
        with self._lock:
            return self._current_state() == CircuitState.OPEN

    def allow_request(self) -> bool:
        """Check if a request may go through, claiming the half-open trial if needed."""
        with self._lock:
            state = self._current_state()
            if state == CircuitState.CLOSED:
                return True
            if state == CircuitState.OPEN:
                return False

            if self._trial_in_flight:
                return False
            self._trial_in_flight = True
            logger.info(
                "circuit_breaker_half_open",
                provider=self._provider,
                elapsed_s=round(time.monotonic() - self._opened_at, 1),
            )
            return True

    def release_trial(self) -> None:
        """Give back an admitted trial whose outcome will never be recorded."""
        with self._lock:
            self._trial_in_flight = False

    def record_failure(self) -> bool:
        """Count a failure. Returns True if this failure opened the breaker."""
        with self._lock:
            self._failure_count += 1
            state = self._current_state()

            if self._trial_in_flight or state == CircuitState.HALF_OPEN:
                self._trip()
                logger.warning(
                    "circuit_breaker_reopened",
                    provider=self._provider,
                    failures=self._failure_count,
                )
                return True

            if state == CircuitState.CLOSED and self._failure_count >= self._failure_threshold:
                self._trip()
                logger.warning(
                    "circuit_breaker_opened",
                    provider=self._provider,
                    failures=self._failure_count,
                    open_timeout_s=self._open_timeout,
                )
                return True

            return False

    def _trip(self) -> None:
        """Caller must hold lock."""
        self._is_open = True
        self._opened_at = time.monotonic()
        self._trial_in_flight = False

    def _current_state(self) -> CircuitState:
        """Caller must hold lock."""
        if not self._is_open:
            return CircuitState.CLOSED
        if time.monotonic() - self._opened_at >= self._open_timeout:
            return CircuitState.HALF_OPEN
        return CircuitState.OPEN
