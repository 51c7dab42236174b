"""Prometheus metrics for the wallet backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram


# ── HTTP metrics ─────────────────────────────────────────────
HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# ── RPC provider metrics ─────────────────────────────────────
PROVIDER_CALLS_TOTAL = Counter(
    "rpc_provider_calls_total",
    "Operations executed against an RPC provider",
    ["network", "provider", "outcome"],  # success / exhausted
)

PROVIDER_CALL_DURATION = Histogram(
    "rpc_provider_call_duration_seconds",
    "Duration of successful provider operations, retries included",
    ["network", "provider"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

PROVIDER_HEALTH_SCORE = Gauge(
    "rpc_provider_health_score",
    "Current 0-100 health score of an RPC provider",
    ["network", "provider"],
)

CIRCUIT_BREAKER_OPEN = Gauge(
    "rpc_circuit_breaker_open",
    "1 while a provider's circuit breaker is open",
    ["network", "provider"],
)

PROVIDER_FAILOVERS_TOTAL = Counter(
    "rpc_provider_failovers_total",
    "Operations served by a provider other than the first candidate",
    ["network"],
)

PROVIDERS_EXHAUSTED_TOTAL = Counter(
    "rpc_providers_exhausted_total",
    "Operations that failed on every provider of a network",
    ["network"],
)

HEALTH_CHECK_DURATION = Histogram(
    "rpc_health_check_duration_seconds",
    "Latency of successful provider health probes",
    ["network", "provider"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)
