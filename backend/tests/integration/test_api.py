"""Integration tests for API endpoints using FastAPI TestClient."""

from __future__ import annotations

import time

import pytest
from fastapi.testclient import TestClient

from chainwallet import main
from chainwallet.config import get_settings
from chainwallet.main import create_app

from fakes import FakeClientPool

TX_HASH = "0x" + "ab" * 32
ADDRESS = "0x" + "12" * 20


def _settings(**overrides):
    options = dict(
        _env_file=None,
        alchemy_api_key="alc",
        infura_api_key="inf",
        ankr_api_key="ank",
        quicknode_endpoint="https://qn.example/abc",
        health_check_enabled=False,
        provider_max_retry_attempts=1,
        provider_backoff_base=0.0,
        provider_backoff_max=0.0,
        provider_timeout_seconds=1.0,
    )
    options.update(overrides)
    return get_settings(**options)


@pytest.fixture
def pool() -> FakeClientPool:
    return FakeClientPool()


@pytest.fixture
def client(pool):
    app = create_app(_settings(), client_factory=pool)
    with TestClient(app) as test_client:
        yield test_client


class TestHealthEndpoints:
    def test_root(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.json()["health"] == "/api/v1/health"

    def test_health_check(self, client):
        resp = client.get("/api/v1/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert "version" in data
        assert [p["name"] for p in data["providers"]["1"]] == [
            "alchemy",
            "infura",
            "ankr",
            "quicknode",
        ]

    def test_health_degraded_without_credentials(self):
        settings = _settings(
            alchemy_api_key="", infura_api_key="", ankr_api_key="", quicknode_endpoint=""
        )
        with TestClient(create_app(settings, client_factory=FakeClientPool())) as c:
            resp = c.get("/api/v1/health")
        assert resp.status_code == 503
        assert resp.json()["status"] == "degraded"

    def test_metrics_endpoint(self, client):
        client.get("/api/v1/chains/1/block-number")
        resp = client.get("/api/v1/metrics")
        assert resp.status_code == 200
        assert b"rpc_provider_calls_total" in resp.content
        assert b"http_requests_total" in resp.content

    def test_unmatched_paths_share_one_metric_label(self, client):
        resp = client.get("/nope/0xdeadbeefcafe")
        assert resp.status_code == 404
        metrics = client.get("/api/v1/metrics").content
        assert b'endpoint="<unmatched>"' in metrics
        assert b"0xdeadbeefcafe" not in metrics

    def test_half_open_providers_count_as_available(self, pool):
        settings = _settings(
            circuit_breaker_failure_threshold=1,
            circuit_breaker_open_timeout_seconds=0.3,
        )
        with TestClient(create_app(settings, client_factory=pool)) as c:
            for name in ("alchemy", "ankr"):
                pool.get(name, 56).always_fail = True
            assert c.get("/api/v1/chains/56/block-number").status_code == 503
            assert c.get("/api/v1/health").status_code == 503

            time.sleep(0.4)
            resp = c.get("/api/v1/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
        bsc = resp.json()["providers"]["56"]
        assert {p["circuit_state"] for p in bsc} == {"half_open"}
        assert not any(p["circuit_open"] for p in bsc)

    def test_request_id_is_echoed(self, client):
        resp = client.get("/", headers={"X-Request-ID": "abc123"})
        assert resp.headers["X-Request-ID"] == "abc123"


class TestChainEndpoints:
    def test_list_chains(self, client):
        resp = client.get("/api/v1/chains")
        assert resp.status_code == 200
        ids = {c["chain_id"] for c in resp.json()}
        assert ids == {1, 56, 137, 8453, 42161}

    def test_block_number(self, client, pool):
        pool.get("alchemy", 1).block_number = 21_000_000
        resp = client.get("/api/v1/chains/1/block-number")
        assert resp.status_code == 200
        assert resp.json() == {"chain_id": 1, "block_number": 21_000_000}

    def test_gas_price_in_gwei(self, client):
        resp = client.get("/api/v1/chains/1/gas-price")
        assert resp.status_code == 200
        assert resp.json() == {"chain_id": 1, "wei": "30000000000", "gwei": "30"}

    def test_balance(self, client):
        resp = client.get(f"/api/v1/chains/137/balance/{ADDRESS}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["symbol"] == "POL"
        assert data["wei"] == "1500000000000000000"
        assert data["formatted"] == "1.5"

    def test_invalid_address_rejected(self, client, pool):
        resp = client.get("/api/v1/chains/1/balance/not-an-address")
        assert resp.status_code == 422
        data = resp.json()
        assert data["code"] == "VALIDATION_ERROR"
        assert "not-an-address" in data["message"]
        assert pool.get("alchemy", 1).calls == 0

    def test_invalid_tx_hash_rejected(self, client):
        resp = client.get("/api/v1/chains/1/transactions/0x1234/receipt")
        assert resp.status_code == 422
        assert resp.json()["code"] == "VALIDATION_ERROR"

    def test_unsupported_chain_checked_before_address(self, client):
        resp = client.get("/api/v1/chains/999/balance/not-an-address")
        assert resp.status_code == 404
        assert resp.json()["code"] == "UNSUPPORTED_CHAIN"

    def test_transaction_found(self, client, pool):
        pool.get("alchemy", 1).transactions[TX_HASH] = {"hash": TX_HASH, "value": "0x0"}
        resp = client.get(f"/api/v1/chains/1/transactions/{TX_HASH}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["found"] is True
        assert data["data"]["hash"] == TX_HASH

    def test_receipt_not_found(self, client):
        resp = client.get(f"/api/v1/chains/1/transactions/{TX_HASH}/receipt")
        assert resp.status_code == 200
        assert resp.json()["found"] is False
        assert resp.json()["data"] is None

    def test_unsupported_chain(self, client):
        resp = client.get("/api/v1/chains/999/block-number")
        assert resp.status_code == 404
        assert resp.json()["code"] == "UNSUPPORTED_CHAIN"

    def test_failover_is_transparent(self, client, pool):
        pool.get("alchemy", 1).always_fail = True
        pool.get("infura", 1).gas_price = 2_000_000_000
        resp = client.get("/api/v1/chains/1/gas-price")
        assert resp.status_code == 200
        assert resp.json()["gwei"] == "2"

    def test_exhaustion_returns_503(self, client, pool):
        for name in ("alchemy", "infura", "ankr"):
            pool.get(name, 137).always_fail = True
        resp = client.get("/api/v1/chains/137/gas-price")
        assert resp.status_code == 503
        data = resp.json()
        assert data["code"] == "PROVIDERS_EXHAUSTED"
        assert data["details"]["operation"] == "getGasPrice(137)"


class TestProviderEndpoints:
    def test_provider_health_for_chain(self, client):
        resp = client.get("/api/v1/providers/health", params={"chain_id": 56})
        assert resp.status_code == 200
        data = resp.json()
        assert [p["name"] for p in data] == ["alchemy", "ankr"]
        assert all(p["circuit_state"] == "closed" for p in data)

    def test_provider_health_all_chains(self, client):
        resp = client.get("/api/v1/providers/health")
        assert resp.status_code == 200
        assert {p["network"] for p in resp.json()} == {1, 56, 137, 8453, 42161}

    def test_provider_health_unknown_chain(self, client):
        resp = client.get("/api/v1/providers/health", params={"chain_id": 999})
        assert resp.status_code == 404

    def test_failure_is_reflected_in_health(self, client, pool):
        pool.get("alchemy", 8453).always_fail = True
        client.get("/api/v1/chains/8453/block-number")
        resp = client.get("/api/v1/providers/health", params={"chain_id": 8453})
        alchemy = next(p for p in resp.json() if p["name"] == "alchemy")
        assert alchemy["health_score"] == 80
        assert alchemy["consecutive_failures"] == 1
        assert alchemy["breaker_failure_count"] == 1

    def test_events_after_exhaustion(self, client, pool):
        for name in ("alchemy", "ankr"):
            pool.get(name, 56).always_fail = True
        client.get("/api/v1/chains/56/block-number")

        resp = client.get("/api/v1/providers/events", params={"min_severity": "critical"})
        assert resp.status_code == 200
        events = resp.json()
        assert len(events) == 1
        assert events[0]["event_type"] == "PROVIDERS_EXHAUSTED"
        assert events[0]["network"] == "56"
        assert events[0]["operation"] == "getBlockNumber(56)"


class TestOpenApi:
    def test_error_responses_are_documented(self, client):
        schema = client.get("/openapi.json").json()
        assert "ErrorResponse" in schema["components"]["schemas"]
        responses = schema["paths"]["/api/v1/chains/{chain_id}/balance/{address}"]["get"][
            "responses"
        ]
        assert {"404", "422", "503"} <= set(responses)


class TestEntryPoint:
    def test_run_serves_app_with_configured_bind(self, monkeypatch):
        served = {}

        def fake_run(app, **kwargs):
            served["app"] = app
            served.update(kwargs)

        monkeypatch.setattr(main.uvicorn, "run", fake_run)
        main.run()

        settings = main.app.state.settings
        assert served["app"] is main.app
        assert served["host"] == settings.app_host
        assert served["port"] == settings.app_port
        assert served["log_level"] == settings.log_level.lower()
