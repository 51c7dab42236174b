"""Tests for settings validation and provider credential handling."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from chainwallet.config import Environment, get_settings


class TestSettings:
    def test_defaults(self) -> None:
        settings = get_settings(_env_file=None)
        assert settings.circuit_breaker_failure_threshold == 5
        assert settings.circuit_breaker_open_timeout_seconds == 60.0
        assert settings.provider_max_retry_attempts == 3
        assert settings.health_check_interval_seconds == 30.0
        assert settings.health_score_failure_penalty == 20

    def test_log_level_upper_cased(self) -> None:
        assert get_settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_legacy_alchemy_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("ALCHEMY_API_KEY", raising=False)
        monkeypatch.setenv("VITE_ALCHEMY_API_KEY", "legacy")
        settings = get_settings(_env_file=None)
        assert settings.credentials()["ALCHEMY_API_KEY"] == "legacy"

    def test_credentials_keyed_by_variable(self) -> None:
        settings = get_settings(_env_file=None, infura_api_key="inf")
        creds = settings.credentials()
        assert set(creds) == {
            "ALCHEMY_API_KEY",
            "INFURA_API_KEY",
            "ANKR_API_KEY",
            "QUICKNODE_ENDPOINT",
        }
        assert creds["INFURA_API_KEY"] == "inf"

    @pytest.mark.parametrize(
        "field",
        ["circuit_breaker_failure_threshold", "provider_max_retry_attempts"],
    )
    def test_counts_must_be_positive(self, field: str) -> None:
        with pytest.raises(ValidationError):
            get_settings(_env_file=None, **{field: 0})

    def test_durations_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            get_settings(_env_file=None, provider_timeout_seconds=0)

    def test_backoff_cap_below_base_rejected(self) -> None:
        with pytest.raises(ValidationError):
            get_settings(_env_file=None, provider_backoff_base=4.0, provider_backoff_max=1.0)

    def test_production_without_credentials_warns(self) -> None:
        with pytest.warns(UserWarning):
            settings = get_settings(
                _env_file=None,
                app_env=Environment.PRODUCTION,
                alchemy_api_key="",
                infura_api_key="",
                ankr_api_key="",
                quicknode_endpoint="",
            )
        assert settings.is_production
