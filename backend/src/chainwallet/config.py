"""Wallet backend — Application Configuration."""

from __future__ import annotations

import enum
from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, enum.Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Centralised, validated configuration loaded from environment / .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # ── Application ──────────────────────────────────────────
    app_name: str = "chainwallet"
    app_env: Environment = Environment.DEVELOPMENT
    app_debug: bool = False
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "INFO"
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:5173"])

    # ── RPC provider credentials ─────────────────────────────
    alchemy_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("alchemy_api_key", "vite_alchemy_api_key"),
    )
    infura_api_key: str = ""
    ankr_api_key: str = ""
    quicknode_endpoint: str = ""

    # ── Provider Resilience ──────────────────────────────────
    # Circuit breaker
    circuit_breaker_failure_threshold: int = 5
    circuit_breaker_open_timeout_seconds: float = 60.0

    # Health checks
    health_check_enabled: bool = True
    health_check_interval_seconds: float = 30.0
    health_uptime_window_seconds: float = 3600.0

    # Execution engine
    provider_max_retry_attempts: int = 3
    provider_backoff_base: float = 1.0
    provider_backoff_max: float = 8.0
    provider_timeout_seconds: float = 15.0

    # Health score adjustments
    health_score_probe_bonus: int = 10
    health_score_success_bonus: int = 5
    health_score_failure_penalty: int = 20

    # ── Observability ────────────────────────────────────────
    prometheus_enabled: bool = True
    diagnostic_event_buffer: int = 10_000

    # ── Derived helpers ──────────────────────────────────────
    @property
    def is_production(self) -> bool:
        return self.app_env == Environment.PRODUCTION

    def credentials(self) -> dict[str, str]:
        """Provider credentials keyed by the environment variable they come from."""
        return {
            "ALCHEMY_API_KEY": self.alchemy_api_key,
            "INFURA_API_KEY": self.infura_api_key,
            "ANKR_API_KEY": self.ankr_api_key,
            "QUICKNODE_ENDPOINT": self.quicknode_endpoint,
        }

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, v: str) -> str:
        return v.upper()

    @field_validator(
        "circuit_breaker_failure_threshold",
        "provider_max_retry_attempts",
        "diagnostic_event_buffer",
    )
    @classmethod
    def _at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator(
        "circuit_breaker_open_timeout_seconds",
        "health_check_interval_seconds",
        "health_uptime_window_seconds",
        "provider_timeout_seconds",
    )
    @classmethod
    def _positive_duration(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @model_validator(mode="after")
    def _check_backoff(self) -> Settings:
        if self.provider_backoff_base < 0 or self.provider_backoff_max < self.provider_backoff_base:
            raise ValueError(
                "provider_backoff_base must be >= 0 and not exceed provider_backoff_max"
            )
        if self.is_production and not any(self.credentials().values()):
            import warnings
            warnings.warn(
                "No RPC provider credentials configured; every chain call will fail",
                UserWarning,
                stacklevel=2,
            )
        return self


def get_settings(**overrides: Any) -> Settings:
    """Factory that allows test-time overrides."""
    return Settings(**overrides)
