"""FastAPI application entry-point.

Assembles routers, middleware, exception handlers, and lifecycle hooks.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from chainwallet.adapters.inbound.rest.routers import (
    chains_router,
    health_router,
    providers_router,
)
from chainwallet.adapters.outbound.event_bus import ALL_EVENTS, InProcessEventBus
from chainwallet.application.consumers import DiagnosticEventLog
from chainwallet.config import Settings, get_settings
from chainwallet.dependencies import build_provider_manager
from chainwallet.shared.errors import register_exception_handlers
from chainwallet.shared.middleware import (
    LoggingMiddleware,
    MetricsMiddleware,
    RequestIdMiddleware,
)
from chainwallet.shared.observability import configure_logging
from chainwallet.shared.providers import ClientFactory

logger = structlog.get_logger(__name__)


def _make_lifespan(client_factory: ClientFactory | None):  # type: ignore[no-untyped-def]
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Application lifecycle — startup & shutdown hooks."""
        settings: Settings = app.state.settings
        configure_logging(
            log_level=settings.log_level,
            json_logs=settings.is_production,
        )
        logger.info("application_starting", env=settings.app_env.value)

        # ── Wire diagnostics and the provider manager ────────────
        event_bus = InProcessEventBus()
        event_log = DiagnosticEventLog(max_events=settings.diagnostic_event_buffer)
        event_bus.subscribe(ALL_EVENTS, event_log.handle)

        manager = build_provider_manager(
            settings, client_factory=client_factory, event_bus=event_bus
        )
        app.state.event_bus = event_bus
        app.state.event_log = event_log
        app.state.provider_manager = manager

        if settings.health_check_enabled:
            manager.start_health_checks()

        try:
            yield
        finally:
            await manager.close()
            logger.info("application_shutdown")

    return lifespan


def create_app(
    settings: Settings | None = None,
    *,
    client_factory: ClientFactory | None = None,
) -> FastAPI:
    """Application factory — creates a fully configured FastAPI instance.

    ``client_factory`` replaces the JSON-RPC client construction, which lets
    tests run the whole stack against in-memory chain clients.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Chain Wallet Backend",
        description=(
            "Read access to EVM chains through a pool of RPC providers with "
            "health-ordered fail-over, circuit breaking, and provider diagnostics."
        ),
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        default_response_class=ORJSONResponse,
        lifespan=_make_lifespan(client_factory),
    )

    # Store settings in app state for lifecycle access
    app.state.settings = settings

    # ── Middleware (order matters: first added = outermost) ───
    cors_origins = settings.cors_origins
    allow_all_origins = "*" in cors_origins

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[] if allow_all_origins else cors_origins,
        allow_origin_regex=".*" if allow_all_origins else None,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    if settings.prometheus_enabled:
        app.add_middleware(MetricsMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)

    # ── Exception handlers ───────────────────────────────────
    register_exception_handlers(app)

    # ── REST routers (versioned) ─────────────────────────────
    api_v1 = "/api/v1"
    app.include_router(health_router, prefix=api_v1)
    app.include_router(providers_router, prefix=api_v1)
    app.include_router(chains_router, prefix=api_v1)

    @app.get("/")
    async def root() -> dict[str, str]:
        return {
            "message": "Chain Wallet Backend is running",
            "docs": "/docs",
            "health": "/api/v1/health",
        }

    return app


# Uvicorn entry-point
app = create_app()


def run() -> None:
    """Serve the module-level app with uvicorn (the ``chainwallet`` console script)."""
    settings: Settings = app.state.settings
    uvicorn.run(
        app,
        host=settings.app_host,
        port=settings.app_port,
        log_level=settings.log_level.lower(),
    )
