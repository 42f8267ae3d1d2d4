"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest
from starlette.responses import Response

from tranzantions import __version__
from tranzantions.api.middleware.cors import setup_cors
from tranzantions.api.v1 import v1_router
from tranzantions.config.settings import AppConfig
from tranzantions.engine.client import AlertEngine
from tranzantions.errors.app_errors import TranzError
from tranzantions.metrics.collector import NotifierMetrics
from tranzantions.metrics.middleware import PrometheusMiddleware

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from tranzantions.chain.blockscout.client import BlockscoutClient
    from tranzantions.notifications.mailer import EmailTransport

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle hooks.

    Initialises the engine (stores, transport, background jobs) on startup
    and shuts it down on exit.
    """
    engine = AlertEngine(
        app.state.config,
        transport=app.state.transport,
        metrics=app.state.metrics,
        explorer=app.state.explorer,
    )
    try:
        await engine.initialize()
        app.state.engine = engine
        logger.info("Alert engine initialized")
        yield
    finally:
        await engine.close()
        app.state.engine = None
        logger.info("Alert engine shut down")


def create_app(
    *,
    config: AppConfig | None = None,
    transport: EmailTransport | None = None,
    explorer: BlockscoutClient | None = None,
) -> FastAPI:
    """Build and return the FastAPI application.

    Args:
        config: Optional AppConfig. If *None*, a default config is created
            from environment variables (and ``TRANZ_CONFIG_PATH``).
        transport: Optional email transport replacing the configured one.
        explorer: Optional Blockscout client replacing the configured one.
    """
    if config is None:
        config = AppConfig()

    app = FastAPI(
        title="TranzAntions",
        version=__version__,
        description="Wallet transaction email alerts",
        lifespan=_lifespan,
    )

    app.state.config = config
    app.state.transport = transport
    app.state.explorer = explorer
    app.state.engine = None
    app.state.metrics = NotifierMetrics() if config.metrics.enabled else None

    # -- Middleware --
    setup_cors(app)
    if app.state.metrics is not None:
        app.add_middleware(PrometheusMiddleware, registry=app.state.metrics.registry)

    # -- Error handlers --
    @app.exception_handler(TranzError)
    async def _tranz_error_handler(request: Request, exc: TranzError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={"code": exc.code, "message": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        detail = errors[0].get("msg", "invalid request") if errors else "invalid request"
        return JSONResponse(
            status_code=400,
            content={"code": "invalid-request", "message": str(detail)},
        )

    # -- Base routes --
    @app.get("/health", tags=["base"])
    async def health() -> JSONResponse:
        engine: AlertEngine | None = app.state.engine
        if engine is None:
            return JSONResponse(status_code=503, content={"status": "starting"})
        components = await engine.health_check()
        healthy = components["engine"] == "ok" and components["store"] in ("ok", "memory")
        return JSONResponse(
            status_code=200 if healthy else 503,
            content={"status": "ok" if healthy else "degraded", **components},
        )

    @app.get("/metrics", tags=["base"], include_in_schema=False)
    async def metrics_endpoint() -> Response:
        """Prometheus metrics endpoint."""
        metrics: NotifierMetrics | None = app.state.metrics
        body = generate_latest(metrics.registry) if metrics else generate_latest()
        return Response(
            content=body,
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    # -- Mount API --
    app.include_router(v1_router)

    return app
