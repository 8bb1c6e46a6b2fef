"""FastAPI application factory for Geodesk.

This module provides the application factory that creates and configures
a FastAPI application with:
- CORS middleware for the client and staff panels
- Request logging middleware with correlation IDs
- Structured error responses for every domain error
- Service lifecycle management (database pool, notification outbox,
  provider HTTP clients)

Example usage:
    >>> from geodesk.config import load_config
    >>> from geodesk.web.app import create_app
    >>>
    >>> app = create_app(load_config())
    >>>
    >>> import uvicorn
    >>> uvicorn.run(app, host="0.0.0.0", port=8000)
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from geodesk import __version__
from geodesk.config import GeodeskConfig
from geodesk.logging import get_logger
from geodesk.web.dependencies import ServiceContainer, build_services
from geodesk.web.errors import register_exception_handlers
from geodesk.web.middleware import RequestLoggingMiddleware
from geodesk.web.routes.comms import create_comms_router, create_webhooks_router
from geodesk.web.routes.health import create_health_router
from geodesk.web.routes.projects import create_projects_router
from geodesk.web.routes.quotes import create_quotes_router

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build services on startup and release them on shutdown.

    Services already present on ``app.state`` (installed by a caller
    before startup) are used as-is.
    """
    config: GeodeskConfig = app.state.config

    logger.info("app_startup_begin", host=config.web.host, port=config.web.port)

    services: ServiceContainer | None = getattr(app.state, "services", None)
    if services is None:
        services = build_services(config)
        app.state.services = services

    services.outbox.start()
    logger.info(
        "services_initialized",
        pool_size=config.database.pool_size,
        email_enabled=services.email_client.enabled,
        webhook_verification=bool(config.webhook.secret),
    )

    yield

    logger.info("app_shutdown_begin")
    await services.aclose()
    logger.info("services_closed")


def create_app(config: GeodeskConfig | None = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Args:
        config: Optional GeodeskConfig. If None, creates default config.

    Returns:
        Configured FastAPI application instance.
    """
    if config is None:
        config = GeodeskConfig()

    app = FastAPI(
        title="Geodesk",
        version=__version__,
        description="Project lifecycle and quotation service",
        lifespan=lifespan,
    )

    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.web.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)

    app.include_router(create_health_router())
    app.include_router(create_projects_router())
    app.include_router(create_quotes_router())
    app.include_router(create_comms_router())
    app.include_router(create_webhooks_router())

    logger.info(
        "app_created",
        cors_origins=config.web.cors_origins,
        version=__version__,
    )

    return app
