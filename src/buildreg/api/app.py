"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from buildreg import __version__
from buildreg.api.errors import register_exception_handlers
from buildreg.api.routes import (
    cache_router,
    eas_router,
    ens_router,
    health_router,
    registry_router,
    talent_router,
)
from buildreg.client import BuildregClient
from buildreg.config import BuildregSettings
from buildreg.log import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan manager.

    Creates the shared client unless one was supplied to ``create_app`` and
    closes it on shutdown, cancelling any pending background refreshes.
    """
    settings: BuildregSettings = app.state.settings
    configure_logging(settings.log_level)

    owned = app.state.buildreg_client is None
    if owned:
        logger.info("Initializing buildreg client...")
        app.state.buildreg_client = BuildregClient(settings)
    app.state.buildreg_client.initialize()

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application...")
    if owned:
        await app.state.buildreg_client.close()
        app.state.buildreg_client = None
    logger.info("Application shutdown complete")


def create_app(
    settings: BuildregSettings | None = None,
    *,
    client: BuildregClient | None = None,
    title: str = "Buildreg API",
    description: str = "Resilient data access for the onchain builders directory",
    cors_origins: list[str] | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings (loaded from the environment if omitted)
        client: Pre-built client to serve requests with; the app does not close it
        title: API title for OpenAPI docs
        description: API description for OpenAPI docs
        cors_origins: List of allowed CORS origins (defaults to settings)

    Returns:
        Configured FastAPI application
    """
    settings = settings or (client.settings if client is not None else BuildregSettings())

    app = FastAPI(
        title=title,
        description=description,
        version=__version__,
        lifespan=lifespan,
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )
    app.state.settings = settings
    app.state.buildreg_client = client

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins if cors_origins is not None else settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Cache-Status", "X-Cache-Timestamp", "X-Cache-TTL", "X-Cache-Age"],
    )

    register_exception_handlers(app)

    app.include_router(health_router, prefix="/api/v1")
    app.include_router(cache_router, prefix="/api/v1")
    app.include_router(eas_router, prefix="/api/v1")
    app.include_router(ens_router, prefix="/api/v1")
    app.include_router(talent_router, prefix="/api/v1")
    app.include_router(registry_router, prefix="/api/v1")

    return app


# For uvicorn direct execution
app = create_app()
