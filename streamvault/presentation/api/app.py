"""
FastAPI application factory and configuration.

This module creates and configures the FastAPI application with
middleware, error handling, and route registration.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from ...application.startup import ApplicationStartup
from ...core.exceptions import UploadError
from ...infrastructure.config.models import ApplicationConfig
from .middleware import ErrorHandlerMiddleware, upload_error_handler
from .routers import health, pages, uploads

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan manager.

    Starts the application components before the first request and stops
    them on shutdown.
    """
    startup: ApplicationStartup = app.state.startup
    await startup.start_application()
    logger.info("Application started")

    try:
        yield
    finally:
        logger.info("Application shutting down...")
        await startup.stop_application()


def create_app(config: ApplicationConfig, startup: Optional[ApplicationStartup] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Application configuration
        startup: Startup manager owning the components (created if omitted)

    Returns:
        Configured FastAPI application
    """
    startup = startup or ApplicationStartup(config)
    startup.configure_services()

    app = FastAPI(
        title=config.name,
        version=config.version,
        description="Streams uploaded files into object storage as multipart uploads",
        debug=config.debug,
        lifespan=lifespan
    )

    app.state.startup = startup
    app.state.config = config

    _configure_middleware(app)
    _register_routes(app)

    logger.info(f"FastAPI application created: {config.name} v{config.version}")
    return app


def create_app_from_environment() -> FastAPI:
    """
    Create the app from ``STREAMVAULT_*`` environment variables.

    Factory for ``uvicorn --factory``; ``STREAMVAULT_CONFIG`` may name a
    configuration file.
    """
    import os

    from ...infrastructure.config.loader import ConfigLoader

    config = ConfigLoader().load_config(os.getenv("STREAMVAULT_CONFIG"))
    return create_app(config)


def _configure_middleware(app: FastAPI) -> None:
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_exception_handler(UploadError, upload_error_handler)  # type: ignore[arg-type]

    logger.debug("Middleware configured")


def _register_routes(app: FastAPI) -> None:
    app.include_router(
        health.router,
        prefix="/health",
        tags=["health"]
    )

    app.include_router(
        uploads.router,
        tags=["uploads"]
    )

    app.include_router(
        pages.router,
        tags=["pages"]
    )

    logger.debug("Routes registered")
