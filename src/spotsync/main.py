"""FastAPI application factory."""

import logging

from fastapi import FastAPI

from spotsync import __version__
from spotsync.api.exception_handlers import register_exception_handlers
from spotsync.api.routers import api_router, health
from spotsync.application.cache import InMemoryCache, UndoStore
from spotsync.config import Settings, get_settings
from spotsync.infrastructure.lifecycle import lifespan
from spotsync.infrastructure.observability import (
    RequestLoggingMiddleware,
    configure_logging,
)

logger = logging.getLogger(__name__)


# Hey future me - settings and the undo store go onto app.state HERE, one of each per app
# instance, never a module global. Routes read them through dependencies.get_app_settings()
# and get_undo_store(), so a test app built with its own Settings is fully isolated.
def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use (defaults to the cached environment settings)

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()

    configure_logging(
        log_level=settings.observability.level,
        json_format=settings.observability.json_format,
        app_name=settings.app_name,
    )

    app = FastAPI(
        title="SpotSync",
        description="Compare, sync and clean up Spotify playlists",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.undo_store = UndoStore(
        InMemoryCache(), ttl_seconds=settings.sync.undo_ttl_seconds
    )

    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api")
    app.include_router(health.router, prefix="/health", tags=["Health"])

    logger.info("Application created: %s", settings.app_name)
    return app


app = create_app()
