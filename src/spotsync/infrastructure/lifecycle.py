"""Application lifecycle management.

This module holds the FastAPI lifespan context manager that releases shared
resources at shutdown.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from spotsync.infrastructure.integrations.http_pool import HttpClientPool

logger = logging.getLogger(__name__)


# Listen future me, everything before `yield` runs at STARTUP, everything after at SHUTDOWN.
# The shared httpx client is created lazily on the first Spotify call, so startup has nothing
# to open - but shutdown MUST close it or uvicorn reload leaks sockets.
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info("Starting application: %s", app.title)
    try:
        yield
    finally:
        await HttpClientPool.close()
        logger.info("Application shutdown complete")
