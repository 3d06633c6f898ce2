"""Shared logging helpers for multi-step operations.

USAGE:
    logger = logging.getLogger(__name__)

    async with log_operation(logger, "sync", target_playlist_id="xyz"):
        await do_the_sync()
"""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any


# Yo, this context manager logs {operation}.started / .completed / .failed with duration_ms.
# On failure it logs with exc_info and RE-RAISES - it never swallows. The **context kwargs
# become extra fields on all three records, so keep them small (ids and counts, not track lists).
@asynccontextmanager
async def log_operation(
    logger: logging.Logger,
    operation: str,
    **context: Any,
) -> AsyncIterator[None]:
    """Log operation start/end with automatic timing.

    Args:
        logger: Module logger
        operation: Operation name (e.g., "sync", "undo")
        **context: Additional fields to include in logs

    Example:
        >>> async with log_operation(logger, "undo", playlist_id="abc"):
        ...     await service.undo("abc", token)
    """
    start = time.perf_counter()
    logger.info(f"{operation}.started", extra=context)

    try:
        yield
    except Exception as e:
        duration_ms = int((time.perf_counter() - start) * 1000)
        logger.error(
            f"{operation}.failed",
            extra={
                **context,
                "duration_ms": duration_ms,
                "error": str(e),
                "error_type": type(e).__name__,
            },
            exc_info=True,
        )
        raise

    duration_ms = int((time.perf_counter() - start) * 1000)
    logger.info(
        f"{operation}.completed",
        extra={**context, "duration_ms": duration_ms},
    )
