"""Shared HTTP client pool for connection reuse across requests.

Hey future me - every request builds its own SpotifyClient (the token differs per session),
but they must NOT each open their own httpx.AsyncClient. That would throw away keep-alive and
leak sockets. They all borrow the one client from this pool instead.

Usage:
    from spotsync.infrastructure.integrations.http_pool import HttpClientPool

    client = await HttpClientPool.get_client()

Don't forget HttpClientPool.close() at app shutdown (see main.py lifespan)!
"""

import asyncio
import logging
from typing import ClassVar

import httpx

logger = logging.getLogger(__name__)


class HttpClientPool:
    """Process-wide httpx.AsyncClient holder.

    - Lazy initialization (created on first use)
    - Guarded by an asyncio.Lock
    - Closed once at shutdown
    """

    _client: ClassVar[httpx.AsyncClient | None] = None
    _lock: ClassVar[asyncio.Lock | None] = None

    DEFAULT_TIMEOUT: ClassVar[float] = 30.0
    DEFAULT_MAX_KEEPALIVE: ClassVar[int] = 20
    DEFAULT_MAX_CONNECTIONS: ClassVar[int] = 50

    @classmethod
    def _ensure_lock(cls) -> asyncio.Lock:
        if cls._lock is None:
            cls._lock = asyncio.Lock()
        return cls._lock

    @classmethod
    async def get_client(
        cls,
        timeout: float | None = None,
        max_keepalive: int | None = None,
        max_connections: int | None = None,
    ) -> httpx.AsyncClient:
        """Get the shared HTTP client instance.

        Config params only apply on the FIRST call, later calls get the
        existing client back unchanged.

        Args:
            timeout: Request timeout in seconds (default: 30.0)
            max_keepalive: Max idle connections to keep open (default: 20)
            max_connections: Max total concurrent connections (default: 50)

        Returns:
            Shared httpx.AsyncClient instance
        """
        async with cls._ensure_lock():
            if cls._client is None:
                effective_timeout = timeout or cls.DEFAULT_TIMEOUT
                effective_keepalive = max_keepalive or cls.DEFAULT_MAX_KEEPALIVE
                effective_max_conn = max_connections or cls.DEFAULT_MAX_CONNECTIONS

                cls._client = httpx.AsyncClient(
                    timeout=httpx.Timeout(effective_timeout),
                    limits=httpx.Limits(
                        max_keepalive_connections=effective_keepalive,
                        max_connections=effective_max_conn,
                    ),
                    http2=True,
                )
                logger.info(
                    "HTTP client pool initialized (timeout=%.1fs, keepalive=%d, max_conn=%d)",
                    effective_timeout,
                    effective_keepalive,
                    effective_max_conn,
                )
            return cls._client

    @classmethod
    async def close(cls) -> None:
        """Close the shared client. A later get_client() creates a new one."""
        async with cls._ensure_lock():
            if cls._client is not None:
                await cls._client.aclose()
                cls._client = None
                logger.info("HTTP client pool closed")

    @classmethod
    def is_initialized(cls) -> bool:
        """Check if the client has been created."""
        return cls._client is not None
