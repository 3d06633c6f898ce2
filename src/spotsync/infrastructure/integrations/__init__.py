"""External service integrations."""

from spotsync.infrastructure.integrations.http_pool import HttpClientPool
from spotsync.infrastructure.integrations.spotify_client import (
    SpotifyClient,
    parse_retry_after,
)

__all__ = ["HttpClientPool", "SpotifyClient", "parse_retry_after"]
