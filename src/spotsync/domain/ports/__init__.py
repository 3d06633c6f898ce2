"""Domain ports (interfaces) for dependency inversion."""

from abc import ABC, abstractmethod
from typing import Any


# Hey future me - services only ever talk to Spotify through this port. The real implementation
# is SpotifyClient (auth header, 429 backoff, error classification); tests plug in an in-memory
# fake. Keep it to ONE method so fakes stay trivial.
class ISpotifyFetcher(ABC):
    """Authenticated request function against the Spotify Web API."""

    @abstractmethod
    async def request(
        self,
        path: str,
        method: str = "GET",
        json: Any = None,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Perform one call and return the parsed response.

        Args:
            path: API path relative to the base URL, or an absolute URL
            method: HTTP method
            json: JSON request body
            headers: Extra headers, these win over the defaults
            params: Query parameters

        Returns:
            Parsed JSON, raw text for non-JSON bodies, None for 204

        Raises:
            SpotifyApiError: If Spotify rejected the request
        """


__all__ = ["ISpotifyFetcher"]
