"""Spotify Web API fetcher with rate limiting and error classification."""

import json
import logging
import math
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import Any

import httpx

from spotsync.config.settings import SpotifySettings
from spotsync.domain.exceptions import SpotifyApiError
from spotsync.domain.ports import ISpotifyFetcher
from spotsync.domain.value_objects import AccessContext
from spotsync.infrastructure.integrations.http_pool import HttpClientPool
from spotsync.infrastructure.rate_limiter import RateLimiter, get_spotify_limiter

logger = logging.getLogger(__name__)


# Hey future me - Retry-After comes in TWO flavours per RFC 9110: delta-seconds ("2") or an
# HTTP-date ("Wed, 21 Oct 2026 07:28:00 GMT"). Spotify sends seconds, proxies in between
# sometimes send dates. A date in the past still waits 1s so we don't hammer a limiter that
# just told us to back off. None means "no usable header" and the limiter's backoff decides.
def parse_retry_after(value: str | None, now: datetime | None = None) -> float | None:
    """Parse a Retry-After header into seconds.

    Args:
        value: Raw header value
        now: Reference time for HTTP-dates (defaults to current UTC time)

    Returns:
        Seconds to wait, or None if the header is absent or unparseable
    """
    if not value or not value.strip():
        return None

    try:
        seconds = float(value.strip())
    except ValueError:
        pass
    else:
        if not math.isfinite(seconds):
            return None
        return max(0.001, seconds)

    try:
        retry_at = parsedate_to_datetime(value.strip())
    except (TypeError, ValueError, IndexError):
        return None
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=UTC)
    now = now or datetime.now(UTC)
    return max(1.0, (retry_at - now).total_seconds())


def _error_details(response: httpx.Response) -> Any:
    """Parsed JSON error body, or the raw text when it isn't JSON."""
    text = response.text
    try:
        return json.loads(text)
    except ValueError:
        return text


class SpotifyClient(ISpotifyFetcher):
    """Authenticated, rate-limited request function for the Spotify Web API.

    One instance per request/session (it carries that session's token). The
    underlying httpx client is shared through HttpClientPool unless one is
    injected explicitly.
    """

    def __init__(
        self,
        access: AccessContext,
        settings: SpotifySettings,
        client: httpx.AsyncClient | None = None,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        """
        Initialize Spotify client.

        Args:
            access: Credential of the current session
            settings: Spotify configuration settings
            client: Optional httpx client (defaults to the shared pool client)
            rate_limiter: Optional limiter (defaults to the process-wide one)
        """
        self.access = access
        self.settings = settings
        self._client = client
        self._rate_limiter = rate_limiter or get_spotify_limiter(settings)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = await HttpClientPool.get_client(timeout=self.settings.timeout)
        return self._client

    def build_url(self, path: str) -> str:
        """Resolve a path against the API base URL.

        Absolute URLs (Spotify's "next" cursors) pass through unchanged.
        """
        if path.startswith(("http://", "https://")):
            return path
        base = self.settings.api_base_url.rstrip("/")
        return f"{base}{'' if path.startswith('/') else '/'}{path}"

    def _build_headers(self, headers: dict[str, str] | None) -> httpx.Headers:
        merged = httpx.Headers(
            {
                "Authorization": self.access.authorization_header,
                "Content-Type": "application/json",
            }
        )
        # Caller overrides win
        if headers:
            merged.update(headers)
        return merged

    # Hey future me - ALL Spotify calls go through here!
    # - Token bucket before every attempt (smooths bursts)
    # - 429: honour Retry-After, retry up to max_retries times, then SpotifyApiError
    # - Any other non-2xx: SpotifyApiError IMMEDIATELY, no retry (retrying a 403 or 404 is pointless)
    # - 204 → None, JSON → parsed, anything else → text
    async def request(
        self,
        path: str,
        method: str = "GET",
        json: Any = None,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Make a rate-limited Spotify API call.

        Args:
            path: API path relative to the base URL, or an absolute URL
            method: HTTP method
            json: JSON request body
            headers: Extra headers, these win over the defaults
            params: Query parameters

        Returns:
            Parsed JSON, raw text for non-JSON bodies, None for 204

        Raises:
            SpotifyApiError: On any non-2xx response (429 only after retries ran out)
        """
        client = await self._get_client()
        url = self.build_url(path)
        request_headers = self._build_headers(headers)
        max_retries = self.settings.max_retries
        attempt = 0

        while True:
            async with self._rate_limiter:
                response = await client.request(
                    method,
                    url,
                    json=json,
                    params=params,
                    headers=request_headers,
                )

            if response.status_code == 429:
                if attempt >= max_retries:
                    logger.error(
                        "Spotify API rate limited (429) after %d retries: %s %s",
                        max_retries,
                        method,
                        url,
                    )
                    raise SpotifyApiError(
                        response.status_code,
                        response.reason_phrase,
                        _error_details(response),
                    )

                attempt += 1
                retry_after = parse_retry_after(response.headers.get("Retry-After"))
                wait_time = await self._rate_limiter.handle_rate_limit_response(
                    retry_after
                )
                logger.warning(
                    "Spotify 429 rate limit (attempt %d/%d): waited %.1fs, retrying %s %s",
                    attempt,
                    max_retries,
                    wait_time,
                    method,
                    url,
                )
                continue

            if not response.is_success:
                details = _error_details(response)
                logger.warning(
                    "Spotify API error %d %s for %s %s",
                    response.status_code,
                    response.reason_phrase,
                    method,
                    url,
                    extra={"status_code": response.status_code},
                )
                raise SpotifyApiError(
                    response.status_code, response.reason_phrase, details
                )

            self._rate_limiter.reset_backoff()

            if response.status_code == 204:
                return None
            if "application/json" in response.headers.get("Content-Type", ""):
                return response.json()
            return response.text
