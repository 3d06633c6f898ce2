"""
Rate limiter for Spotify Web API calls.

Hey future me – this is the ONE place that decides how long we wait before talking to Spotify
again. Two mechanisms, both async-friendly:

ALGORITHM: Token Bucket (proactive)
- Bucket holds max_tokens
- Tokens refill at refill_rate per second
- Every request consumes 1 token
- Empty bucket: wait until a token is available

BACKOFF on 429 (reactive)
- Retry-After header present: wait exactly that long (capped at max_backoff_seconds)
- No usable header: the FIRST 429 waits exactly initial_backoff_seconds (1s by default). Only
  back-to-back 429s without a success in between escalate: 1s, 2s, 4s ... up to
  max_backoff_seconds
- Any successful request resets the backoff

USAGE:
    limiter = RateLimiter(config=RateLimiterConfig(max_tokens=10, refill_rate=2.0))

    async with limiter:
        response = await client.get(url)

    # On 429:
    await limiter.handle_rate_limit_response(retry_after=2.0)
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field

from spotsync.config.settings import SpotifySettings

logger = logging.getLogger(__name__)


async def _sleep(seconds: float) -> None:
    """Suspend the current task. Patched in tests to skip real waiting."""
    await asyncio.sleep(seconds)


@dataclass
class RateLimiterConfig:
    """Configuration for rate limiter.

    Hey future me – Spotify allows roughly 180 requests / minute. We stay conservative with
    2 req/sec sustained and a burst of 10. max_backoff_seconds must be HIGH: Spotify sends
    Retry-After values of several minutes under heavy load, and ignoring them just buys
    another 429.
    """

    max_tokens: int = 10
    refill_rate: float = 2.0
    max_backoff_seconds: float = 600.0
    initial_backoff_seconds: float = 1.0
    backoff_multiplier: float = 2.0


@dataclass
class RateLimiter:
    """Token bucket rate limiter with Retry-After aware backoff.

    Attributes:
        config: Rate limiter configuration
        _tokens: Current available tokens
        _last_refill: Last time tokens were refilled
        _current_backoff: Wait used for the next 429 without Retry-After
        _lock: Async lock guarding the bucket
    """

    config: RateLimiterConfig = field(default_factory=RateLimiterConfig)
    name: str = "default"

    _tokens: float = field(default=0.0, init=False)
    _last_refill: float = field(default_factory=time.monotonic, init=False)
    _current_backoff: float = field(default=0.0, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    def __post_init__(self) -> None:
        """Start with a full bucket."""
        self._tokens = float(self.config.max_tokens)
        self._current_backoff = self.config.initial_backoff_seconds

    @classmethod
    def for_spotify(cls, settings: SpotifySettings | None = None) -> "RateLimiter":
        """Create a limiter tuned for Spotify from settings."""
        settings = settings or SpotifySettings()
        return cls(
            config=RateLimiterConfig(
                max_tokens=settings.rate_limit_max_tokens,
                refill_rate=settings.rate_limit_refill_rate,
                max_backoff_seconds=settings.max_backoff_seconds,
                initial_backoff_seconds=settings.default_retry_after_seconds,
            ),
            name="spotify",
        )

    def _refill_tokens(self) -> None:
        now = time.monotonic()
        elapsed = now - self._last_refill
        self._tokens = min(
            float(self.config.max_tokens),
            self._tokens + elapsed * self.config.refill_rate,
        )
        self._last_refill = now

    async def acquire(self) -> None:
        """Acquire one token, waiting if the bucket is empty."""
        async with self._lock:
            self._refill_tokens()
            while self._tokens < 1.0:
                wait_time = (1.0 - self._tokens) / self.config.refill_rate
                logger.debug(
                    "RateLimiter[%s]: no tokens available, waiting %.2fs",
                    self.name,
                    wait_time,
                )
                await _sleep(wait_time)
                self._refill_tokens()
            self._tokens -= 1.0

    # Hey future me - retry_after is in SECONDS (float). The client already parsed the header
    # (delta-seconds or HTTP-date); None means "Spotify didn't tell us", then we fall back to
    # our own exponential backoff. We always sleep OUTSIDE the lock so other coroutines can
    # still check the bucket.
    async def handle_rate_limit_response(self, retry_after: float | None = None) -> float:
        """Wait after a 429 response.

        Without a Retry-After the wait is initial_backoff_seconds for the first
        429 and doubles for each further 429 until reset_backoff() runs.

        Args:
            retry_after: Seconds Spotify asked us to wait, None if unknown

        Returns:
            The wait time actually used, in seconds
        """
        async with self._lock:
            if retry_after is not None:
                wait_time = retry_after
            else:
                wait_time = self._current_backoff
                self._current_backoff = min(
                    self._current_backoff * self.config.backoff_multiplier,
                    self.config.max_backoff_seconds,
                )
            wait_time = min(wait_time, self.config.max_backoff_seconds)

        logger.warning(
            "RateLimiter[%s]: 429 rate limited, waiting %.1fs before retry",
            self.name,
            wait_time,
        )
        await _sleep(wait_time)
        return wait_time

    def reset_backoff(self) -> None:
        """Reset backoff after a successful request."""
        self._current_backoff = self.config.initial_backoff_seconds

    async def __aenter__(self) -> "RateLimiter":
        await self.acquire()
        return self

    async def __aexit__(
        self, exc_type: type | None, exc_val: Exception | None, exc_tb: object
    ) -> None:
        pass

    @property
    def available_tokens(self) -> float:
        """Current available tokens (for debugging)."""
        self._refill_tokens()
        return self._tokens

    @property
    def current_backoff(self) -> float:
        """Wait the next header-less 429 would use."""
        return self._current_backoff


# Module-level limiter shared by every SpotifyClient in the process.
# Hey future me – Spotify's quota is per APP, not per user, so one bucket for everyone.
_spotify_limiter: RateLimiter | None = None


def get_spotify_limiter(settings: SpotifySettings | None = None) -> RateLimiter:
    """Get the process-wide Spotify rate limiter (created on first use)."""
    global _spotify_limiter
    if _spotify_limiter is None:
        _spotify_limiter = RateLimiter.for_spotify(settings)
    return _spotify_limiter


__all__ = [
    "RateLimiter",
    "RateLimiterConfig",
    "get_spotify_limiter",
]
