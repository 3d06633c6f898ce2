"""Application settings loaded from environment variables."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SpotifySettings(BaseSettings):
    """Spotify Web API access settings."""

    model_config = SettingsConfigDict(
        env_prefix="SPOTIFY_", env_file=".env", extra="ignore"
    )

    api_base_url: str = Field(
        default="https://api.spotify.com/v1", description="Spotify Web API base URL"
    )
    timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    # Hey future me - 5 RETRIES means up to 6 requests for one call. The 6th 429 escalates.
    max_retries: int = Field(default=5, ge=0, description="Retries on HTTP 429")
    default_retry_after_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Wait used when a 429 carries no usable Retry-After header",
    )
    max_backoff_seconds: float = Field(
        default=600.0, gt=0, description="Upper bound for a single 429 wait"
    )
    rate_limit_max_tokens: int = Field(
        default=10, ge=1, description="Token bucket burst capacity"
    )
    rate_limit_refill_rate: float = Field(
        default=2.0, gt=0, description="Token bucket refill per second"
    )


class SyncSettings(BaseSettings):
    """Diff/sync engine settings."""

    model_config = SettingsConfigDict(env_prefix="SYNC_", env_file=".env", extra="ignore")

    # Spotify rejects add/remove requests with more than 100 items
    batch_size: int = Field(default=100, ge=1, le=100)
    max_pages: int = Field(
        default=1000, ge=1, description="Pagination safety cap per walk"
    )
    undo_ttl_seconds: int | None = Field(
        default=None, ge=1, description="Undo slot lifetime, None keeps it until used"
    )
    playlists_page_size: int = Field(default=50, ge=1, le=50)


class ObservabilitySettings(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_", env_file=".env", extra="ignore")

    level: str = Field(default="INFO")
    json_format: bool = Field(default=False)


class Settings(BaseSettings):
    """Root settings object."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = Field(default="spotsync")
    debug: bool = Field(default=False)

    spotify: SpotifySettings = Field(default_factory=SpotifySettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)


# Hey future me - cached so every Depends(get_settings) returns the SAME object. Tests that need
# different values should build Settings(...) directly or override the dependency, and call
# get_settings.cache_clear() if they touched the environment.
@lru_cache
def get_settings() -> Settings:
    """Get application settings (cached)."""
    return Settings()
