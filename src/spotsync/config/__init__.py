"""Configuration module for SpotSync."""

from .settings import (
    ObservabilitySettings,
    Settings,
    SpotifySettings,
    SyncSettings,
    get_settings,
)

__all__ = [
    "ObservabilitySettings",
    "Settings",
    "SpotifySettings",
    "SyncSettings",
    "get_settings",
]
