"""Dependency injection for API endpoints."""

import logging

from fastapi import Cookie, Depends, Header, Request

from spotsync.application.cache.undo_store import UndoStore
from spotsync.application.services.playlist_mutation_service import (
    PlaylistMutationService,
)
from spotsync.application.services.playlist_service import PlaylistService
from spotsync.application.services.sync_service import SyncService
from spotsync.config import Settings, get_settings
from spotsync.domain.exceptions import AuthenticationError, ConfigurationError
from spotsync.domain.ports import ISpotifyFetcher
from spotsync.domain.value_objects import AccessContext
from spotsync.infrastructure.integrations.spotify_client import SpotifyClient

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "spotify_access_token"
TOKEN_TYPE_COOKIE = "spotify_token_type"
TOKEN_SCOPE_COOKIE = "spotify_token_scope"


def parse_bearer_token(authorization: str) -> str:
    """Extract the token from an Authorization header value.

    Handles both "Bearer {token}" and raw token formats. The Bearer
    prefix is case-insensitive.
    """
    if authorization.lower().startswith("bearer "):
        return authorization[7:].strip()
    return authorization.strip()


# Hey future me, the token reaches us EITHER as "Authorization: Bearer ..." (API clients, curl)
# OR as the spotify_access_token cookie (browser, set by whatever did the login). Header wins.
# A blank header falls back to the cookie. The granted scope string comes from the
# spotify_token_scope cookie or the X-Spotify-Token-Scope header - without it every scope check
# fails locally, which is the safe direction.
async def get_access_context(
    authorization: str | None = Header(None),
    scope_header: str | None = Header(None, alias="X-Spotify-Token-Scope"),
    access_token_cookie: str | None = Cookie(None, alias=ACCESS_TOKEN_COOKIE),
    token_type_cookie: str | None = Cookie(None, alias=TOKEN_TYPE_COOKIE),
    scope_cookie: str | None = Cookie(None, alias=TOKEN_SCOPE_COOKIE),
) -> AccessContext:
    """Build the request's Spotify credential.

    Raises:
        AuthenticationError: If neither header nor cookie carries a token
    """
    if authorization and authorization.strip():
        token = parse_bearer_token(authorization)
        token_type = "Bearer"
    else:
        token = (access_token_cookie or "").strip()
        token_type = (token_type_cookie or "").strip() or "Bearer"

    if not token:
        raise AuthenticationError()

    return AccessContext(
        access_token=token,
        token_type=token_type,
        scope=scope_header or scope_cookie,
    )


def get_app_settings(request: Request) -> Settings:
    """Settings the app was created with, falling back to the environment."""
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


# Yo, the undo store lives on app.state (created in create_app) - NOT a module global. Tests
# get a fresh one per app instance for free.
def get_undo_store(request: Request) -> UndoStore:
    """Get the process-wide undo store from app state."""
    undo_store = getattr(request.app.state, "undo_store", None)
    if undo_store is None:
        raise ConfigurationError("Undo store not initialized")
    return undo_store


def get_spotify_client(
    access: AccessContext = Depends(get_access_context),
    settings: Settings = Depends(get_app_settings),
) -> ISpotifyFetcher:
    """Per-request Spotify fetcher carrying the caller's token."""
    return SpotifyClient(access=access, settings=settings.spotify)


def get_playlist_service(
    fetcher: ISpotifyFetcher = Depends(get_spotify_client),
    access: AccessContext = Depends(get_access_context),
    settings: Settings = Depends(get_app_settings),
) -> PlaylistService:
    """Get playlist read service."""
    return PlaylistService(fetcher, access, settings.sync)


def get_mutation_service(
    fetcher: ISpotifyFetcher = Depends(get_spotify_client),
    playlist_service: PlaylistService = Depends(get_playlist_service),
    settings: Settings = Depends(get_app_settings),
) -> PlaylistMutationService:
    """Get batched mutation service."""
    return PlaylistMutationService(
        fetcher, playlist_service, batch_size=settings.sync.batch_size
    )


def get_sync_service(
    access: AccessContext = Depends(get_access_context),
    playlist_service: PlaylistService = Depends(get_playlist_service),
    mutation_service: PlaylistMutationService = Depends(get_mutation_service),
    undo_store: UndoStore = Depends(get_undo_store),
) -> SyncService:
    """Get sync/undo orchestrator."""
    return SyncService(access, playlist_service, mutation_service, undo_store)
