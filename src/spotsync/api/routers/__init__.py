"""API router initialization."""

# Hey future me, this is the MAIN API router aggregator! It gets mounted under /api in main.py, so
# endpoints become /api/me, /api/playlists, /api/playlists/compare, /api/sync, /api/undo and
# /api/remove. Health lives outside /api (main.py mounts it at /health) so probes don't need auth.

from fastapi import APIRouter

from spotsync.api.routers import health, me, playlists, sync

api_router = APIRouter()

api_router.include_router(me.router, tags=["User"])
api_router.include_router(playlists.router, prefix="/playlists", tags=["Playlists"])
api_router.include_router(sync.router, tags=["Sync"])

__all__ = [
    "api_router",
    "health",
    "me",
    "playlists",
    "sync",
]
