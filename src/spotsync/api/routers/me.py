"""Current user endpoint."""

from typing import Any

from fastapi import APIRouter, Depends

from spotsync.api.dependencies import get_playlist_service
from spotsync.application.services.playlist_service import PlaylistService

router = APIRouter()


@router.get("/me")
async def get_me(
    playlist_service: PlaylistService = Depends(get_playlist_service),
) -> dict[str, Any]:
    """Spotify profile of the current user, as Spotify returns it."""
    return await playlist_service.get_current_user()
