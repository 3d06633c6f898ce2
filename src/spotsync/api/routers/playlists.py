"""Playlist browsing and comparison endpoints."""

import logging

from fastapi import APIRouter, Depends, Query

from spotsync.api.dependencies import get_playlist_service
from spotsync.api.schemas.playlists import (
    CompareRequest,
    PlaylistComparisonResponse,
    PlaylistTracksPageResponse,
    UserPlaylistsResponse,
)
from spotsync.application.services.playlist_service import (
    MAX_TRACKS_PAGE_LIMIT,
    PlaylistService,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=UserPlaylistsResponse)
async def list_playlists(
    playlist_service: PlaylistService = Depends(get_playlist_service),
) -> UserPlaylistsResponse:
    """List every playlist of the current user."""
    result = await playlist_service.list_playlists()
    return UserPlaylistsResponse.model_validate(result)


# Hey future me - limit is clamped in the service (1..100), not rejected here. The UI asks for
# whatever page size it likes and gets at most what Spotify allows.
@router.get("/{playlist_id}/tracks", response_model=PlaylistTracksPageResponse)
async def get_playlist_tracks(
    playlist_id: str,
    offset: int = Query(0, description="Index of the first track"),
    limit: int = Query(MAX_TRACKS_PAGE_LIMIT, description="Page size (1-100)"),
    playlist_service: PlaylistService = Depends(get_playlist_service),
) -> PlaylistTracksPageResponse:
    """Load one page of a playlist's tracks for incremental display."""
    page = await playlist_service.get_tracks_page(playlist_id, offset=offset, limit=limit)
    return PlaylistTracksPageResponse.model_validate(page)


@router.post("/compare", response_model=PlaylistComparisonResponse)
async def compare_playlists(
    request: CompareRequest,
    playlist_service: PlaylistService = Depends(get_playlist_service),
) -> PlaylistComparisonResponse:
    """Compare two playlists occurrence by occurrence."""
    comparison = await playlist_service.compare_playlists(
        request.source_playlist_id, request.target_playlist_id
    )
    logger.info(
        "Compared %s against %s: %d missing, %d extra, %d shared",
        request.source_playlist_id,
        request.target_playlist_id,
        len(comparison.in_a_only),
        len(comparison.in_b_only),
        len(comparison.in_both),
    )
    return PlaylistComparisonResponse.model_validate(comparison)
