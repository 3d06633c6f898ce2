"""Sync, undo and removal endpoints."""

import logging
import math
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from spotsync.api.dependencies import get_sync_service
from spotsync.api.schemas.playlists import (
    RemoveRequest,
    RemoveResponse,
    SyncRequest,
    SyncResponse,
    UndoRequest,
    UndoResponse,
)
from spotsync.application.services.sync_service import SyncService
from spotsync.domain.entities import TrackEntry

logger = logging.getLogger(__name__)

router = APIRouter()


def normalize_remove_entries(raw_entries: list[Any]) -> list[TrackEntry]:
    """Keep the usable (uri, position) pairs of a removal request.

    Entries without a non-blank string URI, or whose position is not a
    non-negative number, are dropped. Fractional positions are floored.
    """
    entries: list[TrackEntry] = []
    for raw in raw_entries:
        if not isinstance(raw, dict):
            continue
        uri = raw.get("uri")
        position = raw.get("position")
        if not isinstance(uri, str) or not uri.strip():
            continue
        # bool is an int subclass, and true/false are not positions
        if isinstance(position, bool) or not isinstance(position, int | float):
            continue
        if not math.isfinite(position) or position < 0:
            continue
        entries.append(TrackEntry(uri=uri.strip(), position=math.floor(position)))
    return entries


@router.post("/sync", response_model=SyncResponse)
async def sync_tracks(
    request: SyncRequest,
    sync_service: SyncService = Depends(get_sync_service),
) -> SyncResponse:
    """Add missing tracks to the target playlist."""
    result = await sync_service.sync(
        request.target_playlist_id,
        request.track_uris,
        source_playlist_id=request.source_playlist_id,
        two_way=request.two_way,
    )
    return SyncResponse(
        added_uris=result.added_uris,
        undo_token=result.undo_token,
        reverse_added_uris=result.reverse_added_uris,
    )


# Yo, "nothing to undo" is a normal outcome (stale token, other playlist, already undone), so
# it's a plain 404 here and never an exception inside the service.
@router.post("/undo", response_model=UndoResponse)
async def undo_sync(
    request: UndoRequest,
    sync_service: SyncService = Depends(get_sync_service),
) -> UndoResponse:
    """Revert the last sync of this session."""
    result = await sync_service.undo(request.target_playlist_id, request.undo_token)
    if not result.found:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="No undoable sync found"
        )
    return UndoResponse(removed_uris=result.removed_uris)


@router.post("/remove", response_model=RemoveResponse)
async def remove_tracks(
    request: RemoveRequest,
    sync_service: SyncService = Depends(get_sync_service),
) -> RemoveResponse:
    """Remove selected occurrences from a playlist."""
    entries = normalize_remove_entries(request.entries)
    if not entries:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide at least one valid entry to remove.",
        )
    if len(entries) != len(request.entries):
        logger.info(
            "Dropped %d invalid removal entries for playlist %s",
            len(request.entries) - len(entries),
            request.playlist_id,
        )

    result = await sync_service.remove_selected(request.playlist_id, entries)
    return RemoveResponse(
        removed_count=result.removed_count, removed_uris=result.removed_uris
    )
