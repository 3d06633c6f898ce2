"""Application services."""

from spotsync.application.services.playlist_diff import (
    OccurrenceCounter,
    build_playlist_comparison,
    diff_tracks,
)
from spotsync.application.services.playlist_mutation_service import (
    PlaylistMutationService,
)
from spotsync.application.services.playlist_service import PlaylistService
from spotsync.application.services.sync_service import SyncService

__all__ = [
    "OccurrenceCounter",
    "PlaylistMutationService",
    "PlaylistService",
    "SyncService",
    "build_playlist_comparison",
    "diff_tracks",
]
