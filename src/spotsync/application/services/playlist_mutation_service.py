"""Batched playlist mutations: add, remove and candidate filtering."""

import logging
from collections.abc import Iterable, Iterator, Sequence
from typing import Any, TypeVar

from spotsync.application.services.playlist_diff import OccurrenceCounter
from spotsync.application.services.playlist_service import PlaylistService
from spotsync.domain.entities import (
    AddTracksResult,
    RemoveTracksResult,
    Track,
    TrackEntry,
)
from spotsync.domain.exceptions import BatchMutationError, ValidationException
from spotsync.domain.ports import ISpotifyFetcher

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Spotify rejects add/remove requests carrying more than 100 items
MAX_BATCH_SIZE = 100


def chunked(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """Split ``items`` into consecutive lists of at most ``size`` elements."""
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


def _snapshot_of(response: Any) -> str | None:
    return response.get("snapshot_id") if isinstance(response, dict) else None


class PlaylistMutationService:
    """Adds and removes playlist tracks in Spotify-sized batches.

    Batches run strictly one after another; batch N is only sent after
    batch N-1's response arrived. There is no rollback: if a later batch
    fails, a BatchMutationError reports what already landed.
    """

    def __init__(
        self,
        fetcher: ISpotifyFetcher,
        playlist_service: PlaylistService,
        batch_size: int = MAX_BATCH_SIZE,
    ) -> None:
        if not 1 <= batch_size <= MAX_BATCH_SIZE:
            raise ValidationException(
                f"batch_size must be between 1 and {MAX_BATCH_SIZE}, got {batch_size}"
            )
        self._fetcher = fetcher
        self._playlist_service = playlist_service
        self._batch_size = batch_size

    @property
    def batch_size(self) -> int:
        return self._batch_size

    async def add_tracks(
        self,
        playlist_id: str,
        uris: Sequence[str],
        starting_position: int | None = None,
    ) -> AddTracksResult:
        """Append URIs to a playlist in batches.

        Args:
            playlist_id: Target playlist
            uris: URIs to append, in order
            starting_position: Index the first URI will land at. When given,
                ``added_entries`` holds the exact (uri, position) pairs.

        Returns:
            What was added and the playlist's latest snapshot id

        Raises:
            BatchMutationError: If a batch after the first one failed
        """
        result = AddTracksResult()
        if not uris:
            return result

        next_position = starting_position
        batches_done = 0

        for chunk in chunked(uris, self._batch_size):
            try:
                response = await self._fetcher.request(
                    f"/playlists/{playlist_id}/tracks",
                    method="POST",
                    json={"uris": chunk},
                )
            except Exception as e:
                if batches_done == 0:
                    raise
                raise BatchMutationError(
                    operation="add_tracks",
                    playlist_id=playlist_id,
                    committed_uris=list(result.added_uris),
                    committed_batches=batches_done,
                    snapshot_id=result.snapshot_id,
                    cause=e,
                ) from e

            batches_done += 1
            result.snapshot_id = _snapshot_of(response)
            result.added_uris.extend(chunk)

            if next_position is not None:
                result.added_entries.extend(
                    TrackEntry(uri=uri, position=next_position + offset)
                    for offset, uri in enumerate(chunk)
                )
                next_position += len(chunk)

        logger.info(
            "Added %d track(s) to playlist %s in %d batch(es)",
            result.added_count,
            playlist_id,
            batches_done,
        )
        return result

    # Listen future me, THIS is the part that silently deletes the wrong songs if you get it
    # wrong. Positions refer to the playlist as it was BEFORE anything was removed. After a
    # batch of k removals commits, every later position has moved down by k. So each batch
    # subtracts the number of entries already processed from its positions before sending.
    # Example with batch size 3: [0, 5, 50, 120] → batch 1 sends 0, 5, 50; batch 2 sends 117.
    async def remove_tracks(
        self,
        playlist_id: str,
        entries: Iterable[TrackEntry],
        snapshot_id: str | None = None,
    ) -> RemoveTracksResult:
        """Remove specific occurrences (uri at position) from a playlist.

        Args:
            playlist_id: Playlist to remove from
            entries: Occurrences to remove, positions against the current state
            snapshot_id: Playlist version the positions refer to

        Returns:
            Removed URIs (one per occurrence) and the latest snapshot id

        Raises:
            ValidationException: If an entry has a negative position
            BatchMutationError: If a batch after the first one failed
        """
        sorted_entries = sorted(entries, key=lambda entry: entry.position)
        if any(entry.position < 0 for entry in sorted_entries):
            raise ValidationException("Track positions must not be negative")

        result = RemoveTracksResult(snapshot_id=snapshot_id)
        if not sorted_entries:
            return result

        processed = 0
        batches_done = 0

        for batch in chunked(sorted_entries, self._batch_size):
            positions_by_uri: dict[str, list[int]] = {}
            for entry in batch:
                positions_by_uri.setdefault(entry.uri, []).append(
                    entry.position - processed
                )
            tracks_payload = [
                {"uri": uri, "positions": sorted(positions)}
                for uri, positions in positions_by_uri.items()
            ]

            body: dict[str, Any] = {"tracks": tracks_payload}
            if result.snapshot_id:
                body["snapshot_id"] = result.snapshot_id

            try:
                response = await self._fetcher.request(
                    f"/playlists/{playlist_id}/tracks", method="DELETE", json=body
                )
            except Exception as e:
                if batches_done == 0:
                    raise
                raise BatchMutationError(
                    operation="remove_tracks",
                    playlist_id=playlist_id,
                    committed_uris=list(result.removed_uris),
                    committed_batches=batches_done,
                    snapshot_id=result.snapshot_id,
                    cause=e,
                ) from e

            batches_done += 1
            result.snapshot_id = _snapshot_of(response)
            for item in tracks_payload:
                result.removed_uris.extend([item["uri"]] * len(item["positions"]))
            processed += len(batch)

        logger.info(
            "Removed %d track(s) from playlist %s in %d batch(es)",
            result.removed_count,
            playlist_id,
            batches_done,
        )
        return result

    # Yo, "already present" is occurrence-counted, same as the diff: if the playlist has X
    # once and the candidates hold X twice, ONE X survives the filter. Uses the same
    # OccurrenceCounter as the diff so the sync adds exactly what the comparison showed as missing.
    async def filter_already_present(
        self,
        playlist_id: str,
        candidate_uris: Sequence[str],
        existing_tracks: Sequence[Track] | None = None,
    ) -> list[str]:
        """Drop candidates that the playlist's current occurrences already cover.

        Args:
            playlist_id: Playlist the candidates would be added to
            candidate_uris: URIs the caller wants to add
            existing_tracks: The playlist's tracks if already loaded

        Returns:
            Candidates in order, minus those already covered
        """
        if not candidate_uris:
            return []

        if existing_tracks is None:
            playlist = await self._playlist_service.get_playlist_with_tracks(playlist_id)
            existing_tracks = playlist.tracks

        existing = OccurrenceCounter(track.uri for track in existing_tracks)
        return [uri for uri in candidate_uris if not existing.claim(uri)]
