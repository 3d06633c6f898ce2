"""Sync, undo and bulk removal orchestration.

Hey future me - per session the undo state is a tiny state machine:

    no undo --sync adds something--> has undo --undo--> no undo
                                     has undo --next sync--> has undo (old one is GONE)

Only the primary direction of a sync is undoable. A two-way sync also writes into the source,
but that second add never touches the undo slot, so the slot always describes exactly one
playlist and one set of positions.
"""

import asyncio
import logging
from collections.abc import Sequence

from spotsync.application.cache.undo_store import UndoStore
from spotsync.application.services.playlist_diff import build_playlist_comparison
from spotsync.application.services.playlist_mutation_service import (
    PlaylistMutationService,
)
from spotsync.application.services.playlist_service import PlaylistService
from spotsync.domain.entities import (
    PlaylistSummary,
    PlaylistWithTracks,
    RemoveTracksResult,
    SyncResult,
    TrackEntry,
    UndoResult,
)
from spotsync.domain.exceptions import (
    AuthorizationError,
    BatchMutationError,
    PartialSyncError,
    ValidationException,
)
from spotsync.domain.value_objects import MODIFY_SCOPES, AccessContext
from spotsync.infrastructure.observability import log_operation

logger = logging.getLogger(__name__)

SYNC_FORBIDDEN_MESSAGE = (
    "You can only sync into playlists you own or that are collaborative."
)
REMOVE_FORBIDDEN_MESSAGE = (
    "You can only remove tracks from playlists you own or that are collaborative."
)


def _ensure_editable(summary: PlaylistSummary, message: str) -> None:
    if not summary.is_editable:
        raise AuthorizationError(message)


class SyncService:
    """Writes playlist differences and keeps the session's undo slot."""

    def __init__(
        self,
        access: AccessContext,
        playlist_service: PlaylistService,
        mutation_service: PlaylistMutationService,
        undo_store: UndoStore,
    ) -> None:
        self._access = access
        self._playlists = playlist_service
        self._mutations = mutation_service
        self._undo_store = undo_store

    async def _current_user_id(self) -> str | None:
        current_user = await self._playlists.get_current_user()
        return current_user.get("id")

    # Hey future me - two ways in:
    # 1. track_uris only: the caller already picked what to add (the UI's "missing" list)
    # 2. source_playlist_id: we diff source→target ourselves; track_uris (if given) narrows it
    # Either way candidates are filtered against the target's CURRENT occurrences right before
    # adding, so a double-clicked sync button doesn't add everything twice. Positions start at
    # the target's tracks.total because unavailable placeholders still occupy slots.
    async def sync(
        self,
        target_playlist_id: str,
        track_uris: Sequence[str] | None = None,
        *,
        source_playlist_id: str | None = None,
        two_way: bool = False,
    ) -> SyncResult:
        """Add missing tracks to the target and record an undo entry.

        Args:
            target_playlist_id: Playlist to write into
            track_uris: Explicit candidates to add
            source_playlist_id: Playlist to diff against the target
            two_way: Also add the target-only tracks to the source

        Returns:
            Added URIs, the undo token (None if nothing was added) and the
            URIs added to the source by a two-way sync

        Raises:
            ScopeError: If the token can't modify playlists
            ValidationException: If neither candidates nor a source were given
            AuthorizationError: If a playlist to write into isn't editable
            PartialSyncError: If the target was written but adding back into
                the source failed; carries the target's added URIs and undo token
        """
        self._access.ensure_scopes(MODIFY_SCOPES)
        if track_uris is None and source_playlist_id is None:
            raise ValidationException("Provide track_uris or source_playlist_id")
        if two_way and source_playlist_id is None:
            raise ValidationException("Two-way sync needs a source_playlist_id")

        async with log_operation(
            logger,
            "sync",
            target_playlist_id=target_playlist_id,
            source_playlist_id=source_playlist_id,
            two_way=two_way,
        ):
            user_id = await self._current_user_id()

            source: PlaylistWithTracks | None = None
            reverse_candidates: list[str] = []
            if source_playlist_id is not None:
                source, target = await asyncio.gather(
                    self._playlists.get_playlist_with_tracks(source_playlist_id, user_id),
                    self._playlists.get_playlist_with_tracks(target_playlist_id, user_id),
                )
                comparison = build_playlist_comparison(source, target)
                candidates = (
                    list(track_uris)
                    if track_uris is not None
                    else [track.uri for track in comparison.in_a_only]
                )
                reverse_candidates = [track.uri for track in comparison.in_b_only]
            else:
                target = await self._playlists.get_playlist_with_tracks(
                    target_playlist_id, user_id
                )
                candidates = list(track_uris or [])

            _ensure_editable(target.summary, SYNC_FORBIDDEN_MESSAGE)
            if two_way and source is not None:
                _ensure_editable(source.summary, SYNC_FORBIDDEN_MESSAGE)

            to_add = await self._mutations.filter_already_present(
                target_playlist_id, candidates, existing_tracks=target.tracks
            )
            added = await self._mutations.add_tracks(
                target_playlist_id,
                to_add,
                starting_position=target.summary.track_count,
            )

            result = SyncResult(added_uris=list(added.added_uris))
            if added.added_entries:
                entry = await self._undo_store.record(
                    self._access.session_key,
                    target_playlist_id,
                    added.added_entries,
                    added.snapshot_id,
                )
                result.undo_token = entry.undo_token

            if two_way and source is not None:
                reverse_to_add = await self._mutations.filter_already_present(
                    source.summary.id, reverse_candidates, existing_tracks=source.tracks
                )
                try:
                    reverse = await self._mutations.add_tracks(
                        source.summary.id,
                        reverse_to_add,
                        starting_position=source.summary.track_count,
                    )
                except Exception as e:
                    raise PartialSyncError(
                        target_playlist_id=target_playlist_id,
                        added_uris=result.added_uris,
                        undo_token=result.undo_token,
                        source_playlist_id=source.summary.id,
                        reverse_committed_uris=(
                            list(e.committed_uris)
                            if isinstance(e, BatchMutationError)
                            else []
                        ),
                        cause=e,
                    ) from e
                result.reverse_added_uris = list(reverse.added_uris)

            logger.info(
                "Synced %d track(s) into %s (%d back into source)",
                len(result.added_uris),
                target_playlist_id,
                len(result.reverse_added_uris),
            )
            return result

    # Yo, a wrong/stale token or a different playlist is NOT an error - it's "nothing to undo".
    # The slot stays untouched on mismatch, so the right token still works afterwards.
    async def undo(self, target_playlist_id: str, undo_token: str) -> UndoResult:
        """Revert the session's last sync if token and playlist match.

        Args:
            target_playlist_id: Playlist the sync wrote into
            undo_token: Token returned by that sync

        Returns:
            ``found=False`` when there is nothing matching to undo
        """
        self._access.ensure_scopes(MODIFY_SCOPES)

        entry = await self._undo_store.consume(
            self._access.session_key, target_playlist_id, undo_token
        )
        if entry is None or not entry.entries:
            logger.info("No undoable sync found for playlist %s", target_playlist_id)
            return UndoResult(found=False)

        async with log_operation(
            logger,
            "undo",
            target_playlist_id=target_playlist_id,
            entries=len(entry.entries),
        ):
            removed = await self._mutations.remove_tracks(
                target_playlist_id, entry.entries, snapshot_id=entry.snapshot_id
            )
        return UndoResult(found=True, removed_uris=removed.removed_uris)

    async def remove_selected(
        self, playlist_id: str, entries: Sequence[TrackEntry]
    ) -> RemoveTracksResult:
        """Remove user-selected occurrences from an editable playlist.

        Raises:
            ScopeError: If the token can't modify playlists
            ValidationException: If there is nothing to remove
            AuthorizationError: If the playlist isn't editable
        """
        self._access.ensure_scopes(MODIFY_SCOPES)
        if not entries:
            raise ValidationException("Provide at least one valid entry to remove.")

        async with log_operation(
            logger, "remove_selected", playlist_id=playlist_id, entries=len(entries)
        ):
            user_id = await self._current_user_id()
            summary = await self._playlists.get_playlist_summary(playlist_id, user_id)
            _ensure_editable(summary, REMOVE_FORBIDDEN_MESSAGE)
            return await self._mutations.remove_tracks(playlist_id, entries)
