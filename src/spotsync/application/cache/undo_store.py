"""Single-slot undo record per session."""

import logging
import uuid
from collections.abc import Iterable
from datetime import UTC, datetime

from spotsync.application.cache.base_cache import BaseCache
from spotsync.domain.entities import TrackEntry, UndoEntry

logger = logging.getLogger(__name__)


# Hey future me - ONE slot per session, not a history. A new sync overwrites whatever was there,
# so only the most recent sync can be undone. The key is the session key (SHA-256 of the access
# token) so the raw token never sits in the cache. consume() is single-use: the entry must match
# token AND playlist, and whoever wins the delete() gets it - a second undo with the same token
# finds nothing.
class UndoStore:
    """Records and consumes the last reversible sync of each session."""

    def __init__(
        self,
        cache: BaseCache[str, UndoEntry],
        ttl_seconds: int | None = None,
    ) -> None:
        self._cache = cache
        self._ttl_seconds = ttl_seconds

    async def record(
        self,
        session_key: str,
        playlist_id: str,
        entries: Iterable[TrackEntry],
        snapshot_id: str | None,
    ) -> UndoEntry:
        """Store a new undo entry, replacing the previous one of this session.

        Args:
            session_key: Opaque per-session key
            playlist_id: Playlist the sync wrote into
            entries: URIs and the positions they were inserted at
            snapshot_id: Playlist version after the sync

        Returns:
            The stored entry with a fresh undo token
        """
        entry = UndoEntry(
            undo_token=str(uuid.uuid4()),
            playlist_id=playlist_id,
            entries=tuple(entries),
            snapshot_id=snapshot_id,
            created_at=datetime.now(UTC),
        )
        await self._cache.set(session_key, entry, ttl_seconds=self._ttl_seconds)
        logger.debug(
            "Recorded undo entry for playlist %s (%d entries)",
            playlist_id,
            len(entry.entries),
        )
        return entry

    async def consume(
        self, session_key: str, playlist_id: str, undo_token: str
    ) -> UndoEntry | None:
        """Take the session's entry if token and playlist both match.

        A mismatch leaves the slot untouched.

        Returns:
            The entry (now removed from the store), or None
        """
        entry = await self._cache.get(session_key)
        if entry is None:
            return None
        if entry.undo_token != undo_token or entry.playlist_id != playlist_id:
            logger.debug("Undo token or playlist mismatch for playlist %s", playlist_id)
            return None
        if not await self._cache.delete(session_key):
            return None
        return entry

    async def peek(self, session_key: str) -> UndoEntry | None:
        """Current entry of the session without consuming it."""
        return await self._cache.get(session_key)
