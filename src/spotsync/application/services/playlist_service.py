"""Playlist reading: listing, loading with all tracks, paging, comparing.

Hey future me - this is the READ side. Nothing in here mutates a playlist; adds and removals
live in PlaylistMutationService. Every page walk goes through _follow_cursors() so the
cycle/page-cap guard can't be forgotten in one place.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from spotsync.application.services.playlist_diff import build_playlist_comparison
from spotsync.config.settings import SyncSettings
from spotsync.domain.entities import (
    PlaylistComparison,
    PlaylistSummary,
    PlaylistTracksPage,
    PlaylistWithTracks,
    Track,
    UserPlaylists,
)
from spotsync.domain.exceptions import PaginationError
from spotsync.domain.ports import ISpotifyFetcher
from spotsync.domain.value_objects import READ_SCOPES, AccessContext
from spotsync.infrastructure.integrations.spotify_mapper import (
    to_playlist_summary,
    to_tracks,
)
from spotsync.infrastructure.observability import log_operation

logger = logging.getLogger(__name__)

_TRACK_FIELDS = (
    "track(id,uri,name,duration_ms,is_local,album(id,name,images),artists(id,name))"
)

# Full playlist incl. the first page of tracks and its "next" cursor
PLAYLIST_FIELDS = (
    "id,name,description,images,collaborative,owner(id,display_name),"
    f"tracks(total,items({_TRACK_FIELDS}),next),external_urls"
)
# Metadata only, for the first page of incremental loading
PLAYLIST_METADATA_FIELDS = (
    "id,name,description,images,collaborative,owner(id,display_name),"
    "tracks(total),external_urls"
)
TRACKS_PAGE_FIELDS = f"items({_TRACK_FIELDS}),next,total"

MAX_TRACKS_PAGE_LIMIT = 100


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def extract_next_offset(next_url: str | None) -> int | None:
    """Read the ``offset`` query parameter of a Spotify "next" cursor.

    Returns:
        The offset, or None when there is no next page or it can't be parsed
    """
    if not next_url:
        return None
    try:
        offset = httpx.URL(next_url).params.get("offset")
        return int(offset) if offset is not None else None
    except (httpx.InvalidURL, ValueError):
        return None


class PlaylistService:
    """Reads playlists of the current Spotify user."""

    def __init__(
        self,
        fetcher: ISpotifyFetcher,
        access: AccessContext,
        settings: SyncSettings | None = None,
    ) -> None:
        """Initialize playlist service.

        Args:
            fetcher: Authenticated Spotify request function
            access: Credential of the current session (scope checks)
            settings: Sync settings (page cap, page sizes)
        """
        self._fetcher = fetcher
        self._access = access
        self._settings = settings or SyncSettings()

    # Hey future me - cursors are followed STRICTLY one after another, each next URL comes from
    # the previous response. Spotify has been seen returning the same "next" twice during
    # concurrent edits; without the seen-set that loops forever. max_pages is the second
    # fuse for a chain that never repeats but never ends either.
    async def _follow_cursors(self, next_url: str | None) -> AsyncIterator[dict[str, Any]]:
        seen: set[str] = set()
        pages = 0
        while next_url:
            if next_url in seen:
                raise PaginationError(
                    f"Pagination cursor repeated after {pages} page(s): {next_url}", pages
                )
            if pages >= self._settings.max_pages:
                raise PaginationError(
                    f"Pagination exceeded {self._settings.max_pages} pages", pages
                )
            seen.add(next_url)
            page = _as_dict(await self._fetcher.request(next_url))
            pages += 1
            yield page
            next_url = page.get("next") or None

    async def get_current_user(self) -> dict[str, Any]:
        """Raw profile of the current user (``GET /me``)."""
        return _as_dict(await self._fetcher.request("/me"))

    async def _get_raw_playlist(self, playlist_id: str) -> dict[str, Any]:
        return _as_dict(
            await self._fetcher.request(
                f"/playlists/{playlist_id}", params={"fields": PLAYLIST_FIELDS}
            )
        )

    async def get_playlist_summary(
        self, playlist_id: str, current_user_id: str | None = None
    ) -> PlaylistSummary:
        """Load a playlist's metadata without walking its tracks."""
        raw = await self._fetcher.request(
            f"/playlists/{playlist_id}", params={"fields": PLAYLIST_METADATA_FIELDS}
        )
        return to_playlist_summary(_as_dict(raw), current_user_id)

    async def fetch_all_playlist_tracks(self, initial: dict[str, Any]) -> list[Track]:
        """Collect every track of a playlist starting from its first response.

        Args:
            initial: Raw playlist object with the first ``tracks`` page embedded

        Returns:
            All tracks in playlist order, unavailable placeholders dropped

        Raises:
            PaginationError: If the cursor chain repeats or runs past the page cap
        """
        first_page = _as_dict(initial.get("tracks"))
        tracks = to_tracks(first_page.get("items"))

        async for page in self._follow_cursors(first_page.get("next")):
            tracks.extend(to_tracks(page.get("items")))

        return tracks

    async def get_playlist_with_tracks(
        self, playlist_id: str, current_user_id: str | None = None
    ) -> PlaylistWithTracks:
        """Load a playlist and all of its tracks.

        Args:
            playlist_id: Spotify playlist id
            current_user_id: Current user's id, needed for ownership flags

        Returns:
            Summary plus the complete track list
        """
        raw = await self._get_raw_playlist(playlist_id)
        tracks = await self.fetch_all_playlist_tracks(raw)
        return PlaylistWithTracks(
            summary=to_playlist_summary(raw, current_user_id),
            tracks=tuple(tracks),
        )

    async def list_playlists(self) -> UserPlaylists:
        """All playlists of the current user, with ownership computed.

        Raises:
            ScopeError: If the token can't read playlists
        """
        self._access.ensure_scopes(READ_SCOPES)
        current_user = await self.get_current_user()
        current_user_id = current_user.get("id")

        result = UserPlaylists()
        first_url = f"/me/playlists?limit={self._settings.playlists_page_size}"
        async for page in self._follow_cursors(first_url):
            result.total = int(page.get("total") or 0)
            for raw in page.get("items") or []:
                if isinstance(raw, dict) and raw.get("id"):
                    result.playlists.append(to_playlist_summary(raw, current_user_id))

        logger.debug("Listed %d playlists", len(result.playlists))
        return result

    # Yo, this is for incremental UI loading - ONE page per call. The first page (offset 0) also
    # carries the summary and the authoritative total from the playlist metadata, later pages
    # only carry tracks. loaded never exceeds total even when Spotify drops placeholders.
    async def get_tracks_page(
        self, playlist_id: str, offset: int = 0, limit: int = MAX_TRACKS_PAGE_LIMIT
    ) -> PlaylistTracksPage:
        """Load a single page of a playlist's tracks.

        Args:
            playlist_id: Spotify playlist id
            offset: Index of the first item, negatives become 0
            limit: Page size, clamped to 1..100

        Returns:
            The mapped page with loading progress
        """
        self._access.ensure_scopes(READ_SCOPES)
        offset = max(0, offset)
        limit = min(MAX_TRACKS_PAGE_LIMIT, max(1, limit))

        page = _as_dict(
            await self._fetcher.request(
                f"/playlists/{playlist_id}/tracks",
                params={"offset": offset, "limit": limit, "fields": TRACKS_PAGE_FIELDS},
            )
        )
        tracks = to_tracks(page.get("items"))
        total = int(page.get("total") or 0)

        summary = None
        if offset == 0:
            current_user = await self.get_current_user()
            summary = await self.get_playlist_summary(playlist_id, current_user.get("id"))
            total = summary.track_count

        return PlaylistTracksPage(
            summary=summary,
            tracks=tracks,
            offset=offset,
            limit=limit,
            total=total,
            loaded=min(offset + len(tracks), total),
            next_offset=extract_next_offset(page.get("next")),
        )

    async def compare_playlists(
        self, playlist_a_id: str, playlist_b_id: str
    ) -> PlaylistComparison:
        """Load both playlists concurrently and diff them.

        Args:
            playlist_a_id: Source playlist ("A")
            playlist_b_id: Target playlist ("B")

        Returns:
            Occurrence-aware comparison of A against B
        """
        self._access.ensure_scopes(READ_SCOPES)

        async with log_operation(
            logger, "compare", playlist_a_id=playlist_a_id, playlist_b_id=playlist_b_id
        ):
            current_user, raw_a, raw_b = await asyncio.gather(
                self.get_current_user(),
                self._get_raw_playlist(playlist_a_id),
                self._get_raw_playlist(playlist_b_id),
            )
            tracks_a, tracks_b = await asyncio.gather(
                self.fetch_all_playlist_tracks(raw_a),
                self.fetch_all_playlist_tracks(raw_b),
            )

            user_id = current_user.get("id")
            return build_playlist_comparison(
                PlaylistWithTracks(
                    summary=to_playlist_summary(raw_a, user_id), tracks=tuple(tracks_a)
                ),
                PlaylistWithTracks(
                    summary=to_playlist_summary(raw_b, user_id), tracks=tuple(tracks_b)
                ),
            )
