"""Shared fixtures: an in-memory Spotify Web API and ready-wired services."""

from typing import Any
from urllib.parse import parse_qs, urlsplit

import pytest

from spotsync.application.cache import InMemoryCache, UndoStore
from spotsync.application.services import (
    PlaylistMutationService,
    PlaylistService,
    SyncService,
)
from spotsync.config import SyncSettings
from spotsync.domain.exceptions import SpotifyApiError
from spotsync.domain.ports import ISpotifyFetcher
from spotsync.domain.value_objects import MODIFY_SCOPES, AccessContext

FAKE_API_BASE = "https://api.spotify.test/v1"
USER_ID = "user-1"


def track_item(uri: str | None) -> dict[str, Any]:
    """Playlist item wrapper as Spotify returns it. None gives a placeholder."""
    if uri is None:
        return {"track": None}
    return {
        "track": {
            "id": uri.rsplit(":", 1)[-1],
            "uri": uri,
            "name": f"Song {uri.rsplit(':', 1)[-1]}",
            "duration_ms": 180000,
            "is_local": False,
            "artists": [{"id": "artist-1", "name": "Artist"}],
            "album": {
                "id": "album-1",
                "name": "Album",
                "images": [{"url": "https://img.test/a.jpg", "height": 64, "width": 64}],
            },
        }
    }


class FakeSpotifyApi(ISpotifyFetcher):
    """Spotify Web API simulated in memory.

    Playlists are lists of URIs (None = unavailable placeholder). Pages, cursors,
    snapshot ids and position-checked deletes behave like the real API, so the
    services can be exercised end to end.
    """

    def __init__(self, user_id: str = USER_ID, page_size: int = 100) -> None:
        self.user_id = user_id
        self.page_size = page_size
        self.playlists: dict[str, dict[str, Any]] = {}
        self.calls: list[dict[str, Any]] = []
        self.fail_on_write: int | None = None
        self._writes = 0
        self._snapshots = 0

    def add_playlist(
        self,
        playlist_id: str,
        uris: list[str | None],
        owner_id: str | None = None,
        collaborative: bool = False,
        name: str | None = None,
    ) -> None:
        self.playlists[playlist_id] = {
            "name": name or f"Playlist {playlist_id}",
            "owner_id": owner_id or self.user_id,
            "collaborative": collaborative,
            "uris": list(uris),
        }

    def uris(self, playlist_id: str) -> list[str | None]:
        return list(self.playlists[playlist_id]["uris"])

    def writes(self, method: str | None = None) -> list[dict[str, Any]]:
        return [
            call
            for call in self.calls
            if call["method"] != "GET" and (method is None or call["method"] == method)
        ]

    def _next_snapshot(self) -> str:
        self._snapshots += 1
        return f"snapshot-{self._snapshots}"

    def _tracks_page(self, playlist_id: str, offset: int, limit: int) -> dict[str, Any]:
        uris = self.playlists[playlist_id]["uris"]
        items = [track_item(uri) for uri in uris[offset : offset + limit]]
        next_url = None
        if offset + limit < len(uris):
            next_url = (
                f"{FAKE_API_BASE}/playlists/{playlist_id}/tracks"
                f"?offset={offset + limit}&limit={limit}"
            )
        return {"items": items, "next": next_url, "total": len(uris)}

    def _playlist_object(self, playlist_id: str) -> dict[str, Any]:
        playlist = self.playlists[playlist_id]
        return {
            "id": playlist_id,
            "name": playlist["name"],
            "description": None,
            "images": [],
            "collaborative": playlist["collaborative"],
            "owner": {"id": playlist["owner_id"], "display_name": playlist["owner_id"]},
            "tracks": self._tracks_page(playlist_id, 0, self.page_size),
            "external_urls": {"spotify": f"https://open.spotify.test/playlist/{playlist_id}"},
        }

    def _require(self, playlist_id: str) -> None:
        if playlist_id not in self.playlists:
            raise SpotifyApiError(404, "Not Found", {"error": {"status": 404}})

    async def request(
        self,
        path: str,
        method: str = "GET",
        json: Any = None,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        parts = urlsplit(path)
        route = parts.path.removeprefix(urlsplit(FAKE_API_BASE).path)
        query = {key: values[0] for key, values in parse_qs(parts.query).items()}
        query.update({key: str(value) for key, value in (params or {}).items()})
        self.calls.append({"method": method, "path": route, "json": json, "params": query})

        segments = [segment for segment in route.split("/") if segment]

        if method != "GET":
            self._writes += 1
            if self.fail_on_write is not None and self._writes == self.fail_on_write:
                raise SpotifyApiError(502, "Bad Gateway", "upstream exploded")

        if segments == ["me"]:
            return {"id": self.user_id, "display_name": "Test User"}

        if segments == ["me", "playlists"]:
            offset = int(query.get("offset", 0))
            limit = int(query.get("limit", 50))
            ids = list(self.playlists)
            items = []
            for playlist_id in ids[offset : offset + limit]:
                playlist = self._playlist_object(playlist_id)
                playlist["tracks"] = {"total": len(self.playlists[playlist_id]["uris"])}
                items.append(playlist)
            next_url = None
            if offset + limit < len(ids):
                next_url = f"{FAKE_API_BASE}/me/playlists?offset={offset + limit}&limit={limit}"
            return {"items": items, "next": next_url, "total": len(ids)}

        if len(segments) == 2 and segments[0] == "playlists":
            self._require(segments[1])
            return self._playlist_object(segments[1])

        if len(segments) == 3 and segments[0] == "playlists" and segments[2] == "tracks":
            playlist_id = segments[1]
            self._require(playlist_id)
            uris = self.playlists[playlist_id]["uris"]

            if method == "GET":
                return self._tracks_page(
                    playlist_id,
                    int(query.get("offset", 0)),
                    int(query.get("limit", self.page_size)),
                )

            if method == "POST":
                if len(json["uris"]) > 100:
                    raise SpotifyApiError(400, "Bad Request", "Too many tracks")
                uris.extend(json["uris"])
                return {"snapshot_id": self._next_snapshot()}

            if method == "DELETE":
                positions: list[int] = []
                for item in json["tracks"]:
                    for position in item["positions"]:
                        if position >= len(uris) or uris[position] != item["uri"]:
                            raise SpotifyApiError(
                                400, "Bad Request", f"No {item['uri']} at {position}"
                            )
                        positions.append(position)
                if len(positions) > 100:
                    raise SpotifyApiError(400, "Bad Request", "Too many tracks")
                for position in sorted(positions, reverse=True):
                    del uris[position]
                return {"snapshot_id": self._next_snapshot()}

        raise SpotifyApiError(404, "Not Found", f"No route for {method} {route}")


@pytest.fixture
def fake_spotify() -> FakeSpotifyApi:
    """Empty in-memory Spotify for the test user."""
    return FakeSpotifyApi()


@pytest.fixture
def access() -> AccessContext:
    """Credential holding every playlist scope."""
    return AccessContext(access_token="test-token", scope=" ".join(MODIFY_SCOPES))


@pytest.fixture
def sync_settings() -> SyncSettings:
    return SyncSettings(batch_size=100, max_pages=50)


@pytest.fixture
def playlist_service(
    fake_spotify: FakeSpotifyApi, access: AccessContext, sync_settings: SyncSettings
) -> PlaylistService:
    return PlaylistService(fake_spotify, access, sync_settings)


@pytest.fixture
def mutation_service(
    fake_spotify: FakeSpotifyApi, playlist_service: PlaylistService
) -> PlaylistMutationService:
    return PlaylistMutationService(fake_spotify, playlist_service)


@pytest.fixture
def undo_store() -> UndoStore:
    return UndoStore(InMemoryCache())


@pytest.fixture
def sync_service(
    access: AccessContext,
    playlist_service: PlaylistService,
    mutation_service: PlaylistMutationService,
    undo_store: UndoStore,
) -> SyncService:
    return SyncService(access, playlist_service, mutation_service, undo_store)
