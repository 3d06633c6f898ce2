"""Tests for the HTTP surface: auth, routing, payloads and error mapping."""

from collections.abc import Iterator

import httpx
import pytest
from fastapi.testclient import TestClient

from spotsync.api.dependencies import get_spotify_client
from spotsync.api.routers.sync import normalize_remove_entries
from spotsync.config import Settings
from spotsync.domain.entities import TrackEntry
from spotsync.domain.ports import ISpotifyFetcher
from spotsync.domain.value_objects import MODIFY_SCOPES, READ_SCOPES
from spotsync.main import create_app

AUTH_HEADERS = {
    "Authorization": "Bearer test-token",
    "X-Spotify-Token-Scope": " ".join(MODIFY_SCOPES),
}


class UnreachableSpotify(ISpotifyFetcher):
    async def request(self, path, method="GET", json=None, headers=None, params=None):
        raise httpx.ConnectError("connection refused")


@pytest.fixture
def app(fake_spotify):
    application = create_app(Settings())
    application.dependency_overrides[get_spotify_client] = lambda: fake_spotify
    return application


@pytest.fixture
def client(app) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


class TestAuth:
    """Test credential extraction."""

    def test_missing_token_is_401(self, client: TestClient) -> None:
        response = client.get("/api/playlists")

        assert response.status_code == 401
        assert response.json() == {"detail": "Unauthorized"}

    def test_cookie_credentials_are_accepted(
        self, client: TestClient, fake_spotify
    ) -> None:
        cookie = (
            "spotify_access_token=cookie-token; "
            f"spotify_token_scope={' '.join(READ_SCOPES)}"
        )

        response = client.get("/api/playlists", headers={"Cookie": cookie})

        assert response.status_code == 200

    def test_missing_scopes_is_403_with_reauthorize_hint(self, client: TestClient) -> None:
        response = client.get(
            "/api/playlists",
            headers={
                "Authorization": "Bearer test-token",
                "X-Spotify-Token-Scope": "playlist-read-private",
            },
        )

        assert response.status_code == 403
        body = response.json()
        assert body["detail"] == "Missing Spotify permissions"
        assert body["missing_scopes"] == ["playlist-read-collaborative"]
        assert "re-authorize" in body["action"]

    def test_read_only_token_cannot_sync(self, client: TestClient) -> None:
        response = client.post(
            "/api/sync",
            json={"target_playlist_id": "b", "track_uris": ["1"]},
            headers={
                "Authorization": "Bearer test-token",
                "X-Spotify-Token-Scope": " ".join(READ_SCOPES),
            },
        )

        assert response.status_code == 403
        assert "playlist-modify-public" in response.json()["missing_scopes"]


class TestPlaylistRoutes:
    def test_me(self, client: TestClient) -> None:
        response = client.get("/api/me", headers=AUTH_HEADERS)

        assert response.status_code == 200
        assert response.json()["id"] == "user-1"

    def test_list_playlists(self, client: TestClient, fake_spotify) -> None:
        fake_spotify.add_playlist("mine", ["1", "2"], name="Mine")
        fake_spotify.add_playlist("theirs", [], owner_id="other")

        response = client.get("/api/playlists", headers=AUTH_HEADERS)

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        mine, theirs = body["playlists"]
        assert mine["name"] == "Mine"
        assert mine["track_count"] == 2
        assert mine["is_editable"] is True
        assert theirs["is_editable"] is False

    def test_tracks_page(self, client: TestClient, fake_spotify) -> None:
        fake_spotify.add_playlist("p1", ["spotify:track:1", "spotify:track:2"])

        response = client.get(
            "/api/playlists/p1/tracks", params={"offset": 0, "limit": 1}, headers=AUTH_HEADERS
        )

        assert response.status_code == 200
        body = response.json()
        assert body["summary"]["id"] == "p1"
        assert [t["uri"] for t in body["tracks"]] == ["spotify:track:1"]
        assert body["tracks"][0]["album"]["images"][0]["url"] == "https://img.test/a.jpg"
        assert body["next_offset"] == 1
        assert body["total"] == 2

    def test_compare(self, client: TestClient, fake_spotify) -> None:
        fake_spotify.add_playlist("a", ["spotify:track:1", "spotify:track:2"])
        fake_spotify.add_playlist("b", ["spotify:track:2"])

        response = client.post(
            "/api/playlists/compare",
            json={"source_playlist_id": "a", "target_playlist_id": "b"},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 200
        body = response.json()
        assert [t["uri"] for t in body["in_a_only"]] == ["spotify:track:1"]
        assert [t["instance_id"] for t in body["in_both"]] == ["A-1"]
        assert body["in_b_only"] == []
        assert [t["presence"] for t in body["playlist_a"]["tracks"]] == [
            "unique_to_a",
            "common",
        ]
        assert body["playlist_a"]["tracks"][0]["artists"] == ["Artist"]

    def test_compare_requires_both_ids(self, client: TestClient) -> None:
        response = client.post(
            "/api/playlists/compare",
            json={"source_playlist_id": "a"},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 422

    def test_spotify_error_status_passes_through(self, client: TestClient) -> None:
        response = client.post(
            "/api/playlists/compare",
            json={"source_playlist_id": "a", "target_playlist_id": "missing"},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Not Found"


class TestSyncRoutes:
    """Test sync, undo and remove over HTTP."""

    def test_sync_then_undo(self, client: TestClient, fake_spotify) -> None:
        fake_spotify.add_playlist("a", ["1", "2"])
        fake_spotify.add_playlist("b", ["2"])

        sync = client.post(
            "/api/sync",
            json={"target_playlist_id": "b", "source_playlist_id": "a"},
            headers=AUTH_HEADERS,
        )

        assert sync.status_code == 200
        assert sync.json()["added_uris"] == ["1"]
        token = sync.json()["undo_token"]
        assert fake_spotify.uris("b") == ["2", "1"]

        undo = client.post(
            "/api/undo",
            json={"target_playlist_id": "b", "undo_token": token},
            headers=AUTH_HEADERS,
        )

        assert undo.status_code == 200
        assert undo.json() == {"removed_uris": ["1"]}
        assert fake_spotify.uris("b") == ["2"]

    def test_undo_belongs_to_the_session(self, client: TestClient, fake_spotify) -> None:
        fake_spotify.add_playlist("b", [])
        token = client.post(
            "/api/sync",
            json={"target_playlist_id": "b", "track_uris": ["1"]},
            headers=AUTH_HEADERS,
        ).json()["undo_token"]

        other_session = {**AUTH_HEADERS, "Authorization": "Bearer another-token"}
        response = client.post(
            "/api/undo",
            json={"target_playlist_id": "b", "undo_token": token},
            headers=other_session,
        )

        assert response.status_code == 404
        assert response.json() == {"detail": "No undoable sync found"}
        assert fake_spotify.uris("b") == ["1"]

    def test_sync_without_candidates_or_source_is_400(self, client: TestClient) -> None:
        response = client.post(
            "/api/sync", json={"target_playlist_id": "b"}, headers=AUTH_HEADERS
        )

        assert response.status_code == 400

    def test_sync_into_foreign_playlist_is_403(
        self, client: TestClient, fake_spotify
    ) -> None:
        fake_spotify.add_playlist("b", [], owner_id="other")

        response = client.post(
            "/api/sync",
            json={"target_playlist_id": "b", "track_uris": ["1"]},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 403
        assert "own or that are collaborative" in response.json()["detail"]
        assert fake_spotify.writes() == []

    def test_partial_failure_reports_committed_uris(
        self, app, fake_spotify
    ) -> None:
        app.state.settings.sync.batch_size = 1
        fake_spotify.add_playlist("b", [])
        fake_spotify.fail_on_write = 2

        with TestClient(app) as client:
            response = client.post(
                "/api/sync",
                json={"target_playlist_id": "b", "track_uris": ["1", "2"]},
                headers=AUTH_HEADERS,
            )

        assert response.status_code == 502
        body = response.json()
        assert body["committed_uris"] == ["1"]
        assert body["committed_batches"] == 1

    def test_failed_reverse_leg_keeps_target_undo_token(
        self, client: TestClient, fake_spotify
    ) -> None:
        fake_spotify.add_playlist("a", ["1", "2"])
        fake_spotify.add_playlist("b", ["2", "3"])
        fake_spotify.fail_on_write = 2

        response = client.post(
            "/api/sync",
            json={"target_playlist_id": "b", "source_playlist_id": "a", "two_way": True},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 502
        body = response.json()
        assert body["added_uris"] == ["1"]
        assert body["reverse_committed_uris"] == []
        assert fake_spotify.uris("b") == ["2", "3", "1"]

        undo = client.post(
            "/api/undo",
            json={"target_playlist_id": "b", "undo_token": body["undo_token"]},
            headers=AUTH_HEADERS,
        )

        assert undo.status_code == 200
        assert fake_spotify.uris("b") == ["2", "3"]

    def test_remove(self, client: TestClient, fake_spotify) -> None:
        fake_spotify.add_playlist("b", ["x", "y", "x"])

        response = client.post(
            "/api/remove",
            json={
                "playlist_id": "b",
                "entries": [
                    {"uri": "x", "position": 2},
                    {"uri": "", "position": 0},
                    "garbage",
                ],
            },
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 200
        assert response.json() == {"removed_count": 1, "removed_uris": ["x"]}
        assert fake_spotify.uris("b") == ["x", "y"]

    def test_remove_with_only_invalid_entries_is_400(self, client: TestClient) -> None:
        response = client.post(
            "/api/remove",
            json={"playlist_id": "b", "entries": [{"uri": "x", "position": -1}]},
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 400
        assert response.json() == {"detail": "Provide at least one valid entry to remove."}


class TestInfrastructureRoutes:
    def test_liveness_needs_no_auth(self, client: TestClient) -> None:
        response = client.get("/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "alive"

    def test_correlation_id_is_echoed(self, client: TestClient) -> None:
        response = client.get("/health/live", headers={"X-Correlation-ID": "abc-123"})

        assert response.headers["X-Correlation-ID"] == "abc-123"

    def test_unreachable_spotify_is_502(self, app) -> None:
        app.dependency_overrides[get_spotify_client] = lambda: UnreachableSpotify()

        with TestClient(app) as client:
            response = client.get("/api/me", headers=AUTH_HEADERS)

        assert response.status_code == 502
        assert response.json() == {"detail": "Spotify is unreachable"}


class TestNormalizeRemoveEntries:
    def test_keeps_valid_and_floors_fractions(self) -> None:
        assert normalize_remove_entries(
            [{"uri": " x ", "position": 3.7}, {"uri": "y", "position": 0}]
        ) == [TrackEntry("x", 3), TrackEntry("y", 0)]

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            "x",
            {"uri": "x"},
            {"uri": "   ", "position": 1},
            {"uri": 5, "position": 1},
            {"uri": "x", "position": True},
            {"uri": "x", "position": "3"},
            {"uri": "x", "position": -0.5},
            {"uri": "x", "position": float("nan")},
            {"uri": "x", "position": float("inf")},
        ],
    )
    def test_drops_invalid(self, raw) -> None:
        assert normalize_remove_entries([raw]) == []
