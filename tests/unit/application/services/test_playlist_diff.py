"""Tests for occurrence-aware playlist diffing."""

from collections import Counter

from spotsync.application.services.playlist_diff import (
    OccurrenceCounter,
    build_playlist_comparison,
    diff_tracks,
)
from spotsync.domain.entities import (
    PlaylistSummary,
    PlaylistWithTracks,
    Track,
    TrackAlbum,
    TrackArtist,
    TrackPresence,
)

COMMON = TrackPresence.COMMON
ONLY_A = TrackPresence.UNIQUE_TO_A
ONLY_B = TrackPresence.UNIQUE_TO_B


def _tracks(*uris: str) -> list[Track]:
    return [Track(uri=uri, name=uri) for uri in uris]


def _playlist(playlist_id: str, *uris: str) -> PlaylistWithTracks:
    return PlaylistWithTracks(
        summary=PlaylistSummary(id=playlist_id, name=playlist_id),
        tracks=tuple(_tracks(*uris)),
    )


class TestOccurrenceCounter:
    def test_claims_until_exhausted(self) -> None:
        counter = OccurrenceCounter(["x", "x", "y"])

        assert [counter.claim("x") for _ in range(3)] == [True, True, False]
        assert counter.claim("y") is True
        assert counter.claim("z") is False

    def test_add_makes_uri_claimable(self) -> None:
        counter = OccurrenceCounter()
        counter.add("x")

        assert counter.remaining("x") == 1
        assert counter.claim("x") is True
        assert counter.remaining("x") == 0


class TestDiffTracks:
    """Test presence tagging per occurrence."""

    def test_empty_lists(self) -> None:
        assert diff_tracks([], []) == ([], [])

    def test_extra_copy_in_a_is_unique(self) -> None:
        tagged_a, tagged_b = diff_tracks(_tracks("x", "x"), _tracks("x"))

        assert [t.presence for t in tagged_a] == [COMMON, ONLY_A]
        assert [t.presence for t in tagged_b] == [COMMON]

    def test_first_occurrence_claims_match(self) -> None:
        tagged_a, _ = diff_tracks(_tracks("x", "y", "x"), _tracks("x"))

        assert [(t.instance_id, t.presence) for t in tagged_a] == [
            ("A-0", COMMON),
            ("A-1", ONLY_A),
            ("A-2", ONLY_A),
        ]

    def test_extra_copies_in_b_are_unique(self) -> None:
        _, tagged_b = diff_tracks(_tracks("x"), _tracks("y", "x", "x"))

        assert [(t.instance_id, t.presence) for t in tagged_b] == [
            ("B-0", ONLY_B),
            ("B-1", COMMON),
            ("B-2", ONLY_B),
        ]

    def test_identical_playlists_are_all_common(self) -> None:
        uris = ("a", "b", "a", "c")
        tagged_a, tagged_b = diff_tracks(_tracks(*uris), _tracks(*uris))

        assert all(t.presence is COMMON for t in tagged_a + tagged_b)

    def test_uri_is_the_only_identity(self) -> None:
        original = Track(uri="x", name="Song")
        remaster = Track(uri="x", name="Song (Remastered)", duration_ms=1)

        tagged_a, tagged_b = diff_tracks([original], [remaster])

        assert tagged_a[0].presence is COMMON
        assert tagged_b[0].presence is COMMON

    def test_common_counts_match_on_both_sides(self) -> None:
        a = _tracks("a", "a", "a", "b", "c", "c")
        b = _tracks("c", "a", "d", "a", "c", "c", "e")

        tagged_a, tagged_b = diff_tracks(a, b)

        common_a = Counter(t.uri for t in tagged_a if t.presence is COMMON)
        common_b = Counter(t.uri for t in tagged_b if t.presence is COMMON)
        assert common_a == common_b == Counter({"a": 2, "c": 2})

    def test_comparable_fields_are_projected(self) -> None:
        track = Track(
            uri="spotify:track:1",
            name="One",
            duration_ms=5,
            artists=(TrackArtist(name="A"), TrackArtist(name="B")),
            album=TrackAlbum(name="Al"),
        )

        tagged_a, _ = diff_tracks([track], [])

        assert tagged_a[0].artists == ("A", "B")
        assert tagged_a[0].duration_ms == 5
        assert tagged_a[0].image_url is None


class TestBuildPlaylistComparison:
    """Test the derived difference lists."""

    def test_scenario(self) -> None:
        comparison = build_playlist_comparison(
            _playlist("a", "1", "2", "2", "3"),
            _playlist("b", "2", "4", "3", "3"),
        )

        assert [t.uri for t in comparison.in_a_only] == ["1", "2"]
        assert [t.uri for t in comparison.in_b_only] == ["4", "3"]
        assert [t.uri for t in comparison.in_both] == ["2", "3"]
        assert comparison.playlist_a.summary.id == "a"
        assert [t.presence for t in comparison.playlist_b.tracks] == [
            COMMON,
            ONLY_B,
            COMMON,
            ONLY_B,
        ]

    def test_lists_are_not_deduplicated(self) -> None:
        comparison = build_playlist_comparison(
            _playlist("a", "x", "x", "x"), _playlist("b")
        )

        assert [t.instance_id for t in comparison.in_a_only] == ["A-0", "A-1", "A-2"]

    def test_comparing_playlist_with_itself_has_no_differences(self) -> None:
        playlist = _playlist("a", "1", "1", "2")

        comparison = build_playlist_comparison(playlist, playlist)

        assert comparison.in_a_only == ()
        assert comparison.in_b_only == ()
        assert len(comparison.in_both) == 3

    def test_swapping_sides_swaps_unique_lists(self) -> None:
        a = _playlist("a", "1", "2", "2")
        b = _playlist("b", "2", "3")

        forward = build_playlist_comparison(a, b)
        backward = build_playlist_comparison(b, a)

        assert Counter(t.uri for t in forward.in_a_only) == Counter(
            t.uri for t in backward.in_b_only
        )
        assert Counter(t.uri for t in forward.in_b_only) == Counter(
            t.uri for t in backward.in_a_only
        )

    def test_occurrence_counts_add_up(self) -> None:
        a = _playlist("a", "1", "2", "2", "5", "5")
        b = _playlist("b", "5", "2", "7")

        comparison = build_playlist_comparison(a, b)

        assert len(comparison.in_a_only) + len(comparison.in_both) == len(a.tracks)
        assert len(comparison.in_b_only) + len(comparison.in_both) == len(b.tracks)
