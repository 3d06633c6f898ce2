"""Occurrence-aware playlist diffing.

Hey future me - playlists are MULTISETS. If A has track X twice and B has it once, exactly
one of A's copies is "common" and the other is "unique to A". A set-based diff would say
"nothing missing" and the sync would silently drop the second copy. Ties are broken strictly
by position: the first occurrence in A claims the match first.

The URI is the only identity. Same URI with different metadata is the same track.
"""

from collections import Counter
from collections.abc import Iterable, Sequence

from spotsync.domain.entities import (
    ComparableTrack,
    ComparedPlaylist,
    PlaylistComparison,
    PlaylistWithTracks,
    PresenceTrack,
    Track,
    TrackPresence,
)


class OccurrenceCounter:
    """Remaining occurrences per URI, claimed one at a time.

    The single implementation of "is there still an unmatched copy of this
    URI left?" shared by the diff and by candidate filtering, so both agree
    on what counts as missing.
    """

    def __init__(self, uris: Iterable[str] = ()) -> None:
        self._remaining: Counter[str] = Counter(uris)

    def claim(self, uri: str) -> bool:
        """Consume one remaining occurrence of ``uri``.

        Returns:
            True if an occurrence was available (and is now used up)
        """
        if self._remaining[uri] > 0:
            self._remaining[uri] -= 1
            return True
        return False

    def add(self, uri: str) -> None:
        """Make one more occurrence of ``uri`` claimable."""
        self._remaining[uri] += 1

    def remaining(self, uri: str) -> int:
        """Occurrences of ``uri`` not yet claimed."""
        return self._remaining[uri]


def to_comparable_track(track: Track, instance_id: str) -> ComparableTrack:
    """Project a track onto the fields a comparison shows."""
    return ComparableTrack(
        instance_id=instance_id,
        uri=track.uri,
        name=track.name,
        artists=tuple(track.artist_names),
        duration_ms=track.duration_ms,
        image_url=track.image_url,
    )


def _tag(track: ComparableTrack, presence: TrackPresence) -> PresenceTrack:
    return PresenceTrack(
        instance_id=track.instance_id,
        uri=track.uri,
        name=track.name,
        artists=track.artists,
        duration_ms=track.duration_ms,
        image_url=track.image_url,
        presence=presence,
    )


def diff_tracks(
    tracks_a: Sequence[Track], tracks_b: Sequence[Track]
) -> tuple[list[PresenceTrack], list[PresenceTrack]]:
    """Tag every occurrence of A and B with its presence.

    Walks A first, claiming remaining B occurrences; every claim is recorded
    as a match. Then walks B, and each B occurrence is "common" only while
    it can consume one of those recorded matches.

    Args:
        tracks_a: Ordered tracks of playlist A
        tracks_b: Ordered tracks of playlist B

    Returns:
        Tagged A occurrences and tagged B occurrences, in playlist order
    """
    available_in_b = OccurrenceCounter(track.uri for track in tracks_b)
    matched = OccurrenceCounter()

    tagged_a: list[PresenceTrack] = []
    for index, track in enumerate(tracks_a):
        comparable = to_comparable_track(track, f"A-{index}")
        if available_in_b.claim(track.uri):
            matched.add(track.uri)
            tagged_a.append(_tag(comparable, TrackPresence.COMMON))
        else:
            tagged_a.append(_tag(comparable, TrackPresence.UNIQUE_TO_A))

    tagged_b: list[PresenceTrack] = []
    for index, track in enumerate(tracks_b):
        comparable = to_comparable_track(track, f"B-{index}")
        if matched.claim(track.uri):
            tagged_b.append(_tag(comparable, TrackPresence.COMMON))
        else:
            tagged_b.append(_tag(comparable, TrackPresence.UNIQUE_TO_B))

    return tagged_a, tagged_b


def _untag(track: PresenceTrack) -> ComparableTrack:
    return ComparableTrack(
        instance_id=track.instance_id,
        uri=track.uri,
        name=track.name,
        artists=track.artists,
        duration_ms=track.duration_ms,
        image_url=track.image_url,
    )


# Yo, in_both is built from A's side. Each common A occurrence pairs with exactly one common
# B occurrence, so the counts match either way, but A's instance ids are what the UI shows.
def build_playlist_comparison(
    playlist_a: PlaylistWithTracks, playlist_b: PlaylistWithTracks
) -> PlaylistComparison:
    """Compare two loaded playlists occurrence by occurrence.

    Args:
        playlist_a: Source side
        playlist_b: Target side

    Returns:
        Both sides tagged, plus the three occurrence-counted difference lists
    """
    tagged_a, tagged_b = diff_tracks(playlist_a.tracks, playlist_b.tracks)

    return PlaylistComparison(
        playlist_a=ComparedPlaylist(summary=playlist_a.summary, tracks=tuple(tagged_a)),
        playlist_b=ComparedPlaylist(summary=playlist_b.summary, tracks=tuple(tagged_b)),
        in_a_only=tuple(
            _untag(t) for t in tagged_a if t.presence is TrackPresence.UNIQUE_TO_A
        ),
        in_b_only=tuple(
            _untag(t) for t in tagged_b if t.presence is TrackPresence.UNIQUE_TO_B
        ),
        in_both=tuple(_untag(t) for t in tagged_a if t.presence is TrackPresence.COMMON),
    )
