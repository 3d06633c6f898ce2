"""Domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


@dataclass(frozen=True)
class Image:
    """Artwork reference as Spotify returns it."""

    url: str
    height: int | None = None
    width: int | None = None


@dataclass(frozen=True)
class TrackArtist:
    """Artist credit on a track."""

    name: str
    id: str | None = None


@dataclass(frozen=True)
class TrackAlbum:
    """Album a track belongs to."""

    name: str
    id: str | None = None
    images: tuple[Image, ...] = ()


# Hey future me, the URI is THE identity of a track for everything in this app - diffing,
# filtering, removal payloads. The id can be None (local files have no catalog id) so never
# compare on id. Two tracks with the same URI are the same song even if metadata differs.
@dataclass(frozen=True)
class Track:
    """A track occurrence's catalog data."""

    uri: str
    name: str
    id: str | None = None
    duration_ms: int = 0
    is_local: bool = False
    artists: tuple[TrackArtist, ...] = ()
    album: TrackAlbum = field(default_factory=lambda: TrackAlbum(name="Unknown album"))

    @property
    def artist_names(self) -> list[str]:
        """Artist names in credit order."""
        return [artist.name for artist in self.artists]

    @property
    def image_url(self) -> str | None:
        """First album image URL, if any."""
        return self.album.images[0].url if self.album.images else None


@dataclass(frozen=True)
class PlaylistSummary:
    """Playlist metadata without tracks.

    Recomputed on every fetch, never persisted. ``is_owned`` is only
    meaningful when the current user id was known at mapping time.
    """

    id: str
    name: str
    track_count: int = 0
    description: str | None = None
    images: tuple[Image, ...] = ()
    owner_name: str | None = None
    owner_id: str | None = None
    external_url: str | None = None
    is_collaborative: bool = False
    is_owned: bool = False

    @property
    def is_editable(self) -> bool:
        """Whether the current user may add/remove tracks."""
        return self.is_owned or self.is_collaborative


@dataclass(frozen=True)
class PlaylistWithTracks:
    """Summary plus the complete, ordered track list."""

    summary: PlaylistSummary
    tracks: tuple[Track, ...] = ()


class TrackPresence(str, Enum):
    """Where a track occurrence shows up in a comparison."""

    UNIQUE_TO_A = "unique_to_a"
    UNIQUE_TO_B = "unique_to_b"
    COMMON = "common"


# Yo, instance_id ("A-0", "B-17") identifies ONE occurrence inside ONE comparison result.
# It is reassigned by position on every comparison - never store it or compare it across calls!
@dataclass(frozen=True)
class ComparableTrack:
    """A track occurrence projected to the fields a comparison needs."""

    instance_id: str
    uri: str
    name: str
    artists: tuple[str, ...] = ()
    duration_ms: int = 0
    image_url: str | None = None


@dataclass(frozen=True)
class PresenceTrack(ComparableTrack):
    """A comparable track tagged with its presence."""

    presence: TrackPresence = TrackPresence.COMMON


@dataclass(frozen=True)
class ComparedPlaylist:
    """One side of a comparison."""

    summary: PlaylistSummary
    tracks: tuple[PresenceTrack, ...] = ()


@dataclass(frozen=True)
class PlaylistComparison:
    """Result of comparing playlist A against playlist B.

    The three derived lists hold one entry per occurrence, they are NOT
    deduplicated by URI.
    """

    playlist_a: ComparedPlaylist
    playlist_b: ComparedPlaylist
    in_a_only: tuple[ComparableTrack, ...] = ()
    in_b_only: tuple[ComparableTrack, ...] = ()
    in_both: tuple[ComparableTrack, ...] = ()


@dataclass(frozen=True)
class TrackEntry:
    """A URI at a specific position inside a playlist."""

    uri: str
    position: int


@dataclass(frozen=True)
class UndoEntry:
    """The single reversible sync recorded for a session."""

    undo_token: str
    playlist_id: str
    entries: tuple[TrackEntry, ...]
    snapshot_id: str | None
    created_at: datetime


@dataclass
class AddTracksResult:
    """Outcome of a batched add."""

    added_uris: list[str] = field(default_factory=list)
    added_entries: list[TrackEntry] = field(default_factory=list)
    snapshot_id: str | None = None

    @property
    def added_count(self) -> int:
        return len(self.added_uris)


@dataclass
class RemoveTracksResult:
    """Outcome of a batched removal."""

    removed_uris: list[str] = field(default_factory=list)
    snapshot_id: str | None = None

    @property
    def removed_count(self) -> int:
        return len(self.removed_uris)


@dataclass
class SyncResult:
    """Outcome of a one- or two-way sync."""

    added_uris: list[str] = field(default_factory=list)
    undo_token: str | None = None
    reverse_added_uris: list[str] = field(default_factory=list)


@dataclass
class UndoResult:
    """Outcome of an undo request. ``found`` is False for a stale or foreign token."""

    found: bool
    removed_uris: list[str] = field(default_factory=list)


@dataclass
class UserPlaylists:
    """All playlists of the current user."""

    playlists: list[PlaylistSummary] = field(default_factory=list)
    total: int = 0


@dataclass
class PlaylistTracksPage:
    """One page of a playlist's tracks for incremental loading."""

    tracks: list[Track]
    offset: int
    limit: int
    total: int
    loaded: int
    next_offset: int | None = None
    summary: PlaylistSummary | None = None


__all__ = [
    "AddTracksResult",
    "ComparableTrack",
    "ComparedPlaylist",
    "Image",
    "PlaylistComparison",
    "PlaylistSummary",
    "PlaylistTracksPage",
    "PlaylistWithTracks",
    "PresenceTrack",
    "RemoveTracksResult",
    "SyncResult",
    "Track",
    "TrackAlbum",
    "TrackArtist",
    "TrackEntry",
    "TrackPresence",
    "UndoEntry",
    "UndoResult",
    "UserPlaylists",
]
