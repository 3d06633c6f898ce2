"""API schemas for playlist browsing, comparison, sync, undo and removal."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from spotsync.domain.entities import TrackPresence


class _FromDomain(BaseModel):
    """Response models read straight off domain dataclasses."""

    model_config = ConfigDict(from_attributes=True)


class ImageSchema(_FromDomain):
    url: str
    height: int | None = None
    width: int | None = None


class PlaylistSummarySchema(_FromDomain):
    """Playlist metadata with ownership flags."""

    id: str
    name: str
    description: str | None = None
    images: list[ImageSchema] = Field(default_factory=list)
    owner_name: str | None = None
    owner_id: str | None = None
    track_count: int = 0
    external_url: str | None = None
    is_collaborative: bool = False
    is_owned: bool = False
    is_editable: bool = False


class TrackArtistSchema(_FromDomain):
    id: str | None = None
    name: str


class TrackAlbumSchema(_FromDomain):
    id: str | None = None
    name: str
    images: list[ImageSchema] = Field(default_factory=list)


class TrackSchema(_FromDomain):
    """A playlist track."""

    id: str | None = None
    uri: str
    name: str
    duration_ms: int = 0
    is_local: bool = False
    artists: list[TrackArtistSchema] = Field(default_factory=list)
    album: TrackAlbumSchema


class ComparableTrackSchema(_FromDomain):
    """One occurrence of a track inside a comparison."""

    instance_id: str = Field(..., description='Occurrence id, e.g. "A-0" or "B-12"')
    uri: str
    name: str
    artists: list[str] = Field(default_factory=list)
    duration_ms: int = 0
    image_url: str | None = None


class PresenceTrackSchema(ComparableTrackSchema):
    presence: TrackPresence


class ComparedPlaylistSchema(_FromDomain):
    summary: PlaylistSummarySchema
    tracks: list[PresenceTrackSchema] = Field(default_factory=list)


class PlaylistComparisonResponse(_FromDomain):
    """Both sides tagged plus the occurrence-counted difference lists."""

    playlist_a: ComparedPlaylistSchema
    playlist_b: ComparedPlaylistSchema
    in_a_only: list[ComparableTrackSchema] = Field(default_factory=list)
    in_b_only: list[ComparableTrackSchema] = Field(default_factory=list)
    in_both: list[ComparableTrackSchema] = Field(default_factory=list)


class UserPlaylistsResponse(_FromDomain):
    playlists: list[PlaylistSummarySchema] = Field(default_factory=list)
    total: int = 0


class PlaylistTracksPageResponse(_FromDomain):
    """One page of tracks for incremental loading."""

    summary: PlaylistSummarySchema | None = None
    tracks: list[TrackSchema] = Field(default_factory=list)
    offset: int
    limit: int
    total: int
    loaded: int
    next_offset: int | None = None


class CompareRequest(BaseModel):
    """Request schema for comparing two playlists."""

    source_playlist_id: str = Field(..., min_length=1, description="Playlist A")
    target_playlist_id: str = Field(..., min_length=1, description="Playlist B")


class SyncRequest(BaseModel):
    """Request schema for syncing tracks into a playlist."""

    target_playlist_id: str = Field(..., min_length=1)
    track_uris: list[str] | None = Field(
        default=None, description="Tracks to add; defaults to everything missing"
    )
    source_playlist_id: str | None = Field(
        default=None, description="Diff this playlist against the target"
    )
    two_way: bool = Field(
        default=False, description="Also add the target-only tracks to the source"
    )


class SyncResponse(BaseModel):
    added_uris: list[str] = Field(default_factory=list)
    undo_token: str | None = None
    reverse_added_uris: list[str] = Field(default_factory=list)


class UndoRequest(BaseModel):
    target_playlist_id: str = Field(..., min_length=1)
    undo_token: str = Field(..., min_length=1)


class UndoResponse(BaseModel):
    removed_uris: list[str] = Field(default_factory=list)


# Entries stay loosely typed: the router drops invalid ones one by one instead of rejecting
# the whole request (see routers/sync.py).
class RemoveRequest(BaseModel):
    """Request schema for removing selected occurrences."""

    playlist_id: str = Field(..., min_length=1)
    entries: list[Any] = Field(..., description="[{uri, position}, ...]")


class RemoveResponse(BaseModel):
    removed_count: int
    removed_uris: list[str] = Field(default_factory=list)
