"""Map raw Spotify Web API records onto domain entities.

Hey future me - Spotify JSON is NOT reliable about optional fields. Unavailable tracks come
back as {"track": null}, local files have no ids, albums sometimes miss images. Everything in
here defaults defensively and never raises for a missing field. A placeholder track becomes
None and the caller drops it - it must never travel further as a half-built Track.
"""

from typing import Any

from spotsync.domain.entities import (
    Image,
    PlaylistSummary,
    Track,
    TrackAlbum,
    TrackArtist,
)

UNKNOWN_ARTIST = "Unknown artist"
UNKNOWN_ALBUM = "Unknown album"


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _to_duration_ms(value: Any) -> int:
    """Non-negative duration in ms, 0 when Spotify sent something unusable."""
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError, OverflowError):
        return 0


def to_image(raw: dict[str, Any]) -> Image | None:
    """Convert a Spotify image object. Returns None when there is no URL."""
    if not isinstance(raw, dict) or not raw.get("url"):
        return None
    return Image(url=raw["url"], height=raw.get("height"), width=raw.get("width"))


def to_images(raw_images: Any) -> tuple[Image, ...]:
    """Convert an image list, skipping malformed entries."""
    images = (to_image(raw) for raw in _as_list(raw_images))
    return tuple(image for image in images if image is not None)


def to_track(item: dict[str, Any] | None) -> Track | None:
    """Convert a playlist track item ({"track": {...}}) to a Track.

    Args:
        item: Playlist track wrapper as returned by Spotify

    Returns:
        Track, or None for deleted/unavailable placeholders
    """
    if not isinstance(item, dict):
        return None
    raw = item.get("track")
    if not isinstance(raw, dict) or not isinstance(raw.get("uri"), str) or not raw["uri"]:
        return None

    album_raw = raw.get("album")
    if not isinstance(album_raw, dict):
        album_raw = {}

    # Anything that isn't an artist object still counts as a credit, just an unnamed one
    artists = tuple(
        TrackArtist(
            id=artist.get("id"),
            name=_text(artist.get("name")) or UNKNOWN_ARTIST,
        )
        for artist in (
            raw_artist if isinstance(raw_artist, dict) else {}
            for raw_artist in _as_list(raw.get("artists"))
        )
    )

    return Track(
        id=raw.get("id"),
        uri=raw["uri"],
        name=_text(raw.get("name")),
        duration_ms=_to_duration_ms(raw.get("duration_ms")),
        is_local=bool(raw.get("is_local", False)),
        artists=artists,
        album=TrackAlbum(
            id=album_raw.get("id"),
            name=_text(album_raw.get("name")) or UNKNOWN_ALBUM,
            images=to_images(album_raw.get("images")),
        ),
    )


def to_tracks(items: Any) -> list[Track]:
    """Convert a page of track items, dropping placeholders but keeping order."""
    tracks = (to_track(item) for item in _as_list(items))
    return [track for track in tracks if track is not None]


# Yo, is_owned can only be computed when we KNOW who is asking. Without current_user_id we say
# False rather than guessing - the sync/remove paths always pass the id before trusting is_editable.
def to_playlist_summary(
    raw: dict[str, Any], current_user_id: str | None = None
) -> PlaylistSummary:
    """Convert a Spotify playlist object to a PlaylistSummary.

    Args:
        raw: Playlist object (simplified or full)
        current_user_id: Spotify id of the current user, if known

    Returns:
        PlaylistSummary with ownership flags computed
    """
    owner = raw.get("owner") if isinstance(raw.get("owner"), dict) else {}
    owner_id = owner.get("id")
    is_collaborative = bool(raw.get("collaborative") or False)
    is_owned = current_user_id is not None and owner_id == current_user_id

    tracks_raw = raw.get("tracks") if isinstance(raw.get("tracks"), dict) else {}
    external_urls = (
        raw.get("external_urls") if isinstance(raw.get("external_urls"), dict) else {}
    )

    return PlaylistSummary(
        id=raw["id"],
        name=raw.get("name") or "",
        description=raw.get("description"),
        images=to_images(raw.get("images")),
        owner_name=owner.get("display_name"),
        owner_id=owner_id,
        track_count=int(tracks_raw.get("total") or 0),
        external_url=external_urls.get("spotify"),
        is_collaborative=is_collaborative,
        is_owned=is_owned,
    )
