"""SpotSync - compare, sync and prune Spotify playlists."""

__version__ = "0.1.0"
