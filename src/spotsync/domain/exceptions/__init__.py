"""Domain exceptions."""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, we store message as an attribute so handlers can read it without parsing
    # str(exception). Never raise this directly - always a subclass so callers can catch precisely.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class ValidationException(DomainException):
    """Raised when input violates a business rule.

    Example: a removal entry with a negative position, or a batch size
    above the Spotify ceiling of 100 items per request.

    HTTP Status: 400
    """

    pass


class ConfigurationError(DomainException):
    """Application misconfiguration.

    HTTP Status: 503 (Service Unavailable)
    """

    pass


class AuthenticationError(DomainException):
    """No usable Spotify credential on the request.

    The caller has to log in again - we never retry this.

    HTTP Status: 401
    """

    def __init__(self, message: str = "Spotify authentication required") -> None:
        super().__init__(message)


class AuthorizationError(DomainException):
    """User is authenticated but not allowed to perform this action.

    Example: syncing into a playlist that is neither owned by the user
    nor collaborative.

    HTTP Status: 403
    """

    pass


class ScopeError(AuthorizationError):
    """The access token lacks one or more required OAuth scopes.

    Hey future me - this is checked LOCALLY against the scope string we got with the token,
    before any Spotify call goes out. missing_scopes lets the UI tell the user exactly what
    to re-authorize instead of a vague "forbidden".

    HTTP Status: 403
    """

    def __init__(self, missing_scopes: list[str]) -> None:
        super().__init__(
            f"Missing required Spotify scopes: {', '.join(missing_scopes)}"
        )
        self.missing_scopes = missing_scopes


class ExternalServiceError(DomainException):
    """External service (Spotify) failed or misbehaved.

    HTTP Status: 502 (Bad Gateway)
    """

    pass


class SpotifyApiError(ExternalServiceError):
    """Spotify rejected a request.

    Raised for every non-2xx response except a 429 that is still within the
    retry budget. ``details`` is the parsed JSON error body when Spotify sent
    JSON, otherwise the raw response text.

    HTTP Status: mirrors ``status``
    """

    def __init__(self, status: int, status_text: str, details: Any = None) -> None:
        super().__init__(f"Spotify API error: {status} {status_text}")
        self.status = status
        self.status_text = status_text
        self.details = details


class PaginationError(ExternalServiceError):
    """A pagination cursor chain repeated itself or ran past the page cap."""

    def __init__(self, message: str, pages_fetched: int) -> None:
        super().__init__(message)
        self.pages_fetched = pages_fetched


class BatchMutationError(ExternalServiceError):
    """A multi-batch add/remove failed after earlier batches had committed.

    Hey future me - there is NO rollback! Batches 1..N-1 are already live on Spotify when
    batch N blows up. This exception at least tells the caller what landed so the UI can
    reload instead of pretending nothing happened. The original error is kept as __cause__
    and in ``cause``.
    """

    def __init__(
        self,
        operation: str,
        playlist_id: str,
        committed_uris: list[str],
        committed_batches: int,
        snapshot_id: str | None,
        cause: Exception,
    ) -> None:
        super().__init__(
            f"{operation} on playlist {playlist_id} failed after "
            f"{committed_batches} committed batch(es): {cause}"
        )
        self.operation = operation
        self.playlist_id = playlist_id
        self.committed_uris = committed_uris
        self.committed_batches = committed_batches
        self.snapshot_id = snapshot_id
        self.cause = cause



# Listen future me, in a two-way sync the target direction has ALREADY landed (and its undo slot
# is recorded) when the reverse add into the source runs. If that second leg blows up, the caller
# still needs the undo token for the first one, otherwise the write is invisible to them.
class PartialSyncError(ExternalServiceError):
    """The reverse leg of a two-way sync failed after the target was written.

    Attributes:
        target_playlist_id: Playlist the committed primary leg wrote into
        added_uris: URIs the primary leg added to the target
        undo_token: Token that reverts the primary leg, None if nothing was added
        source_playlist_id: Playlist the failed reverse leg wrote into
        reverse_committed_uris: URIs the reverse leg added before failing
        cause: The error of the reverse leg
    """

    def __init__(
        self,
        target_playlist_id: str,
        added_uris: list[str],
        undo_token: str | None,
        source_playlist_id: str,
        reverse_committed_uris: list[str],
        cause: Exception,
    ) -> None:
        super().__init__(
            f"Sync into {target_playlist_id} succeeded but adding back into "
            f"{source_playlist_id} failed: {cause}"
        )
        self.target_playlist_id = target_playlist_id
        self.added_uris = added_uris
        self.undo_token = undo_token
        self.source_playlist_id = source_playlist_id
        self.reverse_committed_uris = reverse_committed_uris
        self.cause = cause


__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "BatchMutationError",
    "ConfigurationError",
    "DomainException",
    "ExternalServiceError",
    "PaginationError",
    "PartialSyncError",
    "ScopeError",
    "SpotifyApiError",
    "ValidationException",
]
