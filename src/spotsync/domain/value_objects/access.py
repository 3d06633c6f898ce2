"""AccessContext value object - the Spotify credential a request carries.

Hey future me - token ISSUING and REFRESHING live outside this service. We only receive an
access token (plus its type and granted scope string) that somebody else already minted,
and we treat it as read-only. Everything that needs "who is this session" derives it from
here, including the undo slot key.
"""

import hashlib
from dataclasses import dataclass

from spotsync.domain.exceptions import ScopeError

READ_SCOPES: tuple[str, ...] = (
    "playlist-read-private",
    "playlist-read-collaborative",
)

MODIFY_SCOPES: tuple[str, ...] = (
    *READ_SCOPES,
    "playlist-modify-private",
    "playlist-modify-public",
)


@dataclass(frozen=True)
class AccessContext:
    """An already issued Spotify access token.

    Attributes:
        access_token: OAuth access token
        token_type: Token type used in the Authorization header (usually "Bearer")
        scope: Space-separated scopes granted with the token, None if unknown
    """

    access_token: str
    token_type: str = "Bearer"
    scope: str | None = None

    def __repr__(self) -> str:
        # Never leak the token into logs or tracebacks
        return f"AccessContext(token_type={self.token_type!r}, scope={self.scope!r})"

    @property
    def authorization_header(self) -> str:
        """Value for the Authorization header."""
        return f"{self.token_type} {self.access_token}"

    @property
    def granted_scopes(self) -> frozenset[str]:
        """Scopes granted with the token."""
        return frozenset(part for part in (self.scope or "").split(" ") if part)

    @property
    def session_key(self) -> str:
        """Stable per-session key derived from the token.

        SHA-256 so the raw token never ends up as a cache key.
        """
        return hashlib.sha256(self.access_token.encode("utf-8")).hexdigest()

    def ensure_scopes(self, required: tuple[str, ...] | list[str]) -> None:
        """Check the required scopes locally, without calling Spotify.

        Args:
            required: Scopes the upcoming operation needs

        Raises:
            ScopeError: If any required scope was not granted
        """
        granted = self.granted_scopes
        missing = [scope for scope in required if scope not in granted]
        if missing:
            raise ScopeError(missing)
