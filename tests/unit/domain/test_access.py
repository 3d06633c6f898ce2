"""Tests for the AccessContext value object."""

import hashlib

import pytest

from spotsync.domain.exceptions import AuthorizationError, ScopeError
from spotsync.domain.value_objects import MODIFY_SCOPES, READ_SCOPES, AccessContext


class TestAccessContext:
    """Test credential handling and local scope checks."""

    def test_authorization_header_uses_token_type(self) -> None:
        access = AccessContext(access_token="abc", token_type="Bearer")
        assert access.authorization_header == "Bearer abc"

    def test_granted_scopes_ignores_extra_whitespace(self) -> None:
        access = AccessContext(access_token="abc", scope="  a   b ")
        assert access.granted_scopes == frozenset({"a", "b"})

    def test_no_scope_string_grants_nothing(self) -> None:
        assert AccessContext(access_token="abc").granted_scopes == frozenset()

    def test_ensure_scopes_passes_when_all_granted(self) -> None:
        access = AccessContext(access_token="abc", scope=" ".join(MODIFY_SCOPES))
        access.ensure_scopes(MODIFY_SCOPES)

    def test_ensure_scopes_reports_every_missing_scope_in_order(self) -> None:
        access = AccessContext(access_token="abc", scope=" ".join(READ_SCOPES))

        with pytest.raises(ScopeError) as exc_info:
            access.ensure_scopes(MODIFY_SCOPES)

        assert exc_info.value.missing_scopes == [
            "playlist-modify-private",
            "playlist-modify-public",
        ]
        assert isinstance(exc_info.value, AuthorizationError)

    def test_session_key_is_sha256_of_token(self) -> None:
        access = AccessContext(access_token="abc")
        assert access.session_key == hashlib.sha256(b"abc").hexdigest()
        assert "abc" not in access.session_key

    def test_session_key_differs_per_token(self) -> None:
        assert (
            AccessContext(access_token="one").session_key
            != AccessContext(access_token="two").session_key
        )

    def test_repr_never_contains_token(self) -> None:
        access = AccessContext(access_token="super-secret", scope="x")
        assert "super-secret" not in repr(access)
