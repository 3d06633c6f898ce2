"""Custom exception handlers for FastAPI application.

This module registers global exception handlers that convert domain exceptions
and validation errors into proper HTTP responses with appropriate status codes.
"""

import logging
from typing import Any

import httpx
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from spotsync.domain.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BatchMutationError,
    ConfigurationError,
    ExternalServiceError,
    PartialSyncError,
    ScopeError,
    SpotifyApiError,
    ValidationException,
)

logger = logging.getLogger(__name__)

REAUTHORIZE_ACTION = "Please log in again to re-authorize the required playlist scopes."


# Hey future me - Pydantic's exc.errors() can include the raw request body as bytes in the
# 'input' field, which JSONResponse can't serialize. Walk the structure and decode bytes.
def _sanitize_validation_errors(
    errors: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Sanitize validation errors by converting bytes to strings."""

    def _sanitize_value(value: Any) -> Any:
        if isinstance(value, bytes):
            try:
                return value.decode("utf-8")
            except UnicodeDecodeError:
                return value.decode("latin-1")
        elif isinstance(value, dict):
            return {k: _sanitize_value(v) for k, v in value.items()}
        elif isinstance(value, list | tuple):
            return [_sanitize_value(item) for item in value]
        elif isinstance(value, Exception):
            return str(value)
        return value

    return [_sanitize_value(error) for error in errors]


# Spotify can answer with anything; only pass real error codes through to our client.
def _error_status(status_code: int) -> int:
    return status_code if 400 <= status_code <= 599 else status.HTTP_502_BAD_GATEWAY


# Hey future me, this registers GLOBAL exception handlers for the entire app! Starlette looks the
# handler up along the exception's MRO, so ScopeError gets its own handler even though it is an
# AuthorizationError, and BatchMutationError wins over ExternalServiceError. Register during app
# setup, before requests arrive.
def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers for domain and validation exceptions.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(ValidationException)
    async def validation_exception_handler(
        request: Request, exc: ValidationException
    ) -> JSONResponse:
        """Handle domain validation exceptions with 400 Bad Request."""
        logger.warning(
            "Validation error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle Pydantic request validation errors with 422 Unprocessable Entity."""
        sanitized_errors = _sanitize_validation_errors(list(exc.errors()))
        logger.warning(
            "Request validation error at %s: %s",
            request.url.path,
            sanitized_errors,
            extra={"path": request.url.path, "errors": sanitized_errors},
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": sanitized_errors},
        )

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(
        request: Request, exc: AuthenticationError
    ) -> JSONResponse:
        """Handle missing credentials with 401 Unauthorized."""
        logger.info(
            "Authentication error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"detail": "Unauthorized"},
        )

    @app.exception_handler(ScopeError)
    async def scope_error_handler(request: Request, exc: ScopeError) -> JSONResponse:
        """Handle missing OAuth scopes with 403 and the scopes to re-authorize."""
        logger.warning(
            "Missing scopes at %s: %s",
            request.url.path,
            exc.missing_scopes,
            extra={"path": request.url.path, "missing_scopes": exc.missing_scopes},
        )
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={
                "detail": "Missing Spotify permissions",
                "missing_scopes": exc.missing_scopes,
                "action": REAUTHORIZE_ACTION,
            },
        )

    @app.exception_handler(AuthorizationError)
    async def authorization_error_handler(
        request: Request, exc: AuthorizationError
    ) -> JSONResponse:
        """Handle forbidden actions with 403 Forbidden."""
        logger.warning(
            "Authorization error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"detail": exc.message},
        )

    @app.exception_handler(SpotifyApiError)
    async def spotify_api_error_handler(
        request: Request, exc: SpotifyApiError
    ) -> JSONResponse:
        """Pass Spotify's status and error body through."""
        logger.warning(
            "Spotify API error at %s: %d %s",
            request.url.path,
            exc.status,
            exc.status_text,
            extra={"path": request.url.path, "status_code": exc.status},
        )
        return JSONResponse(
            status_code=_error_status(exc.status),
            content={"detail": exc.status_text, "details": exc.details},
        )

    # Listen future me, a partial failure MUST tell the client what already landed - the UI
    # reloads the playlist instead of assuming nothing changed.
    @app.exception_handler(BatchMutationError)
    async def batch_mutation_error_handler(
        request: Request, exc: BatchMutationError
    ) -> JSONResponse:
        """Report a partially applied add/remove."""
        logger.error(
            "Partial %s on playlist %s at %s: %d batch(es) committed",
            exc.operation,
            exc.playlist_id,
            request.url.path,
            exc.committed_batches,
            extra={"path": request.url.path, "playlist_id": exc.playlist_id},
        )
        status_code = (
            _error_status(exc.cause.status)
            if isinstance(exc.cause, SpotifyApiError)
            else status.HTTP_502_BAD_GATEWAY
        )
        return JSONResponse(
            status_code=status_code,
            content={
                "detail": exc.message,
                "committed_uris": exc.committed_uris,
                "committed_batches": exc.committed_batches,
                "snapshot_id": exc.snapshot_id,
            },
        )

    # Listen future me, the target leg of a two-way sync is already committed and undoable when
    # this fires. The body carries its added URIs and undo token so the client can still offer
    # undo, plus whatever the failed reverse leg managed to add to the source.
    @app.exception_handler(PartialSyncError)
    async def partial_sync_error_handler(
        request: Request, exc: PartialSyncError
    ) -> JSONResponse:
        """Report a two-way sync whose reverse leg failed."""
        logger.error(
            "Two-way sync into %s committed but reverse into %s failed at %s: %s",
            exc.target_playlist_id,
            exc.source_playlist_id,
            request.url.path,
            exc.cause,
            extra={
                "path": request.url.path,
                "playlist_id": exc.target_playlist_id,
                "source_playlist_id": exc.source_playlist_id,
            },
        )
        cause = exc.cause
        if isinstance(cause, BatchMutationError):
            cause = cause.cause
        status_code = (
            _error_status(cause.status)
            if isinstance(cause, SpotifyApiError)
            else status.HTTP_502_BAD_GATEWAY
        )
        return JSONResponse(
            status_code=status_code,
            content={
                "detail": exc.message,
                "added_uris": exc.added_uris,
                "undo_token": exc.undo_token,
                "reverse_committed_uris": exc.reverse_committed_uris,
            },
        )

    @app.exception_handler(ExternalServiceError)
    async def external_service_error_handler(
        request: Request, exc: ExternalServiceError
    ) -> JSONResponse:
        """Handle upstream misbehaviour with 502 Bad Gateway."""
        logger.error(
            "External service error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": exc.message},
        )

    @app.exception_handler(httpx.TransportError)
    async def transport_error_handler(
        request: Request, exc: httpx.TransportError
    ) -> JSONResponse:
        """Handle network failures talking to Spotify with 502 Bad Gateway."""
        logger.error(
            "Spotify unreachable at %s: %s",
            request.url.path,
            exc,
            extra={"path": request.url.path, "error_type": type(exc).__name__},
        )
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": "Spotify is unreachable"},
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        """Handle configuration errors with 503 Service Unavailable."""
        logger.error(
            "Configuration error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": exc.message},
        )
