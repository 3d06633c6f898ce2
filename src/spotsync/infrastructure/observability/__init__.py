"""Observability infrastructure for structured logging."""

from spotsync.infrastructure.observability.logger_template import log_operation
from spotsync.infrastructure.observability.logging import (
    configure_logging,
    get_correlation_id,
    set_correlation_id,
)
from spotsync.infrastructure.observability.middleware import RequestLoggingMiddleware

__all__ = [
    "RequestLoggingMiddleware",
    "configure_logging",
    "get_correlation_id",
    "log_operation",
    "set_correlation_id",
]
