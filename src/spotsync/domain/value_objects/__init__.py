"""Domain value objects."""

from spotsync.domain.value_objects.access import (
    MODIFY_SCOPES,
    READ_SCOPES,
    AccessContext,
)

__all__ = ["AccessContext", "MODIFY_SCOPES", "READ_SCOPES"]
