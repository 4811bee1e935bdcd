"""Store error classification.

Postgres failures are translated into a small hierarchy so that callers can
tell constraint conflicts apart from transient faults worth retrying.
"""

from typing import Optional

import psycopg
from psycopg import errors as pg_errors

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
CHECK_VIOLATION = "23514"


class StoreError(Exception):
    """Base class for article and sync-log store failures."""

    def __init__(self, message: str, operation: Optional[str] = None) -> None:
        super().__init__(message)
        self.operation = operation


class DuplicateRecordError(StoreError):
    """A unique key (slug or source item id) is already taken."""


class MissingReferenceError(StoreError):
    """A referenced record does not exist."""


class ConstraintViolationError(StoreError):
    """A value failed a check constraint."""


class StoreTransientError(StoreError):
    """Connection loss, timeout or cancelled statement."""


class StoreOperationError(StoreError):
    """Any other store failure, tagged with the failing operation."""


class SyncLogNotFoundError(StoreError):
    """No sync log exists with the given id."""


class SyncLogClosedError(StoreError):
    """The sync log was already completed."""


def translate_error(exc: Exception, operation: str) -> StoreError:
    """Map a driver exception onto the store error hierarchy."""
    if isinstance(exc, StoreError):
        return exc

    sqlstate = getattr(exc, "sqlstate", None)
    if sqlstate == UNIQUE_VIOLATION:
        return DuplicateRecordError("Record already exists", operation)
    if sqlstate == FOREIGN_KEY_VIOLATION:
        return MissingReferenceError("Referenced record not found", operation)
    if sqlstate == CHECK_VIOLATION:
        return ConstraintViolationError("Invalid data provided", operation)
    if isinstance(exc, (pg_errors.QueryCanceled, psycopg.OperationalError)):
        return StoreTransientError(f"Transient store failure: {operation}", operation)
    return StoreOperationError(f"Database operation failed: {operation}", operation)
