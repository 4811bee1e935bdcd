"""Article and sync-log storage for nlsync."""

from .articles import ArticleStorage
from .base import ArticleStore, SyncLogStore
from .connection import close_connection_pool, get_connection, get_connection_pool
from .errors import (
    ConstraintViolationError,
    DuplicateRecordError,
    MissingReferenceError,
    StoreError,
    StoreOperationError,
    StoreTransientError,
    SyncLogClosedError,
    SyncLogNotFoundError,
    translate_error,
)
from .init import init_database, validate_connection
from .memory import InMemoryArticleStore, InMemorySyncLogStore
from .sync_logs import SyncLogManager

__all__ = [
    "ArticleStorage",
    "ArticleStore",
    "ConstraintViolationError",
    "DuplicateRecordError",
    "InMemoryArticleStore",
    "InMemorySyncLogStore",
    "MissingReferenceError",
    "StoreError",
    "StoreOperationError",
    "StoreTransientError",
    "SyncLogClosedError",
    "SyncLogManager",
    "SyncLogNotFoundError",
    "SyncLogStore",
    "close_connection_pool",
    "get_connection",
    "get_connection_pool",
    "init_database",
    "validate_connection",
]
