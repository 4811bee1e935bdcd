"""Data models for nlsync."""

from .article import IDENTITY_FIELDS, ArticleCandidate, ArticleStatus, ContentBlock, PersistedArticle
from .sync_log import SyncLogEntry, SyncStats, SyncStatus

__all__ = [
    "ArticleCandidate",
    "ArticleStatus",
    "ContentBlock",
    "IDENTITY_FIELDS",
    "PersistedArticle",
    "SyncLogEntry",
    "SyncStats",
    "SyncStatus",
]
