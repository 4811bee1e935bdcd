"""Store interfaces shared by the Postgres and in-memory backends."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any, Dict, List, Optional

from ..models import ArticleCandidate, PersistedArticle, SyncLogEntry, SyncStats, SyncStatus


class ArticleStore(ABC):
    """Persistence for articles keyed by ``(source, source_id)``."""

    @abstractmethod
    def find_by_source_id(self, source: str, source_id: str) -> Optional[PersistedArticle]:
        """Return the article created from this source item, if any."""

    @abstractmethod
    def create(self, candidate: ArticleCandidate, status: str) -> PersistedArticle:
        """Insert a new article with the given initial status."""

    @abstractmethod
    def update(self, article_id: int, fields: Dict[str, Any]) -> PersistedArticle:
        """Overwrite the given fields and refresh ``updated_at``."""

    @abstractmethod
    def slug_exists(self, slug: str) -> bool:
        """Whether any article already uses ``slug``."""

    @abstractmethod
    def lock(self, source: str, source_id: str) -> AbstractContextManager:
        """Serialize lookup-then-write for one source item."""


class SyncLogStore(ABC):
    """Persistence for sync run logs."""

    @abstractmethod
    def create_log(self, publication_ref: Optional[str], issue_id: Optional[str]) -> int:
        """Open a log in ``started`` state and return its id."""

    @abstractmethod
    def complete_log(
        self,
        log_id: int,
        status: SyncStatus,
        processed: int = 0,
        failed: int = 0,
        error_details: Optional[Dict[str, Any]] = None,
        items_found: Optional[int] = None,
    ) -> SyncLogEntry:
        """Close a log with a terminal status.

        Raises ``SyncLogClosedError`` if already closed and ``ValueError`` for
        a non-terminal status.
        """

    @abstractmethod
    def get_log(self, log_id: int) -> Optional[SyncLogEntry]:
        """Fetch one log."""

    @abstractmethod
    def get_recent_logs(self, limit: int = 10) -> List[SyncLogEntry]:
        """Most recent logs first."""

    @abstractmethod
    def get_sync_stats(self, publication_ref: Optional[str] = None) -> SyncStats:
        """Aggregate counters, optionally for one publication."""
