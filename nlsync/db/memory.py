"""In-memory stores used by ``--dry-run`` and the test suite."""

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Generator, List, Optional, Tuple

import pendulum

from ..models import IDENTITY_FIELDS, ArticleCandidate, PersistedArticle, SyncLogEntry, SyncStats, SyncStatus
from .base import ArticleStore, SyncLogStore
from .errors import DuplicateRecordError, StoreOperationError, SyncLogClosedError, SyncLogNotFoundError


def _now() -> datetime:
    return pendulum.now("UTC")


@dataclass
class _KeyLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class InMemoryArticleStore(ArticleStore):
    """Thread-safe article store backed by a dict.

    Records handed out are deep copies, so callers never mutate stored state.
    """

    def __init__(self) -> None:
        self._articles: Dict[int, PersistedArticle] = {}
        self._next_id = 1
        self._guard = threading.Lock()
        self._key_locks: Dict[Tuple[str, str], _KeyLock] = {}

    @contextmanager
    def lock(self, source: str, source_id: str) -> Generator[None, None, None]:
        key = (source, source_id)
        with self._guard:
            entry = self._key_locks.get(key)
            if entry is None:
                entry = self._key_locks[key] = _KeyLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            # Dropped with its last user, so the table only holds keys in flight.
            with self._guard:
                entry.users -= 1
                if not entry.users:
                    del self._key_locks[key]

    def find_by_source_id(self, source: str, source_id: str) -> Optional[PersistedArticle]:
        with self._guard:
            for article in self._articles.values():
                if article.source == source and article.source_id == source_id:
                    return article.model_copy(deep=True)
        return None

    def slug_exists(self, slug: str) -> bool:
        with self._guard:
            return any(article.slug == slug for article in self._articles.values())

    def create(self, candidate: ArticleCandidate, status: str) -> PersistedArticle:
        with self._guard:
            for existing in self._articles.values():
                if existing.slug == candidate.slug:
                    raise DuplicateRecordError("Record already exists", "create_article")
                if (
                    candidate.source_id is not None
                    and existing.source == candidate.source
                    and existing.source_id == candidate.source_id
                ):
                    raise DuplicateRecordError("Record already exists", "create_article")

            now = _now()
            article = PersistedArticle(
                **candidate.model_dump(),
                id=self._next_id,
                status=status,
                created_at=now,
                updated_at=now,
            )
            self._articles[article.id] = article
            self._next_id += 1
            return article.model_copy(deep=True)

    def update(self, article_id: int, fields: Dict[str, Any]) -> PersistedArticle:
        with self._guard:
            current = self._articles.get(article_id)
            if current is None:
                raise StoreOperationError(f"Article {article_id} not found", "update_article")

            changes = {key: value for key, value in fields.items() if key not in IDENTITY_FIELDS}
            # updated_at must move forward even on coarse clocks
            changes["updated_at"] = max(_now(), current.updated_at + timedelta(microseconds=1))
            updated = current.model_copy(update=changes, deep=True)
            self._articles[article_id] = updated
            return updated.model_copy(deep=True)

    def get(self, article_id: int) -> Optional[PersistedArticle]:
        with self._guard:
            article = self._articles.get(article_id)
            return article.model_copy(deep=True) if article else None

    def all(self) -> List[PersistedArticle]:
        with self._guard:
            return [article.model_copy(deep=True) for article in self._articles.values()]

    def set_status(self, article_id: int, status: str, published_at: Optional[datetime] = None) -> None:
        """Move an article through the editorial workflow, as an editor would."""
        with self._guard:
            current = self._articles[article_id]
            self._articles[article_id] = current.model_copy(
                update={"status": status, "published_at": published_at}
            )


class InMemorySyncLogStore(SyncLogStore):
    """Sync log store backed by a dict."""

    def __init__(self) -> None:
        self._logs: Dict[int, SyncLogEntry] = {}
        self._next_id = 1
        self._guard = threading.Lock()

    def create_log(self, publication_ref: Optional[str], issue_id: Optional[str]) -> int:
        with self._guard:
            now = _now()
            log_id = self._next_id
            self._logs[log_id] = SyncLogEntry(
                id=log_id,
                publication_ref=publication_ref,
                issue_id=issue_id,
                started_at=now,
                created_at=now,
                updated_at=now,
            )
            self._next_id += 1
            return log_id

    def complete_log(
        self,
        log_id: int,
        status: SyncStatus,
        processed: int = 0,
        failed: int = 0,
        error_details: Optional[Dict[str, Any]] = None,
        items_found: Optional[int] = None,
    ) -> SyncLogEntry:
        status = SyncStatus(status)
        if not status.is_terminal:
            raise ValueError(f"Cannot close sync log {log_id} as {status.value}")
        with self._guard:
            entry = self._logs.get(log_id)
            if entry is None:
                raise SyncLogNotFoundError(f"Sync log {log_id} not found", "complete_sync_log")
            if entry.is_closed:
                raise SyncLogClosedError(f"Sync log {log_id} is already completed", "complete_sync_log")

            now = _now()
            changes = {
                "status": status,
                "completed_at": now,
                "updated_at": now,
                "items_processed": processed,
                "items_failed": failed,
                "error_details": error_details,
            }
            if items_found is not None:
                changes["items_found"] = items_found
            closed = entry.model_copy(update=changes, deep=True)
            self._logs[log_id] = closed
            return closed.model_copy(deep=True)

    def get_log(self, log_id: int) -> Optional[SyncLogEntry]:
        with self._guard:
            entry = self._logs.get(log_id)
            return entry.model_copy(deep=True) if entry else None

    def get_recent_logs(self, limit: int = 10) -> List[SyncLogEntry]:
        with self._guard:
            ordered = sorted(self._logs.values(), key=lambda entry: (entry.started_at, entry.id), reverse=True)
            return [entry.model_copy(deep=True) for entry in ordered[:limit]]

    def get_sync_stats(self, publication_ref: Optional[str] = None) -> SyncStats:
        with self._guard:
            entries = [
                entry
                for entry in self._logs.values()
                if publication_ref is None or entry.publication_ref == publication_ref
            ]
        return SyncStats(
            total_syncs=len(entries),
            successful_syncs=sum(1 for entry in entries if entry.status == SyncStatus.SUCCESS),
            partial_syncs=sum(1 for entry in entries if entry.status == SyncStatus.PARTIAL),
            failed_syncs=sum(1 for entry in entries if entry.status == SyncStatus.FAILED),
            total_items_processed=sum(entry.items_processed for entry in entries),
        )
