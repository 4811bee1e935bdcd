"""Idempotent create-or-update of articles keyed by source item id."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..db.base import ArticleStore
from ..db.errors import DuplicateRecordError
from ..models import IDENTITY_FIELDS, ArticleCandidate, ArticleStatus, PersistedArticle
from .mapping import slugify
from .retry import StoreRetryPolicy

logger = logging.getLogger(__name__)

PROTECTED_STATUSES = frozenset(
    {
        ArticleStatus.PUBLISHED.value,
        ArticleStatus.SCHEDULED.value,
        ArticleStatus.IN_REVIEW.value,
        ArticleStatus.APPROVED.value,
    }
)
MAX_SLUG_SUFFIX = 100


def is_protected(article: PersistedArticle) -> bool:
    """Whether an editor has advanced the article past reach of sync updates."""
    status = article.status.value if isinstance(article.status, Enum) else article.status
    return status in PROTECTED_STATUSES or article.published_at is not None


class UpsertAction(str, Enum):
    """What an upsert did."""

    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class UpsertResult:
    """Outcome of one upsert."""

    action: UpsertAction
    article: PersistedArticle


class UpsertEngine:
    """Create or update one article per source item.

    Lookup is strictly by ``(source, source_id)``. Updates rewrite display
    fields only; slug, status and ``published_at`` stay as stored. Protected
    articles are returned untouched.
    """

    def __init__(
        self,
        store: ArticleStore,
        default_status: str = ArticleStatus.DRAFT.value,
        retry_policy: Optional[StoreRetryPolicy] = None,
    ) -> None:
        self.store = store
        self.default_status = default_status
        self.retry_policy = retry_policy or StoreRetryPolicy()

    def upsert(self, candidate: ArticleCandidate) -> UpsertResult:
        if not candidate.source_id:
            raise ValueError("Candidate has no source item id")
        return self.retry_policy.execute(lambda: self._upsert_once(candidate))

    def _upsert_once(self, candidate: ArticleCandidate) -> UpsertResult:
        with self.store.lock(candidate.source, candidate.source_id):
            existing = self.store.find_by_source_id(candidate.source, candidate.source_id)

            if existing is None:
                article = self._create(candidate)
                logger.info("Created article %s (%s)", article.id, candidate.source_id)
                return UpsertResult(UpsertAction.CREATED, article)

            if is_protected(existing):
                logger.info(
                    "Skipped protected article %s (%s, status=%s)",
                    existing.id,
                    candidate.source_id,
                    existing.status,
                )
                return UpsertResult(UpsertAction.SKIPPED, existing)

            fields = candidate.model_dump(exclude=set(IDENTITY_FIELDS))
            article = self.store.update(existing.id, fields)
            logger.info("Updated article %s (%s)", article.id, candidate.source_id)
            return UpsertResult(UpsertAction.UPDATED, article)

    def _create(self, candidate: ArticleCandidate) -> PersistedArticle:
        base = candidate.slug or slugify(candidate.title)
        slug = self.unique_slug(base, candidate.source_id)
        try:
            return self.store.create(candidate.model_copy(update={"slug": slug}), self.default_status)
        except DuplicateRecordError:
            # Another item took the slug between the check and the insert.
            if not self.store.slug_exists(slug):
                raise
            slug = self.unique_slug(base, candidate.source_id)
            return self.store.create(candidate.model_copy(update={"slug": slug}), self.default_status)

    def unique_slug(self, base: str, source_id: str) -> str:
        """First free slug among ``base``, ``base-2`` ... ``base-100``.

        Falls back to ``base`` plus the slugified source item id.
        """
        if not self.store.slug_exists(base):
            return base
        for counter in range(2, MAX_SLUG_SUFFIX + 1):
            slug = f"{base}-{counter}"
            if not self.store.slug_exists(slug):
                return slug
        return f"{base}-{slugify(source_id)}"
