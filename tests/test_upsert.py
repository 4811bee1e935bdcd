"""Tests for the upsert engine and the protection rule."""

import threading
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Generator, List, Optional, Set

import pytest

from nlsync.db import InMemoryArticleStore
from nlsync.models import ArticleCandidate, ArticleStatus, PersistedArticle
from nlsync.sync import PROTECTED_STATUSES, UpsertAction, UpsertEngine, UpsertResult, is_protected


def make_candidate(source_id: str = "post_1:1", title: str = "Governo anuncia pacote", **overrides) -> ArticleCandidate:
    fields = {
        "title": title,
        "slug": "governo-anuncia-pacote",
        "content": [{"id": "block-1", "type": "paragraph", "data": {"text": "Primeira versão."}}],
        "excerpt": "Primeira versão.",
        "category": "BRASIL",
        "source_id": source_id,
        "word_count": 2,
    }
    fields.update(overrides)
    return ArticleCandidate(**fields)


@pytest.fixture
def engine(article_store: InMemoryArticleStore) -> UpsertEngine:
    return UpsertEngine(article_store)


def test_new_source_item_is_created_as_draft(engine: UpsertEngine, article_store: InMemoryArticleStore) -> None:
    result = engine.upsert(make_candidate())

    assert result.action is UpsertAction.CREATED
    assert result.article.status == ArticleStatus.DRAFT.value
    assert result.article.slug == "governo-anuncia-pacote"
    assert result.article.source == "newsletter"
    assert len(article_store.all()) == 1


def test_draft_is_overwritten_and_timestamp_refreshed(
    engine: UpsertEngine,
    article_store: InMemoryArticleStore,
) -> None:
    created = engine.upsert(make_candidate()).article

    result = engine.upsert(
        make_candidate(
            title="Governo anuncia pacote maior",
            slug="governo-anuncia-pacote-maior",
            excerpt="Segunda versão.",
        )
    )

    assert result.action is UpsertAction.UPDATED
    assert result.article.id == created.id
    assert result.article.title == "Governo anuncia pacote maior"
    assert result.article.excerpt == "Segunda versão."
    assert result.article.updated_at > created.updated_at
    assert result.article.slug == "governo-anuncia-pacote"
    assert result.article.created_at == created.created_at
    assert len(article_store.all()) == 1


def test_published_article_is_returned_unchanged(engine: UpsertEngine, article_store: InMemoryArticleStore) -> None:
    created = engine.upsert(make_candidate()).article
    article_store.set_status(created.id, ArticleStatus.PUBLISHED.value, datetime(2024, 5, 1, tzinfo=timezone.utc))
    before = article_store.get(created.id)

    result = engine.upsert(make_candidate(title="Outro título", excerpt="Outro texto."))

    assert result.action is UpsertAction.SKIPPED
    assert result.article.model_dump_json() == before.model_dump_json()
    assert article_store.get(created.id) == before


def test_published_at_alone_protects_a_draft(engine: UpsertEngine, article_store: InMemoryArticleStore) -> None:
    created = engine.upsert(make_candidate()).article
    article_store.set_status(created.id, ArticleStatus.DRAFT.value, datetime(2024, 5, 1, tzinfo=timezone.utc))

    result = engine.upsert(make_candidate(title="Outro título"))

    assert result.action is UpsertAction.SKIPPED
    assert result.article.title == "Governo anuncia pacote"


def test_update_keeps_editor_owned_status(engine: UpsertEngine, article_store: InMemoryArticleStore) -> None:
    created = engine.upsert(make_candidate()).article
    article_store.set_status(created.id, ArticleStatus.NEWSLETTER_PENDING.value)

    result = engine.upsert(make_candidate(excerpt="Nova versão."))

    assert result.action is UpsertAction.UPDATED
    assert result.article.status == ArticleStatus.NEWSLETTER_PENDING.value
    assert result.article.published_at is None


def test_repeated_upsert_is_idempotent(engine: UpsertEngine, article_store: InMemoryArticleStore) -> None:
    first = engine.upsert(make_candidate()).article
    second = engine.upsert(make_candidate()).article

    assert len(article_store.all()) == 1
    assert second.model_dump(exclude={"updated_at"}) == first.model_dump(exclude={"updated_at"})


def test_same_title_from_another_item_gets_suffixed_slug(engine: UpsertEngine) -> None:
    first = engine.upsert(make_candidate("post_1:1")).article
    second = engine.upsert(make_candidate("post_2:1")).article
    third = engine.upsert(make_candidate("post_3:1")).article

    assert first.slug == "governo-anuncia-pacote"
    assert second.slug == "governo-anuncia-pacote-2"
    assert third.slug == "governo-anuncia-pacote-3"


def test_slug_falls_back_to_source_item_id(engine: UpsertEngine, article_store: InMemoryArticleStore) -> None:
    article_store.create(make_candidate("seed:0", slug="pacote"), "draft")
    for counter in range(2, 101):
        article_store.create(make_candidate(f"seed:{counter}", slug=f"pacote-{counter}"), "draft")

    result = engine.upsert(make_candidate("post_9:4", slug="pacote"))

    assert result.article.slug == "pacote-post-9-4"


def test_lookup_is_by_source_item_id_only(engine: UpsertEngine, article_store: InMemoryArticleStore) -> None:
    engine.upsert(make_candidate("post_1:1"))

    result = engine.upsert(make_candidate("post_1:2"))

    assert result.action is UpsertAction.CREATED
    assert len(article_store.all()) == 2


def test_candidate_without_source_item_id_is_rejected(engine: UpsertEngine) -> None:
    with pytest.raises(ValueError):
        engine.upsert(make_candidate(source_id=None))


@pytest.mark.parametrize("status", [status.value for status in ArticleStatus])
def test_is_protected_by_status(status: str) -> None:
    article = PersistedArticle(id=1, title="t", slug="t", source_id="x:1", status=status)

    assert is_protected(article) is (status in PROTECTED_STATUSES)


def test_protected_statuses() -> None:
    assert PROTECTED_STATUSES == {"published", "scheduled", "in_review", "approved"}


class TrackingArticleStore(InMemoryArticleStore):
    """Records which threads hold a source item lock during lookups."""

    def __init__(self) -> None:
        super().__init__()
        self.stats_guard = threading.Lock()
        self.holders: Set[int] = set()
        self.max_holders = 0
        self.unlocked_lookups = 0

    @contextmanager
    def lock(self, source: str, source_id: str) -> Generator[None, None, None]:
        with super().lock(source, source_id):
            with self.stats_guard:
                self.holders.add(threading.get_ident())
                self.max_holders = max(self.max_holders, len(self.holders))
            try:
                yield
            finally:
                with self.stats_guard:
                    self.holders.discard(threading.get_ident())

    def find_by_source_id(self, source: str, source_id: str) -> Optional[PersistedArticle]:
        with self.stats_guard:
            if threading.get_ident() not in self.holders:
                self.unlocked_lookups += 1
        # Widens the gap between lookup and write.
        time.sleep(0.005)
        return super().find_by_source_id(source, source_id)


def test_concurrent_upserts_of_one_item_create_it_once() -> None:
    store = TrackingArticleStore()
    engine = UpsertEngine(store)
    workers = 8
    barrier = threading.Barrier(workers)
    results: List[UpsertResult] = []
    errors: List[Exception] = []
    results_guard = threading.Lock()

    def worker() -> None:
        barrier.wait()
        try:
            result = engine.upsert(make_candidate())
        except Exception as e:
            errors.append(e)
            return
        with results_guard:
            results.append(result)

    threads = [threading.Thread(target=worker) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert errors == []
    assert len(results) == workers
    assert [result.action for result in results].count(UpsertAction.CREATED) == 1
    assert len(store.all()) == 1
    assert store.max_holders == 1
    assert store.unlocked_lookups == 0
    assert store._key_locks == {}
