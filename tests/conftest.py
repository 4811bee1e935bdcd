"""Shared pytest fixtures."""

from typing import Any, Callable, Dict

import pytest

from nlsync.config import ParserConfig, SyncConfig
from nlsync.db import InMemoryArticleStore, InMemorySyncLogStore
from nlsync.sync import SyncCoordinator

LONG_BODY = (
    "O governo anunciou nesta segunda-feira um novo pacote de medidas "
    "para conter a alta dos preços dos alimentos."
)
CONTENT_BREAK = '<hr class="content_break">'


def section_markup(n: int, category: str, title: str, body: str = LONG_BODY) -> str:
    return f'<h6 id="cat-{n}">{category}</h6><h1 id="title-{n}">{title}</h1><p>{body}</p>'


@pytest.fixture
def make_issue() -> Callable[..., Dict[str, Any]]:
    def _make(body: str, **overrides: Any) -> Dict[str, Any]:
        issue = {
            "id": "post_abc123",
            "title": "the news",
            "subject_line": "Resumo de segunda",
            "preview_text": "As notícias do dia",
            "thumbnail_url": "https://cdn.example.com/thumb.png",
            "web_url": "https://thenewscc.com.br/p/resumo-de-segunda",
            "created": 1700000000,
            "publish_date": 1700003600,
            "content": {"free": {"rss": body}},
        }
        issue.update(overrides)
        return issue

    return _make


@pytest.fixture
def two_section_body() -> str:
    return CONTENT_BREAK.join(
        [
            section_markup(1, "Brasil", "Governo anuncia pacote"),
            section_markup(2, "Mundo", "Eleições na Argentina"),
        ]
    )


@pytest.fixture
def two_section_issue(make_issue: Callable[..., Dict[str, Any]], two_section_body: str) -> Dict[str, Any]:
    return make_issue(two_section_body)


@pytest.fixture
def parser_config() -> ParserConfig:
    return ParserConfig()


@pytest.fixture
def article_store() -> InMemoryArticleStore:
    return InMemoryArticleStore()


@pytest.fixture
def log_store() -> InMemorySyncLogStore:
    return InMemorySyncLogStore()


@pytest.fixture
def sync_config() -> SyncConfig:
    return SyncConfig(retry_wait_seconds=0)


@pytest.fixture
def coordinator(
    article_store: InMemoryArticleStore,
    log_store: InMemorySyncLogStore,
    sync_config: SyncConfig,
) -> SyncCoordinator:
    return SyncCoordinator(article_store, log_store, sync_config=sync_config)
