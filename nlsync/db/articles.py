"""Postgres article store."""

import threading
from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

import psycopg
from psycopg import Connection, sql
from psycopg.types.json import Jsonb

from ..models import IDENTITY_FIELDS, ArticleCandidate, PersistedArticle
from .base import ArticleStore
from .connection import get_connection
from .errors import StoreOperationError, translate_error

_JSON_COLUMNS = {"content", "external_links"}
_UPDATABLE_COLUMNS = (set(ArticleCandidate.model_fields) - IDENTITY_FIELDS) | {"status", "published_at"}


def _adapt(column: str, value: Any) -> Any:
    return Jsonb(value) if column in _JSON_COLUMNS else value


class ArticleStorage(ArticleStore):
    """Article store over the ``articles`` table.

    Inside ``lock()`` every call on the same thread reuses the locked
    connection, so the lookup and the write share one transaction.
    """

    def __init__(self, db_config: Dict[str, Any]) -> None:
        self.db_config = db_config
        self._local = threading.local()

    @contextmanager
    def _connection(self) -> Generator[Connection, None, None]:
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            yield conn
            return
        with get_connection(self.db_config) as conn:
            yield conn

    @contextmanager
    def lock(self, source: str, source_id: str) -> Generator[None, None, None]:
        try:
            with get_connection(self.db_config) as conn:
                with conn.transaction():
                    conn.execute(
                        "SELECT pg_advisory_xact_lock(hashtext(%s))",
                        (f"{source}:{source_id}",),
                    )
                    self._local.conn = conn
                    try:
                        yield
                    finally:
                        self._local.conn = None
        except psycopg.Error as exc:
            raise translate_error(exc, "lock_article") from exc

    def find_by_source_id(self, source: str, source_id: str) -> Optional[PersistedArticle]:
        try:
            with self._connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        "SELECT * FROM articles WHERE source = %s AND source_id = %s LIMIT 1",
                        (source, source_id),
                    )
                    row = cur.fetchone()
        except psycopg.Error as exc:
            raise translate_error(exc, "find_article_by_source_id") from exc
        return PersistedArticle.from_row(row)

    def slug_exists(self, slug: str) -> bool:
        try:
            with self._connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT 1 AS found FROM articles WHERE slug = %s LIMIT 1", (slug,))
                    return cur.fetchone() is not None
        except psycopg.Error as exc:
            raise translate_error(exc, "check_slug") from exc

    def create(self, candidate: ArticleCandidate, status: str) -> PersistedArticle:
        values = candidate.model_dump()
        values["status"] = status
        columns = list(values)

        query = sql.SQL("INSERT INTO articles ({columns}) VALUES ({placeholders}) RETURNING *").format(
            columns=sql.SQL(", ").join(sql.Identifier(column) for column in columns),
            placeholders=sql.SQL(", ").join(sql.Placeholder() * len(columns)),
        )
        try:
            with self._connection() as conn:
                with conn.transaction():
                    with conn.cursor() as cur:
                        cur.execute(query, [_adapt(column, values[column]) for column in columns])
                        row = cur.fetchone()
        except psycopg.Error as exc:
            raise translate_error(exc, "create_article") from exc
        return PersistedArticle.from_row(row)

    def update(self, article_id: int, fields: Dict[str, Any]) -> PersistedArticle:
        changes = {column: value for column, value in fields.items() if column in _UPDATABLE_COLUMNS}

        assignments = [
            sql.SQL("{} = {}").format(sql.Identifier(column), sql.Placeholder()) for column in changes
        ]
        # Keeps the statement valid when no column changed.
        assignments.append(sql.SQL("updated_at = clock_timestamp()"))
        query = sql.SQL("UPDATE articles SET {assignments} WHERE id = %s RETURNING *").format(
            assignments=sql.SQL(", ").join(assignments),
        )
        params = [_adapt(column, value) for column, value in changes.items()] + [article_id]
        try:
            with self._connection() as conn:
                with conn.transaction():
                    with conn.cursor() as cur:
                        cur.execute(query, params)
                        row = cur.fetchone()
        except psycopg.Error as exc:
            raise translate_error(exc, "update_article") from exc
        if row is None:
            raise StoreOperationError(f"Article {article_id} not found", "update_article")
        return PersistedArticle.from_row(row)
