"""Pooled Postgres connections shared by the article and sync-log stores."""

import logging
import os
import threading
from contextlib import contextmanager
from typing import Any, Dict, Generator

import psycopg
from psycopg.conninfo import make_conninfo
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

logger = logging.getLogger(__name__)


class DatabaseConfig:
    """Connection settings read from the ``postgres`` config section."""

    def __init__(self, config: Dict[str, Any]) -> None:
        self.host = config.get("host", "localhost")
        self.port = config.get("port", 5432)
        self.database = config.get("database", "nlsync")
        self.user = config.get("user", "nlsync_user")
        self.statement_timeout_ms = int(config.get("statement_timeout_ms", 5000))
        self.pool_min_size = int(config.get("pool_min_size", 1))
        self.pool_max_size = max(int(config.get("pool_max_size", 10)), self.pool_min_size)

        # A set environment variable wins over an inline password
        password_env = config.get("password_env")
        if password_env and os.environ.get(password_env):
            self.password = os.environ[password_env]
        else:
            self.password = config.get("password") or ""

    @property
    def connection_string(self) -> str:
        """libpq conninfo; quoting of the password is left to psycopg."""
        return make_conninfo(
            host=self.host,
            port=self.port,
            dbname=self.database,
            user=self.user,
            password=self.password or None,
        )

    @property
    def connection_kwargs(self) -> Dict[str, Any]:
        """Per-connection settings: dict rows, autocommit, bounded statements."""
        return {
            "row_factory": dict_row,
            "autocommit": True,
            "options": f"-c statement_timeout={self.statement_timeout_ms}",
        }


_pools: Dict[str, ConnectionPool] = {}
_pools_lock = threading.Lock()


def get_connection_pool(config: Dict[str, Any]) -> ConnectionPool:
    """Return the pool for these settings, opening it on first use."""
    db_config = DatabaseConfig(config)
    key = db_config.connection_string
    with _pools_lock:
        pool = _pools.get(key)
        if pool is None:
            logger.debug(
                "Opening connection pool for %s@%s/%s", db_config.user, db_config.host, db_config.database
            )
            pool = ConnectionPool(
                key,
                min_size=db_config.pool_min_size,
                max_size=db_config.pool_max_size,
                kwargs=db_config.connection_kwargs,
                open=True,
            )
            _pools[key] = pool
    return pool


def close_connection_pool() -> None:
    """Close every pool opened by this process."""
    with _pools_lock:
        pools = list(_pools.values())
        _pools.clear()
    for pool in pools:
        pool.close()


@contextmanager
def get_connection(config: Dict[str, Any]) -> Generator[psycopg.Connection, None, None]:
    """Borrow a connection; it goes back to the pool on exit."""
    pool = get_connection_pool(config)
    with pool.connection() as conn:
        yield conn
