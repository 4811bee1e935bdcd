"""Sync log management in database."""

from typing import Any, Dict, List, Optional

import psycopg
from psycopg.types.json import Jsonb

from ..models import SyncLogEntry, SyncStats, SyncStatus
from .base import SyncLogStore
from .connection import get_connection
from .errors import SyncLogClosedError, SyncLogNotFoundError, translate_error


class SyncLogManager(SyncLogStore):
    """Manage sync run logs in the ``sync_logs`` table."""

    def __init__(self, db_config: Dict[str, Any]) -> None:
        self.db_config = db_config

    def create_log(self, publication_ref: Optional[str], issue_id: Optional[str]) -> int:
        """
        Create a new sync log in ``started`` state.

        Returns:
            Sync log ID
        """
        try:
            with get_connection(self.db_config) as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        INSERT INTO sync_logs (publication_ref, issue_id, started_at, status)
                        VALUES (%s, %s, CURRENT_TIMESTAMP, 'started')
                        RETURNING id
                        """,
                        (publication_ref, issue_id),
                    )
                    return cur.fetchone()["id"]
        except psycopg.Error as exc:
            raise translate_error(exc, "create_sync_log") from exc

    def complete_log(
        self,
        log_id: int,
        status: SyncStatus,
        processed: int = 0,
        failed: int = 0,
        error_details: Optional[Dict[str, Any]] = None,
        items_found: Optional[int] = None,
    ) -> SyncLogEntry:
        """Close a sync log with its final status and counters."""
        status = SyncStatus(status)
        if not status.is_terminal:
            raise ValueError(f"Cannot close sync log {log_id} as {status.value}")
        try:
            with get_connection(self.db_config) as conn:
                with conn.transaction():
                    with conn.cursor() as cur:
                        cur.execute(
                            "SELECT completed_at FROM sync_logs WHERE id = %s FOR UPDATE",
                            (log_id,),
                        )
                        existing = cur.fetchone()
                        if existing is None:
                            raise SyncLogNotFoundError(f"Sync log {log_id} not found", "complete_sync_log")
                        if existing["completed_at"] is not None:
                            raise SyncLogClosedError(
                                f"Sync log {log_id} is already completed", "complete_sync_log"
                            )

                        cur.execute(
                            """
                            UPDATE sync_logs
                            SET
                                status = %s,
                                completed_at = CURRENT_TIMESTAMP,
                                items_found = COALESCE(%s, items_found),
                                items_processed = %s,
                                items_failed = %s,
                                error_details = %s
                            WHERE id = %s
                            RETURNING *
                            """,
                            (
                                status.value,
                                items_found,
                                processed,
                                failed,
                                Jsonb(error_details) if error_details is not None else None,
                                log_id,
                            ),
                        )
                        row = cur.fetchone()
        except psycopg.Error as exc:
            raise translate_error(exc, "complete_sync_log") from exc
        return SyncLogEntry.from_row(row)

    def get_log(self, log_id: int) -> Optional[SyncLogEntry]:
        """Get sync log by ID."""
        try:
            with get_connection(self.db_config) as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT * FROM sync_logs WHERE id = %s", (log_id,))
                    row = cur.fetchone()
        except psycopg.Error as exc:
            raise translate_error(exc, "get_sync_log") from exc
        return SyncLogEntry.from_row(row)

    def get_recent_logs(self, limit: int = 10) -> List[SyncLogEntry]:
        """Get recent sync logs."""
        try:
            with get_connection(self.db_config) as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        SELECT * FROM sync_logs
                        ORDER BY started_at DESC, id DESC
                        LIMIT %s
                        """,
                        (limit,),
                    )
                    rows = cur.fetchall()
        except psycopg.Error as exc:
            raise translate_error(exc, "get_recent_sync_logs") from exc
        return [SyncLogEntry.from_row(row) for row in rows]

    def get_sync_stats(self, publication_ref: Optional[str] = None) -> SyncStats:
        """Aggregate counters over all runs, or one publication's runs."""
        try:
            with get_connection(self.db_config) as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        SELECT
                            COUNT(*) AS total_syncs,
                            COUNT(*) FILTER (WHERE status = 'success') AS successful_syncs,
                            COUNT(*) FILTER (WHERE status = 'partial') AS partial_syncs,
                            COUNT(*) FILTER (WHERE status = 'failed') AS failed_syncs,
                            COALESCE(SUM(items_processed), 0) AS total_items_processed
                        FROM sync_logs
                        WHERE %(publication_ref)s::text IS NULL OR publication_ref = %(publication_ref)s
                        """,
                        {"publication_ref": publication_ref},
                    )
                    row = cur.fetchone()
        except psycopg.Error as exc:
            raise translate_error(exc, "get_sync_stats") from exc
        return SyncStats(**row)
