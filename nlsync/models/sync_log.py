"""Sync log models for tracking ingestion runs."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from .base import DBModel


class SyncStatus(str, Enum):
    """Ingestion run states. Everything except STARTED is terminal."""

    STARTED = "started"
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not SyncStatus.STARTED


class SyncLogEntry(DBModel):
    """One ingestion run."""

    publication_ref: Optional[str] = Field(None, description="Publication the run synced")
    issue_id: Optional[str] = Field(None, description="Provider id of the synced issue")
    started_at: datetime = Field(..., description="When the run started")
    completed_at: Optional[datetime] = Field(None, description="When the run was closed")
    status: SyncStatus = Field(SyncStatus.STARTED, description="Run status")
    items_found: int = Field(0, description="Items extracted from the issue")
    items_processed: int = Field(0, description="Items created, updated or skipped")
    items_failed: int = Field(0, description="Items whose upsert failed")
    error_details: Optional[Dict[str, Any]] = Field(None, description="Structured error detail")

    @property
    def is_closed(self) -> bool:
        return self.completed_at is not None


class SyncStats(BaseModel):
    """Aggregate counters over sync runs."""

    total_syncs: int = 0
    successful_syncs: int = 0
    partial_syncs: int = 0
    failed_syncs: int = 0
    total_items_processed: int = 0
