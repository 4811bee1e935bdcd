"""Sync coordinator: one issue in, one closed sync log out."""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..config.models import ParserConfig, SyncConfig
from ..db.base import ArticleStore, SyncLogStore
from ..models import SyncLogEntry, SyncStatus
from ..parsing import IssuePayload, NewsletterParser, ParseResult
from .mapping import build_candidate
from .retry import StoreRetryPolicy
from .upsert import UpsertAction, UpsertEngine

logger = logging.getLogger(__name__)


@dataclass
class ItemOutcome:
    """Result of syncing one extracted item."""

    number: int
    title: str
    source_id: Optional[str] = None
    action: Optional[UpsertAction] = None
    article_id: Optional[int] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class SyncReport:
    """Summary of one sync run."""

    log_id: int
    issue_id: Optional[str]
    status: SyncStatus
    items_found: int = 0
    outcomes: List[ItemOutcome] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    cancelled: bool = False
    aborted: bool = False
    closed: bool = False
    log: Optional[SyncLogEntry] = None

    @property
    def processed(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.succeeded)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.succeeded)

    def count(self, action: UpsertAction) -> int:
        return sum(1 for outcome in self.outcomes if outcome.action == action)


class SyncCoordinator:
    """Parse an issue, upsert every item and record the run.

    Per-item failures are recorded and do not stop the batch. The sync log
    opened for a run is closed exactly once, whatever happens in between.
    """

    def __init__(
        self,
        article_store: ArticleStore,
        log_store: SyncLogStore,
        parser_config: Optional[ParserConfig] = None,
        sync_config: Optional[SyncConfig] = None,
    ) -> None:
        self.sync_config = sync_config or SyncConfig()
        self.parser = NewsletterParser(parser_config)
        self.log_store = log_store
        self.retry_policy = StoreRetryPolicy(
            max_attempts=self.sync_config.max_attempts,
            wait_seconds=self.sync_config.retry_wait_seconds,
        )
        self.engine = UpsertEngine(
            article_store,
            default_status=self.sync_config.default_status,
            retry_policy=self.retry_policy,
        )

    def sync_issue(
        self,
        payload: Any,
        publication_ref: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> SyncReport:
        """Sync one raw issue payload (provider dict or ``IssuePayload``)."""
        issue = IssuePayload.from_raw(payload)
        issue_id = issue.id if issue else None
        log_id = self.retry_policy.execute(lambda: self.log_store.create_log(publication_ref, issue_id))
        report = SyncReport(log_id=log_id, issue_id=issue_id, status=SyncStatus.STARTED)

        try:
            if issue is None:
                return self._close_failed(report, "Invalid issue payload")
            if not issue_id:
                return self._close_failed(report, "Issue id is missing")
            body = issue.body_markup
            if not body or not body.strip():
                return self._close_failed(report, "Issue has no body markup")

            result = self.parser.parse(issue)
            self._run(report, result, publication_ref, cancel_event)
        except Exception as e:
            if report.closed:
                raise
            return self._close_aborted(report, e)
        return self._close(report)

    def sync_result(
        self,
        result: ParseResult,
        publication_ref: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> SyncReport:
        """Sync an issue that was parsed beforehand."""
        issue_id = result.metadata.issue_id
        log_id = self.retry_policy.execute(lambda: self.log_store.create_log(publication_ref, issue_id))
        report = SyncReport(log_id=log_id, issue_id=issue_id, status=SyncStatus.STARTED)

        try:
            if not issue_id:
                return self._close_failed(report, "Issue id is missing")
            self._run(report, result, publication_ref, cancel_event)
        except Exception as e:
            if report.closed:
                raise
            return self._close_aborted(report, e)
        return self._close(report)

    def _run(
        self,
        report: SyncReport,
        result: ParseResult,
        publication_ref: Optional[str],
        cancel_event: Optional[threading.Event],
    ) -> None:
        issue_id = result.metadata.issue_id
        report.items_found = len(result.items)
        if not result.items:
            report.errors.append("No items extracted from issue")
            return

        for item in result.items:
            if cancel_event is not None and cancel_event.is_set():
                report.cancelled = True
                logger.warning(
                    "Sync of issue %s cancelled after %d of %d items",
                    issue_id,
                    len(report.outcomes),
                    len(result.items),
                )
                return

            outcome = ItemOutcome(number=item.number, title=item.title)
            try:
                candidate = build_candidate(
                    item,
                    result.metadata,
                    publication_ref=publication_ref,
                    source=self.sync_config.source,
                )
                outcome.source_id = candidate.source_id
                upserted = self.engine.upsert(candidate)
                outcome.action = upserted.action
                outcome.article_id = upserted.article.id
            except Exception as e:
                outcome.error = str(e) or type(e).__name__
                report.errors.append(f"Item {item.number} ({item.title}): {outcome.error}")
                logger.warning("Failed to sync item %d of issue %s: %s", item.number, issue_id, outcome.error)
            report.outcomes.append(outcome)

    def _close_failed(self, report: SyncReport, reason: str) -> SyncReport:
        logger.warning("Sync of issue %s failed: %s", report.issue_id or "<unknown>", reason)
        report.errors.append(reason)
        return self._close(report)

    def _close_aborted(self, report: SyncReport, error: Exception) -> SyncReport:
        logger.exception("Sync of issue %s aborted", report.issue_id or "<unknown>")
        report.aborted = True
        report.errors.append(f"Sync aborted: {str(error) or type(error).__name__}")
        return self._close(report)

    def _close(self, report: SyncReport) -> SyncReport:
        report.status = self._final_status(report)
        details: Dict[str, Any] = {
            "errors": list(report.errors),
            "outcomes": {action.value: report.count(action) for action in UpsertAction},
            "cancelled": report.cancelled,
        }
        # Marked before the write: complete_log runs at most once per report.
        report.closed = True
        report.log = self.retry_policy.execute(
            lambda: self.log_store.complete_log(
                report.log_id,
                report.status,
                processed=report.processed,
                failed=report.failed,
                error_details=details,
                items_found=report.items_found,
            )
        )
        logger.info(
            "Sync of issue %s finished: %s (%d processed, %d failed)",
            report.issue_id or "<unknown>",
            report.status.value,
            report.processed,
            report.failed,
        )
        return report

    @staticmethod
    def _final_status(report: SyncReport) -> SyncStatus:
        if report.processed == 0:
            return SyncStatus.FAILED
        if report.failed or report.cancelled or report.aborted:
            return SyncStatus.PARTIAL
        return SyncStatus.SUCCESS
