"""Newsletter parser: turns one issue into extracted news items."""

import logging
from typing import Any, List, Optional

import pendulum

from ..config.models import ParserConfig
from .enrichers import extract_image, extract_links, summarize
from .extractors import ExtractionStrategy, ItemCandidate, extract_candidates
from .models import ExtractedItem, IssueMetadata, IssuePayload, ParseResult
from .normalizer import normalize_markup

logger = logging.getLogger(__name__)


def _iso_timestamp(epoch: Optional[float]) -> str:
    """ISO-8601 string for epoch seconds, "now" when absent or out of range."""
    if epoch is not None:
        try:
            return pendulum.from_timestamp(epoch, tz="UTC").to_iso8601_string()
        except (OverflowError, OSError, ValueError):
            logger.warning("Ignoring out-of-range timestamp %r", epoch)
    return pendulum.now("UTC").to_iso8601_string()


class NewsletterParser:
    """Split an issue body into news items and enrich each one."""

    def __init__(self, config: Optional[ParserConfig] = None) -> None:
        """Initialize parser."""
        self.config = config or ParserConfig()

    def parse(self, payload: Any) -> ParseResult:
        """
        Parse an issue payload.

        Accepts an ``IssuePayload`` or the raw provider dict. Missing or
        malformed input yields an empty result instead of an error.
        """
        issue = IssuePayload.from_raw(payload)
        if issue is None:
            logger.warning("Unusable issue payload, returning empty result")
            return ParseResult(items=[], metadata=self._build_metadata(IssuePayload(), [], ExtractionStrategy.NONE))

        raw_body = issue.body_markup
        if not raw_body or not raw_body.strip():
            logger.info("Issue %s has no body markup", issue.id or "<unknown>")
            return ParseResult(items=[], metadata=self._build_metadata(issue, [], ExtractionStrategy.NONE))

        body = normalize_markup(raw_body)
        extraction = extract_candidates(body, self.config)
        thumbnail = issue.thumbnail_url or ""

        items = [
            self._assemble(number, candidate, thumbnail)
            for number, candidate in enumerate(extraction.candidates, start=1)
        ]

        logger.info(
            "Parsed issue %s: %d items (%s)",
            issue.id or "<unknown>",
            len(items),
            extraction.strategy.value,
        )
        return ParseResult(items=items, metadata=self._build_metadata(issue, items, extraction.strategy))

    def _assemble(self, number: int, candidate: ItemCandidate, thumbnail: str) -> ExtractedItem:
        """Combine a candidate with its enrichments."""
        body = normalize_markup(candidate.body)
        image = extract_image(body, thumbnail)
        links = extract_links(body, self.config.excluded_link_domains)

        return ExtractedItem(
            number=number,
            title=candidate.title,
            title_id=candidate.title_id,
            category=candidate.category,
            category_id=candidate.category_id,
            body_html=body,
            summary=summarize(body, self.config.summary_max_length),
            image_url=image.url,
            image_source=image.source,
            links=links,
            link_count=len(links),
            start_marker=f"newsletter-{number}",
            end_marker=f"newsletter-fim-{number}",
        )

    def _build_metadata(
        self,
        issue: IssuePayload,
        items: List[ExtractedItem],
        strategy: ExtractionStrategy,
    ) -> IssueMetadata:
        categories = list(dict.fromkeys(item.category for item in items))
        return IssueMetadata(
            issue_id=issue.id,
            title=issue.title or "Newsletter",
            subject_line=issue.subject_line or "",
            preview_text=issue.preview_text or "",
            thumbnail_url=issue.thumbnail_url or "",
            web_url=issue.web_url or "",
            created=_iso_timestamp(issue.created),
            publish_date=_iso_timestamp(issue.publish_date),
            total_items=len(items),
            categories=categories,
            strategy=strategy.value,
        )


def parse_issue(payload: Any, config: Optional[ParserConfig] = None) -> ParseResult:
    """Parse one issue with a throwaway parser."""
    return NewsletterParser(config).parse(payload)
