"""Locate news items in a normalized issue body.

Extraction runs in two stages. The primary stage reads each section for a
category heading (``<h6 id=...>``) followed by a title heading (``<h1>``).
Only when it finds nothing in the whole issue does the fallback stage run,
reading title headings directly and cutting each body at the next title or
section break. ``extract_candidates`` returns which stage produced the items.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from ..config.models import ParserConfig
from .scanner import MarkerKind, MarkerScanner
from .segmenter import RawSection, split_sections

logger = logging.getLogger(__name__)


class ExtractionStrategy(str, Enum):
    """Which stage produced the candidates."""

    PRIMARY = "primary"
    FALLBACK = "fallback"
    NONE = "none"


@dataclass(frozen=True)
class ItemCandidate:
    """Category, title and raw body of one news item, before enrichment."""

    title: str
    title_id: str
    category: str
    category_id: str
    body: str
    section_index: Optional[int] = None


@dataclass(frozen=True)
class ExtractionResult:
    """Candidates tagged with the stage that produced them."""

    strategy: ExtractionStrategy
    candidates: Tuple[ItemCandidate, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.candidates)


def is_ignored_category(name: str, ignored_sections: Iterable[str]) -> bool:
    """True when the category name contains any denylisted marker."""
    folded = name.casefold()
    return any(marker.casefold() in folded for marker in ignored_sections if marker)


def extract_primary(sections: Sequence[RawSection], config: ParserConfig) -> List[ItemCandidate]:
    """Category + title pairs, one per section at most."""
    candidates: List[ItemCandidate] = []

    for section in sections:
        scanner = MarkerScanner(section.markup, config.section_break_class)

        category = scanner.find_next(MarkerKind.CATEGORY)
        if category is None:
            logger.debug("Section %d: no category marker, skipping", section.index)
            continue

        category_name = category.text.upper()
        if is_ignored_category(category_name, config.ignored_sections):
            logger.debug("Section %d: ignoring non-news section %r", section.index, category_name)
            continue

        title = scanner.find_next(MarkerKind.TITLE, category.end)
        if title is None:
            logger.debug("Section %d: category %r without title, skipping", section.index, category_name)
            continue

        candidates.append(
            ItemCandidate(
                title=title.text,
                title_id=title.marker_id,
                category=category_name,
                category_id=category.marker_id,
                body=section.markup[title.end:].strip(),
                section_index=section.index,
            )
        )

    return candidates


def _is_wrapper_title(title: str, config: ParserConfig) -> bool:
    folded = title.casefold()
    if any(folded == placeholder.casefold() for placeholder in config.placeholder_titles):
        return True
    return any(phrase.casefold() in folded for phrase in config.wrapper_title_phrases if phrase)


def extract_fallback(body: str, config: ParserConfig) -> List[ItemCandidate]:
    """Title headings read directly, ignoring categories."""
    scanner = MarkerScanner(body, config.section_break_class)
    candidates: List[ItemCandidate] = []

    for title in scanner.iter_markers(MarkerKind.TITLE):
        if _is_wrapper_title(title.text, config):
            logger.debug("Fallback: skipping wrapper title %r", title.text)
            continue

        end = len(body)
        for kind in (MarkerKind.TITLE_START, MarkerKind.SECTION_BREAK):
            boundary = scanner.find_next(kind, title.end)
            if boundary is not None and boundary.start < end:
                end = boundary.start

        item_body = body[title.end:end].strip()
        if len(item_body) < config.min_fallback_body_length:
            logger.debug("Fallback: body of %r too short (%d chars)", title.text, len(item_body))
            continue

        candidates.append(
            ItemCandidate(
                title=title.text,
                title_id=title.marker_id,
                category=config.fallback_category_name,
                category_id=config.fallback_category_id,
                body=item_body,
            )
        )

    return candidates


def extract_candidates(body: str, config: Optional[ParserConfig] = None) -> ExtractionResult:
    """Run the primary stage, then the fallback stage if it found nothing."""
    config = config or ParserConfig()

    primary = extract_primary(split_sections(body, config.section_break_class), config)
    if primary:
        return ExtractionResult(ExtractionStrategy.PRIMARY, tuple(primary))

    logger.debug("No categorized items found, trying title headings directly")
    fallback = extract_fallback(body, config)
    if fallback:
        return ExtractionResult(ExtractionStrategy.FALLBACK, tuple(fallback))

    return ExtractionResult(ExtractionStrategy.NONE)
