"""Split an issue body into sections on content-break rules."""

from dataclasses import dataclass
from typing import List

from .scanner import MarkerKind, MarkerScanner


@dataclass(frozen=True)
class RawSection:
    """Slice of the body between two section breaks."""

    index: int
    markup: str
    start: int
    end: int


def split_sections(body: str, break_class: str = "content_break") -> List[RawSection]:
    """Return the sections of ``body`` in document order.

    A body without section breaks is a single section.
    """
    body = body or ""
    scanner = MarkerScanner(body, break_class)
    sections: List[RawSection] = []
    cursor = 0

    for marker in scanner.iter_markers(MarkerKind.SECTION_BREAK):
        sections.append(RawSection(len(sections), body[cursor:marker.start], cursor, marker.start))
        cursor = marker.end

    sections.append(RawSection(len(sections), body[cursor:], cursor, len(body)))
    return sections
