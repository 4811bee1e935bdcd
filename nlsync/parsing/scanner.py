"""Marker scanner over normalized newsletter markup.

Segmenter and extractors only ask "where is the next marker of this kind";
the regular expressions that answer are kept here.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional

from .normalizer import visible_text

_HEADING_6 = re.compile(r"<h6\b(?P<attrs>[^>]*)>(?P<inner>.*?)</h6\s*>", re.IGNORECASE | re.DOTALL)
_HEADING_1 = re.compile(r"<h1\b(?P<attrs>[^>]*)>(?P<inner>.*?)</h1\s*>", re.IGNORECASE | re.DOTALL)
_HEADING_1_OPEN = re.compile(r"<h1\b[^>]*>", re.IGNORECASE)
_RULE = re.compile(r"<hr\b(?P<attrs>[^>]*)>", re.IGNORECASE)

_ID_ATTR = re.compile(r"""(?:^|\s)id\s*=\s*["']([^"']*)["']""", re.IGNORECASE)
_CLASS_ATTR = re.compile(r"""(?:^|\s)class\s*=\s*["']([^"']*)["']""", re.IGNORECASE)


class MarkerKind(str, Enum):
    """Structural markers recognized in an issue body."""

    CATEGORY = "category"
    TITLE = "title"
    TITLE_START = "title_start"
    SECTION_BREAK = "section_break"


@dataclass(frozen=True)
class MarkerMatch:
    """A marker located in the scanned markup."""

    kind: MarkerKind
    start: int
    end: int
    text: str = ""
    marker_id: str = ""


def attribute_id(attrs: str) -> str:
    """Value of the ``id`` attribute in a raw attribute string, or ""."""
    match = _ID_ATTR.search(attrs or "")
    return match.group(1).strip() if match else ""


def class_tokens(attrs: str) -> list[str]:
    """Class tokens of a raw attribute string."""
    match = _CLASS_ATTR.search(attrs or "")
    return match.group(1).split() if match else []


class MarkerScanner:
    """Locate category, title and section-break markers in markup."""

    def __init__(self, markup: str, break_class: str = "content_break") -> None:
        self.markup = markup or ""
        self.break_class = break_class

    def find_next(
        self,
        kind: MarkerKind,
        from_offset: int = 0,
    ) -> Optional[MarkerMatch]:
        """Return the first marker of ``kind`` starting at or after ``from_offset``."""
        return next(self.iter_markers(kind, from_offset), None)

    def iter_markers(self, kind: MarkerKind, from_offset: int = 0) -> Iterator[MarkerMatch]:
        """Yield markers of ``kind`` in document order."""
        if kind is MarkerKind.CATEGORY:
            yield from self._iter_headings(_HEADING_6, kind, from_offset, require_id=True)
        elif kind is MarkerKind.TITLE:
            yield from self._iter_headings(_HEADING_1, kind, from_offset, require_id=False)
        elif kind is MarkerKind.TITLE_START:
            for match in _HEADING_1_OPEN.finditer(self.markup, from_offset):
                yield MarkerMatch(kind, match.start(), match.end())
        elif kind is MarkerKind.SECTION_BREAK:
            for match in _RULE.finditer(self.markup, from_offset):
                if self.break_class in class_tokens(match.group("attrs")):
                    yield MarkerMatch(kind, match.start(), match.end())
        else:
            raise ValueError(f"Unknown marker kind: {kind}")

    def _iter_headings(
        self,
        pattern: re.Pattern,
        kind: MarkerKind,
        from_offset: int,
        require_id: bool,
    ) -> Iterator[MarkerMatch]:
        for match in pattern.finditer(self.markup, from_offset):
            marker_id = attribute_id(match.group("attrs"))
            if require_id and not marker_id:
                continue
            text = visible_text(match.group("inner"))
            if not text:
                continue
            yield MarkerMatch(kind, match.start(), match.end(), text=text, marker_id=marker_id)
