"""Newsletter markup parsing."""

from .enrichers import ImageInfo, extract_image, extract_links, summarize
from .extractors import ExtractionResult, ExtractionStrategy, ItemCandidate, extract_candidates
from .models import ExternalLink, ExtractedItem, IssueMetadata, IssuePayload, ParseResult
from .normalizer import normalize_markup, strip_tags, visible_text
from .parser import NewsletterParser, parse_issue
from .scanner import MarkerKind, MarkerMatch, MarkerScanner
from .segmenter import RawSection, split_sections

__all__ = [
    "ExternalLink",
    "ExtractedItem",
    "ExtractionResult",
    "ExtractionStrategy",
    "ImageInfo",
    "IssueMetadata",
    "IssuePayload",
    "ItemCandidate",
    "MarkerKind",
    "MarkerMatch",
    "MarkerScanner",
    "NewsletterParser",
    "ParseResult",
    "RawSection",
    "extract_candidates",
    "extract_image",
    "extract_links",
    "normalize_markup",
    "parse_issue",
    "split_sections",
    "strip_tags",
    "summarize",
    "visible_text",
]
