"""Per-item enrichment: primary image, outbound links and summary."""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple
from urllib.parse import urlparse

from .models import ExternalLink
from .normalizer import normalize_markup, visible_text
from .scanner import class_tokens

logger = logging.getLogger(__name__)

_IMG_SRC = re.compile(r"""<img\b[^>]*?\bsrc\s*=\s*["']([^"']+)["'][^>]*>""", re.IGNORECASE)
_BLOCK_OPEN = re.compile(r"<(?P<tag>div|figure|section|picture|td|table)\b(?P<attrs>[^>]*)>", re.IGNORECASE)
_ANY_OPEN = re.compile(r"<(?P<tag>[a-z][a-z0-9]*)\b(?P<attrs>[^>]*)>", re.IGNORECASE)
_ANCHOR = re.compile(r"<a\b(?P<attrs>[^>]*)>(?P<inner>.*?)</a\s*>", re.IGNORECASE | re.DOTALL)
_HREF_ATTR = re.compile(r"""(?:^|\s)href\s*=\s*["']([^"']*)["']""", re.IGNORECASE)

_VOID_TAGS = {"img", "br", "hr", "input", "meta", "link", "source", "wbr"}


@dataclass(frozen=True)
class ImageInfo:
    """Primary image of an item."""

    url: str = ""
    source: str = ""


def _element_inner(markup: str, tag: str, content_start: int) -> str:
    """Markup between an opening tag (ending at ``content_start``) and its close."""
    pattern = re.compile(rf"<(/?){tag}\b[^>]*>", re.IGNORECASE)
    depth = 1
    for match in pattern.finditer(markup, content_start):
        if match.group(0).endswith("/>"):
            continue
        depth += -1 if match.group(1) else 1
        if depth == 0:
            return markup[content_start:match.start()]
    return markup[content_start:]


def _image_containers(body: str) -> Iterable[str]:
    for match in _BLOCK_OPEN.finditer(body):
        if "image" in class_tokens(match.group("attrs")):
            yield _element_inner(body, match.group("tag"), match.end())


def _attribution(container: str) -> str:
    for match in _ANY_OPEN.finditer(container):
        tag = match.group("tag").lower()
        if tag in _VOID_TAGS:
            continue
        if any("source" in token for token in class_tokens(match.group("attrs"))):
            return visible_text(_element_inner(container, tag, match.end()))
    return ""


def extract_image(body: str, thumbnail_fallback: Optional[str] = None) -> ImageInfo:
    """Primary image and its attribution.

    Looks for an ``image`` container first, then any ``<img>``, then falls
    back to the issue thumbnail.
    """
    body = body or ""

    for container in _image_containers(body):
        match = _IMG_SRC.search(container)
        if match:
            return ImageInfo(normalize_markup(match.group(1)).strip(), _attribution(container))

    match = _IMG_SRC.search(body)
    if match:
        return ImageInfo(normalize_markup(match.group(1)).strip())

    return ImageInfo(normalize_markup(thumbnail_fallback).strip())


def _is_excluded_host(host: str, excluded_domains: Tuple[str, ...]) -> bool:
    return any(host == domain or host.endswith("." + domain) for domain in excluded_domains)


def extract_links(body: str, excluded_domains: Iterable[str] = ()) -> List[ExternalLink]:
    """Absolute http(s) links whose host is not an excluded domain."""
    excluded = tuple(d.lower().strip(".") for d in excluded_domains if d)
    links: List[ExternalLink] = []

    for match in _ANCHOR.finditer(body or ""):
        href_match = _HREF_ATTR.search(match.group("attrs"))
        if not href_match:
            continue
        href = href_match.group(1).strip()
        try:
            parsed = urlparse(href)
            host = parsed.hostname
        except ValueError:
            logger.debug("Skipping malformed link %r", href)
            continue
        if parsed.scheme.lower() not in ("http", "https") or not host:
            continue
        if _is_excluded_host(host.lower(), excluded):
            continue
        links.append(ExternalLink(url=href, text=visible_text(match.group("inner"))))

    return links


def summarize(body: str, max_length: int = 200) -> str:
    """Plain-text summary, truncated with ``...`` when longer than ``max_length``."""
    text = visible_text(body)
    if len(text) <= max_length:
        return text
    return text[:max_length].rstrip() + "..."
