"""Map extracted newsletter items onto article candidates."""

import math
import re
import unicodedata
from typing import Dict, List, Optional

from ..models import ArticleCandidate, ContentBlock
from ..parsing.models import ExtractedItem, IssueMetadata
from ..parsing.normalizer import visible_text

WORDS_PER_MINUTE = 200
MAX_SLUG_LENGTH = 100

_NON_SLUG = re.compile(r"[^a-z0-9]+")
_ELEMENT = re.compile(
    r"(?P<skip></[a-z][a-z0-9]*\s*>|<!--.*?-->)"
    r"|<(?P<tag>[a-z][a-z0-9]*)\b(?P<attrs>[^>]*)>(?P<inner>.*?)</(?P=tag)\s*>"
    r"|<(?P<void>[a-z][a-z0-9]*)\b(?P<void_attrs>[^>]*?)/?>"
    r"|(?P<text>[^<]+)",
    re.IGNORECASE | re.DOTALL,
)
_ATTRIBUTE = re.compile(r"""([\w:-]+)\s*=\s*["']([^"']*)["']""")
_LIST_ITEM = re.compile(r"<li\b[^>]*>(.*?)</li\s*>", re.IGNORECASE | re.DOTALL)

_HEADINGS = {"h1", "h2", "h3", "h4", "h5", "h6"}
_CONTAINERS = {"div", "section", "article", "figure", "center", "table", "tbody", "tr", "td"}
# Loose text shorter than this is treated as layout noise.
_MIN_LOOSE_TEXT = 10


def make_source_item_id(issue_id: str, number: int) -> str:
    """Stable id of the ``number``-th item of an issue."""
    return f"{issue_id}:{number}"


def slugify(title: str) -> str:
    """ASCII, lower-case, hyphen-separated slug for a title."""
    folded = unicodedata.normalize("NFKD", title or "").encode("ascii", "ignore").decode("ascii")
    slug = _NON_SLUG.sub("-", folded.lower()).strip("-")
    slug = slug[:MAX_SLUG_LENGTH].rstrip("-")
    return slug or "artigo"


def _attributes(raw: str) -> Dict[str, str]:
    return {name.lower(): value for name, value in _ATTRIBUTE.findall(raw or "")}


def _collect_blocks(markup: str, blocks: List[ContentBlock]) -> None:
    for match in _ELEMENT.finditer(markup):
        if match.group("skip") is not None:
            continue

        if match.group("text") is not None:
            text = visible_text(match.group("text"))
            if len(text) > _MIN_LOOSE_TEXT:
                blocks.append(_block(blocks, "paragraph", text=text))
            continue

        if match.group("void") is not None:
            if match.group("void").lower() == "img":
                attrs = _attributes(match.group("void_attrs"))
                if attrs.get("src"):
                    blocks.append(
                        _block(
                            blocks,
                            "image",
                            url=attrs["src"],
                            alt=attrs.get("alt", ""),
                            caption=attrs.get("title", ""),
                        )
                    )
            continue

        tag = match.group("tag").lower()
        inner = match.group("inner")
        if tag in _HEADINGS:
            text = visible_text(inner)
            if text:
                blocks.append(_block(blocks, "heading", text=text, level=int(tag[1])))
        elif tag == "p":
            text = visible_text(inner)
            if text:
                blocks.append(_block(blocks, "paragraph", text=text))
        elif tag == "blockquote":
            text = visible_text(inner)
            if text:
                blocks.append(_block(blocks, "quote", text=text))
        elif tag in ("ul", "ol"):
            items = [visible_text(item) for item in _LIST_ITEM.findall(inner)]
            items = [item for item in items if item]
            if items:
                style = "ordered" if tag == "ol" else "unordered"
                blocks.append(_block(blocks, "list", style=style, items=items))
        elif tag in _CONTAINERS:
            _collect_blocks(inner, blocks)
        else:
            text = visible_text(inner)
            if len(text) > _MIN_LOOSE_TEXT:
                blocks.append(_block(blocks, "paragraph", text=text))


def _block(blocks: List[ContentBlock], block_type: str, **data) -> ContentBlock:
    return ContentBlock(id=f"block-{len(blocks) + 1}", type=block_type, data=data)


def body_to_blocks(body_html: str) -> List[ContentBlock]:
    """Convert an item body into ordered content blocks.

    Block ids are positional, so the same body always yields the same blocks.
    """
    blocks: List[ContentBlock] = []
    _collect_blocks(body_html or "", blocks)
    return blocks


def count_words(blocks: List[ContentBlock]) -> int:
    """Words in heading and paragraph blocks."""
    text = " ".join(
        block.data.get("text", "") for block in blocks if block.type in ("heading", "paragraph")
    )
    return len(text.split())


def estimate_read_time(word_count: int) -> int:
    """Reading time in whole minutes, never below one."""
    return max(1, math.ceil(word_count / WORDS_PER_MINUTE))


def build_candidate(
    item: ExtractedItem,
    metadata: IssueMetadata,
    publication_ref: Optional[str] = None,
    source: str = "newsletter",
) -> ArticleCandidate:
    """Article candidate for one extracted item of an issue."""
    if not metadata.issue_id:
        raise ValueError("Issue id is required to derive a source item id")

    blocks = body_to_blocks(item.body_html)
    word_count = count_words(blocks)

    return ArticleCandidate(
        title=item.title,
        slug=slugify(item.title),
        content=[block.model_dump() for block in blocks],
        excerpt=item.summary,
        category=item.category or None,
        category_ref=item.category_id or None,
        source=source,
        source_id=make_source_item_id(metadata.issue_id, item.number),
        source_url=metadata.web_url or None,
        newsletter=metadata.subject_line or metadata.title,
        publication_ref=publication_ref,
        featured_image=item.image_url or None,
        image_source=item.image_source or None,
        external_links=[{"url": link.url, "text": link.text} for link in item.links],
        word_count=word_count,
        read_time=estimate_read_time(word_count),
    )
