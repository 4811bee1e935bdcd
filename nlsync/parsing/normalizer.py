"""Markup normalization for provider-generated newsletter HTML.

The provider ships issue bodies that went through one or more rounds of JSON
escaping, so attribute values arrive as ``class=\\"image\\"`` or
``src=\\&quot;https:\\/\\/...\\&quot;`` and text is double entity-encoded.
``normalize_markup`` removes those artifacts and decodes entities, repeating
until the text stops changing. Every rewrite shortens the string, so the loop
terminates, and the result is a fixed point: normalizing it again is a no-op.
"""

import html
import re
from typing import Optional

_ESCAPED_QUOT_ENTITY = re.compile(r"\\+&quot;")
_ESCAPED_QUOTE = re.compile(r'\\+"')
_ESCAPED_SLASH = re.compile(r"\\+/")
_DOUBLE_BACKSLASH = re.compile(r"\\\\")
_DIRTY_ATTRIBUTE = re.compile(r'(\s[\w:-]+=")([^"<>]*?(?:\\|&quot;)[^"<>]*)(")')

_TAG = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")


def _clean_attribute(match: re.Match) -> str:
    value = match.group(2).replace("&quot;", "").replace("\\", "")
    return f"{match.group(1)}{value}{match.group(3)}"


def _normalize_once(text: str) -> str:
    text = _ESCAPED_QUOT_ENTITY.sub("", text)
    text = _ESCAPED_QUOTE.sub('"', text)
    text = _ESCAPED_SLASH.sub("/", text)
    text = _DIRTY_ATTRIBUTE.sub(_clean_attribute, text)
    text = _DOUBLE_BACKSLASH.sub(r"\\", text)
    return html.unescape(text)


def normalize_markup(value: Optional[str]) -> str:
    """Decode entities and strip provider escaping artifacts.

    Pure and idempotent; ``None`` and empty input yield ``""``.
    """
    if not value:
        return ""

    current = str(value)
    while True:
        cleaned = _normalize_once(current)
        if cleaned == current:
            return cleaned
        current = cleaned


def strip_tags(markup: Optional[str]) -> str:
    """Remove every markup tag, keeping text as-is."""
    if not markup:
        return ""
    return _TAG.sub("", markup)


def visible_text(markup: Optional[str]) -> str:
    """Tag-free text with whitespace collapsed."""
    return _WHITESPACE.sub(" ", strip_tags(markup)).strip()
