"""Free-text sanitization: strip markup and executable content before any use."""

from __future__ import annotations

import html
import re

import bleach

_EXECUTABLE_BLOCKS = re.compile(
    r"<(script|style|iframe|object|embed)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL
)


def _clean_once(value: str) -> str:
    stripped = _EXECUTABLE_BLOCKS.sub("", value)
    return bleach.clean(stripped, tags=set(), attributes={}, strip=True, strip_comments=True)


def sanitize_text(text: str | None) -> str:
    """Return plain text with all tags and script/style bodies removed."""
    if not text:
        return ""
    value = str(text)
    seen: set[str] = set()
    # Unescaping can surface new markup (&lt;script&gt;), so clean until stable
    while value not in seen:
        seen.add(value)
        unescaped = html.unescape(_clean_once(value))
        if unescaped == value:
            return value.strip()
        value = unescaped
    # Cycled without settling: keep the escaped form
    return _clean_once(value).strip()


def sanitize_optional(text: str | None) -> str | None:
    cleaned = sanitize_text(text)
    return cleaned or None
