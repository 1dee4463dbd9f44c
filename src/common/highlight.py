"""Text highlighting for search results."""

import re
from typing import Optional

from markupsafe import Markup, escape

MARK_STYLE = (
    "background: #ffeb3b; color: #000; padding: 2px 4px; "
    "border-radius: 3px; font-weight: bold;"
)
MARK_TEMPLATE = Markup('<mark style="{style}">{text}</mark>')


def escape_html(text: Optional[str]) -> str:
    """Escape HTML special characters. None becomes an empty string."""
    if not text:
        return ""
    return str(escape(text))


def highlight_matches(text: Optional[str], query: Optional[str]) -> str:
    """
    Return HTML-safe text with every case-insensitive occurrence of the query
    wrapped in a <mark> span.

    The output is always escaped, even without a match. Calling this on its
    own output escapes the previous markup again; callers must highlight a
    given text at most once per query.

    Args:
        text: Text to highlight
        query: Literal search term (regex metacharacters have no effect)

    Returns:
        Escaped markup, matched substrings keep their original casing
    """
    if not text:
        return ""
    if not query:
        return escape_html(text)

    pattern = re.compile(re.escape(query), re.IGNORECASE)

    # Match on the raw text and escape each piece, so a query never matches
    # inside an entity produced by escaping.
    parts = []
    cursor = 0
    for match in pattern.finditer(text):
        parts.append(escape(text[cursor:match.start()]))
        parts.append(MARK_TEMPLATE.format(style=MARK_STYLE, text=match.group(0)))
        cursor = match.end()
    parts.append(escape(text[cursor:]))

    return str(Markup("").join(parts))
