"""Plain-text extraction from markdown for document records."""

import re
from typing import Any, Dict, Optional

MAX_TEXT_CONTENT = 10000

_SUBSTITUTIONS = [
    (re.compile(r'```[\s\S]*?```'), ''),
    (re.compile(r'`([^`]+)`'), r'\1'),
    (re.compile(r'!\[([^\]]*)\]\([^)]+\)'), r'\1'),
    (re.compile(r'\[([^\]]+)\]\([^)]+\)'), r'\1'),
    (re.compile(r'^#{1,6}\s+', re.MULTILINE), ''),
    (re.compile(r'\*\*([^*]+)\*\*'), r'\1'),
    (re.compile(r'__([^_]+)__'), r'\1'),
    (re.compile(r'\*([^*\n]+)\*'), r'\1'),
    (re.compile(r'(?<!\w)_([^_\n]+)_(?!\w)'), r'\1'),
    (re.compile(r'^>\s?', re.MULTILINE), ''),
    (re.compile(r'\n{3,}'), '\n\n'),
]


def strip_markdown(markdown: str) -> str:
    """Remove markdown syntax, keeping the readable text.

    Code blocks are dropped entirely; inline code, link and image text are
    kept without their markup.

    Examples:
        >>> strip_markdown("## Hello **world**")
        'Hello world'
        >>> strip_markdown("[click here](https://example.com)")
        'click here'
    """
    text = markdown
    for pattern, replacement in _SUBSTITUTIONS:
        text = pattern.sub(replacement, text)
    return text.strip()


def text_content(
    markdown: str,
    raw_frontmatter: Optional[Dict[str, Any]] = None,
    field: Optional[str] = None,
) -> str:
    """Plain text of a document, truncated to the record limit.

    When ``field`` names a non-empty string in the raw metadata, that text
    is used as written instead of the stripped body.

    Examples:
        >>> text_content("# Body", {"excerpt": "Short"}, "excerpt")
        'Short'
        >>> text_content("# Body", {}, "excerpt")
        'Body'
    """
    if field and raw_frontmatter:
        value = raw_frontmatter.get(field)
        if isinstance(value, str) and value.strip():
            return value.strip()[:MAX_TEXT_CONTENT]
    return strip_markdown(markdown)[:MAX_TEXT_CONTENT]
