"""Root pytest configuration for all tests.

This conftest applies to all test types (unit, integration).
"""

import logging
from typing import Optional

import pytest

from remanso.file_mapper.models import Document, Frontmatter

# urllib3 logs every retry at WARNING; keep test output readable
logging.getLogger("urllib3").setLevel(logging.ERROR)


@pytest.fixture
def make_document():
    """Factory for in-memory Document objects.

    Example:
        >>> doc = make_document("blog/hello", at_uri="at://did:plc:abc/site.standard.document/k1")
    """
    def _make(
        slug: str,
        content: str = "",
        title: Optional[str] = None,
        at_uri: Optional[str] = None,
        draft: bool = False,
        file_path: Optional[str] = None,
        **frontmatter_fields,
    ) -> Document:
        relative_path = f"{slug}.pub.md"
        return Document(
            file_path=file_path or f"/notes/content/{relative_path}",
            relative_path=relative_path,
            slug=slug,
            frontmatter=Frontmatter(
                title=title if title is not None else slug.rsplit("/", 1)[-1].title(),
                publish_date="2024-01-15",
                draft=draft,
                at_uri=at_uri,
                **frontmatter_fields,
            ),
            content=content,
            raw_content=content,
        )
    return _make
