"""Slug derivation for local documents.

A slug is the lowercase, dash-separated path of a document relative to the
content directory, without the markdown extension. It names the document's
remote path and is what internal links are matched against.
"""

import re
from typing import Any, Dict, Optional

MARKDOWN_EXTENSION = re.compile(r'\.mdx?$', re.IGNORECASE)
INDEX_SUFFIX = re.compile(r'/_?index$')
DATE_PREFIX = re.compile(r'^\d{4}-\d{2}-\d{2}-')


class SlugResolver:
    """Converts document paths to slugs.

    Conversion rules:
    - ``.md`` / ``.mdx`` extension removed
    - Lowercased, spaces replaced by dashes
    - Optional: trailing ``/index`` or ``/_index`` removed
    - Optional: ``YYYY-MM-DD-`` prefix removed from every path segment
    - A slug field in the frontmatter overrides the path entirely

    Examples:
        - "My Post.md" -> "my-post"
        - "blog/2024-01-15-my-post/index.md" -> "blog/my-post"
          (with remove_index and strip_date_prefix)
    """

    def __init__(
        self,
        slug_field: Optional[str] = None,
        remove_index: bool = False,
        strip_date_prefix: bool = False,
    ):
        self.slug_field = slug_field
        self.remove_index = remove_index
        self.strip_date_prefix = strip_date_prefix

    @staticmethod
    def from_filename(filename: str) -> str:
        """Convert a file name to a slug.

        Examples:
            >>> SlugResolver.from_filename("My-Post.md")
            'my-post'
            >>> SlugResolver.from_filename("my cool post.mdx")
            'my-cool-post'
        """
        return MARKDOWN_EXTENSION.sub("", filename).lower().replace(" ", "-")

    def resolve(self, relative_path: str, raw_frontmatter: Optional[Dict[str, Any]] = None) -> str:
        """Derive the slug of a document.

        Args:
            relative_path: Path relative to the content directory
            raw_frontmatter: Raw metadata fields (checked for the slug field)

        Returns:
            Slug string without leading or trailing slashes
        """
        if self.slug_field and raw_frontmatter:
            override = raw_frontmatter.get(self.slug_field)
            if isinstance(override, str) and override.strip("/"):
                return override.strip("/")

        slug = self.from_filename(relative_path.replace("\\", "/"))

        if self.remove_index:
            slug = INDEX_SUFFIX.sub("", slug)

        if self.strip_date_prefix:
            slug = "/".join(DATE_PREFIX.sub("", segment) for segment in slug.split("/"))

        return slug
