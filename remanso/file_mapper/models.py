"""Data models for file mapper.

This module defines all data models used by the file mapper library.
All models use dataclasses for clean, type-safe data structures.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

DEFAULT_IGNORE = ["**/node_modules/**", ".*/**", "_*/**"]


@dataclass
class Frontmatter:
    """Normalized metadata of a document.

    Attributes:
        title: Document title (empty string if none could be derived)
        publish_date: ISO date string (defaults to today when absent)
        description: Optional description
        cover_image: Optional path of the cover image
        tags: Optional ordered list of tags
        draft: Draft documents are never published
        at_uri: Record URI written by a previous publish
    """
    title: str
    publish_date: str
    description: Optional[str] = None
    cover_image: Optional[str] = None
    tags: Optional[List[str]] = None
    draft: bool = False
    at_uri: Optional[str] = None


@dataclass
class FrontmatterMapping:
    """Maps canonical field names to the field names used in the documents.

    A mapped name is only used when the document actually carries it;
    otherwise the built-in default names apply.

    Example:
        >>> mapping = FrontmatterMapping(title="nombre", publish_date="fecha")
    """
    title: Optional[str] = None
    description: Optional[str] = None
    publish_date: Optional[str] = None
    cover_image: Optional[str] = None
    tags: Optional[str] = None
    draft: Optional[str] = None
    slug_field: Optional[str] = None
    text_content_field: Optional[str] = None

    def get(self, canonical: str) -> Optional[str]:
        return getattr(self, canonical, None)


@dataclass
class ParsedDocument:
    """Result of parsing raw document text.

    Attributes:
        frontmatter: Normalized metadata
        body: Text after the metadata block (whole text if there is none)
        raw_frontmatter: Every field of the block before mapping/defaulting
        delimiter: Marker of the metadata block (None when absent)
    """
    frontmatter: Frontmatter
    body: str
    raw_frontmatter: Dict[str, Any] = field(default_factory=dict)
    delimiter: Optional[str] = None


@dataclass
class Document:
    """One local content file.

    Attributes:
        file_path: Absolute path of the file
        relative_path: POSIX path relative to the content directory
        slug: Canonical slug used for remote paths and link matching
        frontmatter: Normalized metadata
        content: Body text
        raw_content: Full file text (metadata block + body, unmodified)
        raw_frontmatter: Raw metadata fields
    """
    file_path: str
    relative_path: str
    slug: str
    frontmatter: Frontmatter
    content: str
    raw_content: str
    raw_frontmatter: Dict[str, Any] = field(default_factory=dict)


@dataclass
class BlueskyConfig:
    """Companion Bluesky post settings."""
    enabled: bool = False
    max_age_days: int = 7


@dataclass
class PublisherConfig:
    """Project configuration loaded from remanso.yaml.

    Attributes:
        content_dir: Directory scanned for documents (relative to config dir)
        publication_uri: at:// URI of the publication record
        config_dir: Directory containing the config file (set by the loader)
        images_dir: Optional directory searched for images
        pds_url: Optional PDS URL (overrides ATP_PDS_URL)
        identity: Optional account identifier (overrides ATP_IDENTIFIER)
        site_url: Optional base URL of the published site
        ignore: Glob patterns excluded from the scan
        file_suffix: Only files ending with this suffix are published
        path_prefix: Prefix of the remote path of every document
        remove_index_from_slug: Strip trailing /index from slugs
        strip_date_prefix: Strip YYYY-MM-DD- prefixes from slug segments
        frontmatter: Field name mapping
        bluesky: Companion post settings
    """
    content_dir: str
    publication_uri: str
    config_dir: str = "."
    images_dir: Optional[str] = None
    pds_url: Optional[str] = None
    identity: Optional[str] = None
    site_url: Optional[str] = None
    ignore: List[str] = field(default_factory=lambda: list(DEFAULT_IGNORE))
    file_suffix: str = ".pub.md"
    path_prefix: str = "/posts"
    remove_index_from_slug: bool = False
    strip_date_prefix: bool = False
    frontmatter: FrontmatterMapping = field(default_factory=FrontmatterMapping)
    bluesky: BlueskyConfig = field(default_factory=BlueskyConfig)

    def resolve(self, path: str) -> str:
        """Resolve a config-relative path against the config directory."""
        if os.path.isabs(path):
            return path
        return os.path.normpath(os.path.join(self.config_dir, path))

    @property
    def content_path(self) -> str:
        return self.resolve(self.content_dir)

    @property
    def images_path(self) -> Optional[str]:
        return self.resolve(self.images_dir) if self.images_dir else None


# Canonical field -> ordered default source names
FieldNameTable = Dict[str, Tuple[str, ...]]
