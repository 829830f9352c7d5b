"""File mapper library for the publisher.

This package covers the local side of publishing: discovering markdown
documents, parsing their metadata blocks, deriving slugs, fingerprinting
content and loading the project configuration.
"""

from .models import (
    Document,
    Frontmatter,
    FrontmatterMapping,
    ParsedDocument,
    PublisherConfig,
    BlueskyConfig,
)
from .errors import (
    FileMapperError,
    FilesystemError,
    ConfigError,
    FrontmatterError,
)
from .config_loader import ConfigLoader
from .content_hasher import ContentHasher
from .content_scanner import ContentScanner, write_text_atomic
from .frontmatter_handler import FrontmatterHandler, DEFAULT_FIELD_NAMES, DELIMITERS
from .slug_resolver import SlugResolver

__all__ = [
    'Document',
    'Frontmatter',
    'FrontmatterMapping',
    'ParsedDocument',
    'PublisherConfig',
    'BlueskyConfig',
    'FileMapperError',
    'FilesystemError',
    'ConfigError',
    'FrontmatterError',
    'ConfigLoader',
    'ContentHasher',
    'ContentScanner',
    'write_text_atomic',
    'FrontmatterHandler',
    'DEFAULT_FIELD_NAMES',
    'DELIMITERS',
    'SlugResolver',
]
