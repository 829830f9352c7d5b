"""Local content discovery and file writes.

This module scans the content directory for publishable markdown documents,
parses each one, and provides the atomic write used when the publisher
stores a record URI back into a document.
"""

import fnmatch
import logging
import os
import tempfile
from typing import List, Optional

from .errors import FilesystemError, FrontmatterError
from .frontmatter_handler import FrontmatterHandler
from .models import Document, FrontmatterMapping
from .slug_resolver import SlugResolver

logger = logging.getLogger(__name__)

# Maximum file size to prevent memory exhaustion
MAX_FILE_SIZE = 10 * 1024 * 1024


def matches_ignore_pattern(relative_path: str, patterns: List[str]) -> bool:
    """Check a POSIX relative path against glob-style ignore patterns.

    ``**/`` at the start of a pattern also matches at the top level, so
    ``**/node_modules/**`` excludes ``node_modules/x.md``.
    """
    for pattern in patterns:
        if fnmatch.fnmatchcase(relative_path, pattern):
            return True
        if pattern.startswith("**/") and fnmatch.fnmatchcase(relative_path, pattern[3:]):
            return True
    return False


def read_text(file_path: str) -> str:
    """Read a UTF-8 file without newline translation."""
    try:
        size = os.path.getsize(file_path)
        if size > MAX_FILE_SIZE:
            raise FilesystemError(
                file_path, 'read', f"File size {size} exceeds limit of {MAX_FILE_SIZE} bytes"
            )
        with open(file_path, 'r', encoding='utf-8', newline='') as f:
            return f.read()
    except FilesystemError:
        raise
    except PermissionError:
        raise FilesystemError(file_path, 'read', 'Permission denied')
    except (OSError, UnicodeDecodeError) as e:
        raise FilesystemError(file_path, 'read', str(e))


def write_text_atomic(file_path: str, content: str) -> None:
    """Write a UTF-8 file via a temporary file in the same directory.

    The temporary file is renamed over the target, so readers (and a crash)
    only ever see the old or the new content.

    Raises:
        FilesystemError: If the file cannot be written
    """
    directory = os.path.dirname(os.path.abspath(file_path))
    temp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            'w', encoding='utf-8', newline='', dir=directory,
            prefix='.remanso-', suffix='.tmp', delete=False,
        ) as f:
            temp_path = f.name
            f.write(content)
        os.replace(temp_path, file_path)
    except OSError as e:
        if temp_path and os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError as cleanup_error:
                logger.warning(f"Failed to remove temp file {temp_path}: {cleanup_error}")
        raise FilesystemError(file_path, 'write', str(e))


class ContentScanner:
    """Finds and parses publishable documents under a content directory.

    Files are visited in sorted order so scan order (and therefore publish
    order and first-match link resolution) is stable between runs.

    Example:
        >>> scanner = ContentScanner(file_suffix=".pub.md")
        >>> documents = scanner.scan("/notes")
    """

    def __init__(
        self,
        file_suffix: str = ".md",
        ignore_patterns: Optional[List[str]] = None,
        mapping: Optional[FrontmatterMapping] = None,
        slug_resolver: Optional[SlugResolver] = None,
        frontmatter_handler: Optional[FrontmatterHandler] = None,
    ):
        self.file_suffix = file_suffix
        self.ignore_patterns = ignore_patterns or []
        self.mapping = mapping
        self.slug_resolver = slug_resolver or SlugResolver(
            slug_field=mapping.slug_field if mapping else None
        )
        self.frontmatter_handler = frontmatter_handler or FrontmatterHandler()
        self.skipped: List[str] = []
        self.skipped_relative: List[str] = []

    def scan(self, content_dir: str) -> List[Document]:
        """Scan the directory tree and parse every matching document.

        Documents whose metadata block cannot be parsed are logged and
        skipped; their paths are kept in ``self.skipped`` (as found) and
        ``self.skipped_relative`` (relative to the content directory).

        Raises:
            FilesystemError: If the content directory is missing or unreadable
        """
        if not os.path.isdir(content_dir):
            raise FilesystemError(content_dir, 'scan', 'Content directory does not exist')

        self.skipped = []
        self.skipped_relative = []
        documents: List[Document] = []

        for root, dirs, files in os.walk(content_dir):
            dirs.sort()
            for filename in sorted(files):
                if not filename.endswith(self.file_suffix):
                    continue
                file_path = os.path.join(root, filename)
                relative_path = os.path.relpath(file_path, content_dir).replace(os.sep, "/")
                if matches_ignore_pattern(relative_path, self.ignore_patterns):
                    logger.debug(f"Ignoring {relative_path}")
                    continue

                try:
                    documents.append(self.load_document(file_path, relative_path))
                except (FrontmatterError, FilesystemError) as e:
                    logger.warning(f"Failed to parse {file_path}: {e} - skipping")
                    self.skipped.append(file_path)
                    self.skipped_relative.append(relative_path)

        logger.debug(f"Found {len(documents)} document(s) in {content_dir}")
        return documents

    def skipped_slugs(self) -> List[str]:
        """Slugs of the skipped documents, derived from their paths alone."""
        return [self.slug_resolver.resolve(path) for path in self.skipped_relative]

    def load_document(self, file_path: str, relative_path: str) -> Document:
        """Read and parse one document."""
        raw_content = read_text(file_path)
        parsed = self.frontmatter_handler.parse(raw_content, self.mapping, file_path)
        return Document(
            file_path=os.path.abspath(file_path),
            relative_path=relative_path,
            slug=self.slug_resolver.resolve(relative_path, parsed.raw_frontmatter),
            frontmatter=parsed.frontmatter,
            content=parsed.body,
            raw_content=raw_content,
            raw_frontmatter=parsed.raw_frontmatter,
        )
