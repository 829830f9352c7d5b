"""Remote record building for published documents.

This package turns parsed documents into the records written to the PDS:
the primary document record, the note record that shares its key, and the
optional Bluesky announcement. It also owns internal link resolution.
"""

from .bluesky_poster import BlueskyPoster
from .document_operations import DocumentOperations, document_path, to_iso_datetime
from .image_uploader import ImageRef, ImageUploader
from .link_resolver import LinkResolver, is_local_target, normalize_target
from .note_operations import NoteOperations, note_title
from .text_extractor import strip_markdown, text_content

__all__ = [
    'BlueskyPoster',
    'DocumentOperations',
    'document_path',
    'to_iso_datetime',
    'ImageRef',
    'ImageUploader',
    'LinkResolver',
    'is_local_target',
    'normalize_target',
    'NoteOperations',
    'note_title',
    'strip_markdown',
    'text_content',
]
