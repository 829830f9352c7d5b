"""Secondary note record operations.

Each published document also gets a ``space.remanso.note`` record with the
same record key. The note carries the full markdown body with internal links
pointing at other notes and local images replaced by uploaded blobs.
"""

import logging
import re
from typing import Any, Dict, Optional, Sequence

from ..file_mapper.models import Document
from ..pds_client.api_wrapper import APIWrapper, StrongRef
from ..pds_client.at_uri import NOTE_COLLECTION, AtUri, note_uri_for
from .document_operations import to_iso_datetime
from .image_uploader import ImageUploader
from .link_resolver import LinkResolver

logger = logging.getLogger(__name__)

MAX_NOTE_CONTENT = 10000

TITLE_PATTERN = re.compile(r'^# (.+)$', re.MULTILINE)

# Display settings copied verbatim from the frontmatter when present
STYLE_FIELDS = ("theme", "fontSize", "fontFamily")


def note_title(document: Document) -> str:
    """First level-1 heading of the body, else the frontmatter title."""
    match = TITLE_PATTERN.search(document.content.strip())
    return match.group(1) if match else document.frontmatter.title


class NoteOperations:
    """Builds and writes note records.

    Notes are written with schema validation disabled since the note
    lexicon is not known to every PDS.
    """

    def __init__(
        self,
        api: APIWrapper,
        image_uploader: ImageUploader,
        link_resolver: Optional[LinkResolver] = None,
    ):
        self.api = api
        self.image_uploader = image_uploader
        self.link_resolver = link_resolver or LinkResolver()

    def build_record(self, document: Document, documents: Sequence[Document]) -> Dict[str, Any]:
        """Build the note payload with resolved links and uploaded images."""
        content = self.link_resolver.resolve_internal_links(document.content.strip(), documents)
        content, images = self.image_uploader.process_content(content, document.file_path)
        published_at = to_iso_datetime(document.frontmatter.publish_date)

        record: Dict[str, Any] = {
            "$type": NOTE_COLLECTION,
            "title": note_title(document),
            "content": content[:MAX_NOTE_CONTENT],
            "createdAt": published_at,
            "publishedAt": published_at,
        }
        if images:
            record["images"] = [image.to_record() for image in images]
        for name in STYLE_FIELDS:
            value = document.raw_frontmatter.get(name)
            if value not in (None, ""):
                record[name] = value
        return record

    def create(self, document: Document, document_uri: str,
               documents: Sequence[Document]) -> StrongRef:
        """Create the note paired with a document record."""
        rkey = AtUri.parse(document_uri).rkey
        ref = self.api.create_record(
            NOTE_COLLECTION, self.build_record(document, documents), rkey=rkey, validate=False
        )
        logger.info(f"Created note {ref.uri}")
        return ref

    def update(self, document: Document, document_uri: str,
               documents: Sequence[Document]) -> StrongRef:
        """Create or overwrite the note paired with a document record."""
        ref = self.api.put_record(
            note_uri_for(document_uri), self.build_record(document, documents), validate=False
        )
        logger.info(f"Updated note {ref.uri}")
        return ref

    def delete(self, document_uri: str) -> None:
        self.api.delete_record(note_uri_for(document_uri))
        logger.info(f"Deleted note for {document_uri}")
