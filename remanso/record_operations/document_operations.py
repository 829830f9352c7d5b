"""Primary document record operations.

Every published document is one ``site.standard.document`` record in the
account's repository, tied to the publication through its ``site`` field.
"""

import logging
from datetime import datetime, UTC
from typing import Any, Dict, Iterator, Optional

from ..file_mapper.models import Document, PublisherConfig
from ..pds_client.api_wrapper import APIWrapper, StrongRef
from ..pds_client.at_uri import DOCUMENT_COLLECTION
from .image_uploader import ImageUploader
from .text_extractor import text_content

logger = logging.getLogger(__name__)


def to_iso_datetime(value: str) -> str:
    """Convert a frontmatter date to an RFC 3339 UTC timestamp.

    Examples:
        >>> to_iso_datetime("2024-01-15")
        '2024-01-15T00:00:00.000Z'
    """
    try:
        parsed = datetime.fromisoformat(value.strip())
    except (ValueError, AttributeError):
        logger.warning(f"Unparseable publish date '{value}', using current time")
        parsed = datetime.now(UTC)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    parsed = parsed.astimezone(UTC)
    return parsed.strftime('%Y-%m-%dT%H:%M:%S.') + f"{parsed.microsecond // 1000:03d}Z"


def document_path(config: PublisherConfig, slug: str) -> str:
    """Remote path of a document: ``{path_prefix}/{slug}``."""
    return f"{config.path_prefix}/{slug}"


class DocumentOperations:
    """Builds and writes document records.

    Example:
        >>> ops = DocumentOperations(api, config)
        >>> ref = ops.create(document)
        >>> ops.update(document, ref.uri)
    """

    def __init__(self, api: APIWrapper, config: PublisherConfig,
                 image_uploader: Optional[ImageUploader] = None):
        self.api = api
        self.config = config
        self.image_uploader = image_uploader or ImageUploader(
            api, config.content_path, config.images_path
        )

    def build_record(
        self,
        document: Document,
        cover_image: Optional[Dict[str, Any]] = None,
        bsky_post_ref: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """Build the record payload for a document."""
        frontmatter = document.frontmatter
        record: Dict[str, Any] = {
            "$type": DOCUMENT_COLLECTION,
            "site": self.config.publication_uri,
            "title": frontmatter.title,
            "path": document_path(self.config, document.slug),
            "publishedAt": to_iso_datetime(frontmatter.publish_date),
            "textContent": text_content(
                document.content,
                document.raw_frontmatter,
                self.config.frontmatter.text_content_field,
            ),
        }
        if frontmatter.description:
            record["description"] = frontmatter.description
        if frontmatter.tags:
            record["tags"] = list(frontmatter.tags)
        if cover_image:
            record["coverImage"] = cover_image
        if bsky_post_ref:
            record["bskyPostRef"] = dict(bsky_post_ref)
        return record

    def upload_cover_image(self, document: Document) -> Optional[Dict[str, Any]]:
        """Upload the document's cover image, if it has one.

        A missing image file is logged as a warning and never fails the
        publish.
        """
        cover = document.frontmatter.cover_image
        if not cover:
            return None
        blob = self.image_uploader.upload(cover, document.file_path)
        if blob is None:
            logger.warning(f"Cover image not found: {cover} ({document.relative_path})")
        return blob

    def create(self, document: Document, cover_image: Optional[Dict[str, Any]] = None) -> StrongRef:
        """Create the document record and return its reference."""
        ref = self.api.create_record(DOCUMENT_COLLECTION, self.build_record(document, cover_image))
        logger.info(f"Created document record {ref.uri} for {document.relative_path}")
        return ref

    def update(
        self,
        document: Document,
        at_uri: str,
        cover_image: Optional[Dict[str, Any]] = None,
        bsky_post_ref: Optional[Dict[str, str]] = None,
    ) -> StrongRef:
        """Overwrite the document record named by at_uri."""
        ref = self.api.put_record(at_uri, self.build_record(document, cover_image, bsky_post_ref))
        logger.info(f"Updated document record {at_uri} for {document.relative_path}")
        return ref

    def delete(self, at_uri: str) -> None:
        self.api.delete_record(at_uri)
        logger.info(f"Deleted document record {at_uri}")

    def list_documents(self) -> Iterator[Dict[str, Any]]:
        """Iterate over the account's document records of this publication."""
        for record in self.api.list_records(self.api.did, DOCUMENT_COLLECTION):
            value = record.get("value", {})
            if value.get("site") == self.config.publication_uri:
                yield record
