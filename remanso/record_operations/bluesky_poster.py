"""Companion Bluesky posts for newly published documents."""

import logging
from datetime import datetime, timedelta, UTC
from typing import Any, Dict, Optional

from ..file_mapper.models import BlueskyConfig, Document
from ..pds_client.api_wrapper import APIWrapper, StrongRef
from ..pds_client.at_uri import BSKY_POST_COLLECTION

logger = logging.getLogger(__name__)

MAX_POST_LENGTH = 300

EXTERNAL_EMBED_TYPE = "app.bsky.embed.external"


class BlueskyPoster:
    """Announces documents with an ``app.bsky.feed.post`` link card.

    A post is only made for recent documents (within ``max_age_days`` of
    their publish date) that have not been announced before.
    """

    def __init__(self, api: APIWrapper, config: BlueskyConfig, site_url: Optional[str] = None):
        self.api = api
        self.config = config
        self.site_url = (site_url or "").rstrip("/")

    def should_post(self, document: Document, existing_ref: Optional[Dict[str, str]] = None) -> bool:
        """Return True if a post should be made for this document."""
        if not self.config.enabled or existing_ref:
            return False
        try:
            published = datetime.fromisoformat(document.frontmatter.publish_date.strip())
        except ValueError:
            logger.debug(f"Unparseable publish date for {document.relative_path}")
            return False
        if published.tzinfo is None:
            published = published.replace(tzinfo=UTC)
        cutoff = datetime.now(UTC) - timedelta(days=self.config.max_age_days)
        if published < cutoff:
            logger.info(
                f"{document.relative_path} is older than {self.config.max_age_days} days, "
                f"skipping Bluesky post"
            )
            return False
        return True

    def build_post(self, document: Document, path: str,
                   thumb: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Build the post record with an external link embed."""
        canonical_url = f"{self.site_url}{path}"
        frontmatter = document.frontmatter

        text = frontmatter.title
        if frontmatter.description:
            text = f"{text}\n\n{frontmatter.description}"
        if len(text) > MAX_POST_LENGTH:
            text = text[:MAX_POST_LENGTH - 3].rstrip() + "..."

        external: Dict[str, Any] = {
            "uri": canonical_url,
            "title": frontmatter.title,
            "description": frontmatter.description or "",
        }
        if thumb:
            external["thumb"] = thumb

        return {
            "$type": BSKY_POST_COLLECTION,
            "text": text,
            "createdAt": datetime.now(UTC).strftime('%Y-%m-%dT%H:%M:%S.000Z'),
            "embed": {"$type": EXTERNAL_EMBED_TYPE, "external": external},
        }

    def post(self, document: Document, document_uri: str, path: str,
             thumb: Optional[Dict[str, Any]] = None) -> StrongRef:
        """Create the post and attach its reference to the document record.

        Returns:
            StrongRef of the new post
        """
        ref = self.api.create_record(BSKY_POST_COLLECTION, self.build_post(document, path, thumb))
        logger.info(f"Created Bluesky post {ref.uri}")

        current = self.api.get_record(document_uri)
        record = dict(current.get("value", {}))
        record["bskyPostRef"] = {"uri": ref.uri, "cid": ref.cid}
        self.api.put_record(document_uri, record)
        return ref
