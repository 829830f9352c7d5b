"""Change detection for publishing.

This module classifies scanned documents against the persisted state. A
document is published when it is new, when its state entry is missing, or
when the SHA-256 of its raw content differs from the stored hash. Drafts are
never published.
"""

import logging
from typing import List, Optional

from remanso.file_mapper.content_hasher import ContentHasher
from remanso.file_mapper.models import Document

from .config import StateManager
from .models import (
    REASON_CHANGED,
    REASON_FORCED,
    REASON_MISSING_STATE,
    REASON_NEW,
    ChangeDetectionResult,
    PlanEntry,
    PublisherState,
)

logger = logging.getLogger(__name__)


class ChangeDetector:
    """Hash-based change detector.

    A scheduled document that already carries an atUri (in its frontmatter,
    or failing that in its state entry) is updated in place; otherwise a
    new record is created. A lost state file therefore never leads to
    duplicate records.

    Example:
        >>> detector = ChangeDetector(config_dir="/notes")
        >>> result = detector.detect_changes(documents, state)
        >>> print(f"To publish: {len(result.to_publish)}")
    """

    def __init__(self, config_dir: str, hasher: Optional[ContentHasher] = None):
        self.config_dir = config_dir
        self.hasher = hasher or ContentHasher()

    def detect_changes(
        self,
        documents: List[Document],
        state: PublisherState,
        force: bool = False,
    ) -> ChangeDetectionResult:
        """Classify every scanned document.

        Args:
            documents: Scanned documents in scan order
            state: Loaded state
            force: Schedule every non-draft document

        Returns:
            ChangeDetectionResult with plan entries in scan order
        """
        result = ChangeDetectionResult()

        for document in documents:
            if document.frontmatter.draft:
                result.drafts.append(document)
                continue

            key = StateManager.state_key(self.config_dir, document.file_path)
            entry = state.posts.get(key)
            at_uri = document.frontmatter.at_uri or (entry.at_uri if entry else None)
            action = "update" if at_uri else "create"

            if force:
                reason = REASON_FORCED
            elif entry is None:
                reason = REASON_MISSING_STATE if document.frontmatter.at_uri else REASON_NEW
            elif entry.content_hash != self.hasher.hash(document.raw_content):
                reason = REASON_CHANGED
            else:
                result.unchanged.append(document)
                continue

            logger.debug(f"{key}: {action} ({reason})")
            result.to_publish.append(
                PlanEntry(document=document, action=action, reason=reason, at_uri=at_uri)
            )

        logger.info(
            f"Change detection: {len(result.to_publish)} to publish, "
            f"{len(result.unchanged)} unchanged, {len(result.drafts)} draft(s)"
        )
        return result
