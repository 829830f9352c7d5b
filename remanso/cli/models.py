"""Data models for CLI operations.

This module defines all data models used by the CLI module.
All models use dataclasses for clean, type-safe data structures,
following the patterns established in remanso/file_mapper/models.py.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Literal, Optional

from remanso.file_mapper.models import Document


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    - SUCCESS (0): Operation completed successfully
    - GENERAL_ERROR (1): General error (config issues, validation failures)
    - PUBLISH_ERRORS (2): One or more documents failed to publish
    - AUTH_ERROR (3): Authentication failure
    - NETWORK_ERROR (4): PDS unreachable or API errors

    Example:
        >>> exit_code = ExitCode.SUCCESS
        >>> sys.exit(exit_code)
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    PUBLISH_ERRORS = 2
    AUTH_ERROR = 3
    NETWORK_ERROR = 4


@dataclass
class StateEntry:
    """Publish state of one document, stored in .remanso-state.json.

    An entry with an empty content_hash carries no confidence: the document
    is republished whenever it is classified again.

    Attributes:
        content_hash: SHA-256 of the file content at last publish ("" if unknown)
        at_uri: URI of the document record
        last_published: ISO 8601 timestamp of the last publish
        slug: Slug the document was published under
        bsky_post_ref: Optional {uri, cid} of the companion Bluesky post

    Example:
        >>> entry = StateEntry(
        ...     content_hash="9f86d0...",
        ...     at_uri="at://did:plc:abc/site.standard.document/3k2",
        ...     last_published="2024-01-15T10:30:00.000Z",
        ...     slug="blog/hello"
        ... )
    """
    content_hash: str
    at_uri: str
    last_published: str
    slug: str
    bsky_post_ref: Optional[Dict[str, str]] = None


@dataclass
class PublisherState:
    """All state entries, keyed by path relative to the config directory."""
    posts: Dict[str, StateEntry] = field(default_factory=dict)

    def find_by_uri(self, at_uri: str) -> List[str]:
        """Return the keys of every entry carrying at_uri."""
        return [key for key, entry in self.posts.items() if entry.at_uri == at_uri]


Action = Literal["create", "update"]

# Classification reasons
REASON_FORCED = "forced"
REASON_NEW = "new post"
REASON_MISSING_STATE = "missing state"
REASON_CHANGED = "content changed"


@dataclass
class PlanEntry:
    """One document scheduled for publishing in this run.

    Attributes:
        document: The parsed document
        action: "create" for a new record, "update" for an existing one
        reason: Why the document is scheduled (forced, new post, missing
            state, content changed)
        at_uri: Record to update (frontmatter atUri, else the state entry)
    """
    document: Document
    action: Action
    reason: str
    at_uri: Optional[str] = None


@dataclass
class ChangeDetectionResult:
    """Result of classifying scanned documents against the state.

    Attributes:
        to_publish: Documents to create or update, in scan order
        unchanged: Documents whose content hash matches the state
        drafts: Draft documents (never published)
    """
    to_publish: List[PlanEntry] = field(default_factory=list)
    unchanged: List[Document] = field(default_factory=list)
    drafts: List[Document] = field(default_factory=list)


@dataclass
class DeletionInfo:
    """A remote document record pending deletion.

    Attributes:
        at_uri: URI of the document record
        title: Display name (state key or remote title)
        state_key: State key for local deletions (None for orphans)
        origin: "local" when the file was deleted, "orphan" when the record
            has no local counterpart
    """
    at_uri: str
    title: str
    state_key: Optional[str] = None
    origin: Literal["local", "orphan"] = "local"


@dataclass
class PublishedRecord:
    """A document written in the primary pass, queued for its note."""
    document: Document
    action: Action
    at_uri: str


@dataclass
class PublishSummary:
    """Counts of a publish run for display to user.

    Attributes:
        created_count: Documents published for the first time
        updated_count: Documents whose record was rewritten
        deleted_count: Records deleted (local deletions and orphans)
        error_count: Documents that failed in the primary pass
        unchanged_count: Documents skipped as up to date
        draft_count: Draft documents skipped
        note_warning_count: Note writes, link repairs or deletions that failed
        bsky_post_count: Companion Bluesky posts created
        skipped_count: Documents skipped because they could not be parsed
    """
    created_count: int = 0
    updated_count: int = 0
    deleted_count: int = 0
    error_count: int = 0
    unchanged_count: int = 0
    draft_count: int = 0
    note_warning_count: int = 0
    bsky_post_count: int = 0
    skipped_count: int = 0


@dataclass
class SyncSummary:
    """Counts of a state recovery run.

    Attributes:
        matched_count: Local documents matched to a remote record
        verified_count: Matched documents whose content equals the record
        unmatched_count: Remote records with no local document
        frontmatter_updated_count: Files whose atUri field was rewritten
    """
    matched_count: int = 0
    verified_count: int = 0
    unmatched_count: int = 0
    frontmatter_updated_count: int = 0
