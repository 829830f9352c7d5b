"""Deletion handling for publishing.

This module finds remote document records that should no longer exist and
deletes them:
- Local deletions: state entries whose file is gone from disk
- Orphans: records of the publication whose path matches no local document

Deletions are executed without confirmation prompts (use --dry-run to
preview). Each record is deleted once, together with its note.
"""

import logging
import os
from typing import Any, Dict, Iterable, List, Optional, Set

from remanso.file_mapper.models import Document
from remanso.pds_client.errors import PDSError
from remanso.record_operations.document_operations import DocumentOperations
from remanso.record_operations.note_operations import NoteOperations

from .models import DeletionInfo, PublisherState

logger = logging.getLogger(__name__)


class DeletionHandler:
    """Detects and executes remote deletions.

    Errors are logged and processing continues with the remaining records.

    Example:
        >>> handler = DeletionHandler(config_dir, document_ops, note_ops)
        >>> deletions = handler.detect_local_deletions(state, scanned_keys)
        >>> deleted = handler.delete_records(deletions, state)
    """

    def __init__(
        self,
        config_dir: str,
        document_operations: Optional[DocumentOperations] = None,
        note_operations: Optional[NoteOperations] = None,
    ):
        self.config_dir = config_dir
        self.document_operations = document_operations
        self.note_operations = note_operations
        self.failed: List[DeletionInfo] = []

    def detect_local_deletions(
        self,
        state: PublisherState,
        scanned_keys: Set[str],
    ) -> List[DeletionInfo]:
        """Find state entries whose document was deleted from disk.

        An entry that is merely missing from the scan (excluded by a changed
        ignore pattern or file suffix) is kept as long as its file exists.

        Args:
            state: Loaded state
            scanned_keys: State keys of every scanned document (drafts included)

        Returns:
            DeletionInfo list in state order
        """
        deletions = []
        for key, entry in state.posts.items():
            if key in scanned_keys or not entry.at_uri:
                continue
            if os.path.exists(os.path.join(self.config_dir, key)):
                logger.debug(f"{key} is not scanned but still exists, keeping its record")
                continue
            deletions.append(DeletionInfo(at_uri=entry.at_uri, title=key, state_key=key, origin="local"))

        logger.info(f"Detected {len(deletions)} locally deleted document(s)")
        return deletions

    def protected_uris(self, state: PublisherState) -> Set[str]:
        """URIs of state entries whose file is still on disk."""
        return {
            entry.at_uri for key, entry in state.posts.items()
            if entry.at_uri and os.path.exists(os.path.join(self.config_dir, key))
        }

    def detect_orphans(
        self,
        remote_records: Iterable[Dict[str, Any]],
        documents: List[Document],
        path_prefix: str,
        pending_uris: Set[str],
        skipped_slugs: Iterable[str] = (),
        protected_uris: Iterable[str] = (),
    ) -> List[DeletionInfo]:
        """Find remote records with no matching local document.

        A record matches when its ``path`` equals ``{path_prefix}/{slug}`` of
        any scanned document or of a document skipped as unparseable. A
        record whose URI is protected is never an orphan.

        Args:
            remote_records: Listed document records of the publication
            documents: Scanned documents (drafts included)
            path_prefix: Configured remote path prefix
            pending_uris: URIs already scheduled for deletion
            skipped_slugs: Slugs of documents that exist but failed to parse
            protected_uris: URIs of state entries whose file still exists

        Returns:
            DeletionInfo list in listing order
        """
        local_paths = {f"{path_prefix}/{document.slug}" for document in documents}
        local_paths.update(f"{path_prefix}/{slug}" for slug in skipped_slugs)
        protected = set(protected_uris)
        orphans = []
        seen: Set[str] = set()
        for record in remote_records:
            uri = record.get("uri", "")
            value = record.get("value", {})
            remote_path = value.get("path")
            if (remote_path in local_paths or uri in pending_uris
                    or uri in protected or uri in seen):
                continue
            seen.add(uri)
            orphans.append(DeletionInfo(
                at_uri=uri,
                title=value.get("title") or remote_path or uri,
                origin="orphan",
            ))

        logger.info(f"Detected {len(orphans)} orphaned remote record(s)")
        return orphans

    def delete_records(
        self,
        deletions: List[DeletionInfo],
        state: PublisherState,
        dryrun: bool = False,
    ) -> List[str]:
        """Delete records, their notes and their state entries.

        Each URI is deleted at most once. Note deletion is best-effort (the
        note may never have been created). A failed record deletion keeps
        its state entry so the next run retries it.

        Args:
            deletions: Local deletions followed by orphans
            state: State to remove entries from (mutated in place)
            dryrun: If True, log deletions without executing

        Returns:
            URIs successfully deleted (empty list in dryrun mode)
        """
        logger.info(f"Processing {len(deletions)} record deletion(s) (dryrun={dryrun})")
        self.failed = []
        deleted: List[str] = []
        handled: Set[str] = set()

        for deletion in deletions:
            if deletion.at_uri in handled:
                continue
            handled.add(deletion.at_uri)

            if dryrun:
                logger.info(f"[DRYRUN] Would delete: {deletion.at_uri} ({deletion.title})")
                continue

            try:
                self.document_operations.delete(deletion.at_uri)
            except PDSError as e:
                logger.warning(f"Failed to delete {deletion.at_uri} ({deletion.title}): {e}")
                self.failed.append(deletion)
                continue

            try:
                self.note_operations.delete(deletion.at_uri)
            except PDSError as e:
                logger.debug(f"Note for {deletion.at_uri} not deleted: {e}")

            keys = [deletion.state_key] if deletion.state_key else []
            keys.extend(key for key in state.find_by_uri(deletion.at_uri) if key not in keys)
            for key in keys:
                state.posts.pop(key, None)

            deleted.append(deletion.at_uri)

        if not dryrun:
            logger.info(
                f"Record deletion complete: {len(deleted)} deleted, {len(self.failed)} failed"
            )
        return deleted
