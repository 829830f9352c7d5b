"""State recovery command.

Rebuilds ``.remanso-state.json`` from the records already on the PDS, for
example after cloning the content repository on a new machine. Each remote
document is matched to a local document by its path. A matched document gets
a state entry carrying the record URI; its content hash is only recorded when
the remote record still equals what the local document would produce, so
anything that changed since the last publish is republished next time.
"""

import logging
from typing import Any, Dict, List, Optional

from remanso.file_mapper.content_hasher import ContentHasher
from remanso.file_mapper.content_scanner import write_text_atomic
from remanso.file_mapper.errors import ConfigError, FileMapperError, FilesystemError
from remanso.file_mapper.frontmatter_handler import AT_URI_FIELD, FrontmatterHandler
from remanso.file_mapper.models import Document, PublisherConfig
from remanso.pds_client.api_wrapper import APIWrapper
from remanso.pds_client.at_uri import note_uri_for
from remanso.pds_client.auth import Authenticator
from remanso.pds_client.errors import (
    APIAccessError,
    APIUnreachableError,
    InvalidCredentialsError,
    RecordNotFoundError,
)
from remanso.record_operations.document_operations import DocumentOperations, document_path
from remanso.record_operations.note_operations import STYLE_FIELDS
from remanso.record_operations.text_extractor import MAX_TEXT_CONTENT

from .config import StateManager
from .errors import CLIError, ConfigNotFoundError
from .models import ExitCode, StateEntry, SyncSummary
from .output import OutputHandler
from .publish_command import build_scanner, load_config, utc_timestamp

logger = logging.getLogger(__name__)

# Document record fields compared against the local document
COMPARED_FIELDS = ("title", "description", "tags")


class SyncCommand:
    """Recovers publish state from the PDS.

    Example:
        >>> sync_cmd = SyncCommand(output_handler=OutputHandler(verbosity=1))
        >>> exit_code = sync_cmd.run(update_frontmatter=True)
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        output_handler: Optional[OutputHandler] = None,
        authenticator: Optional[Authenticator] = None,
        api: Optional[APIWrapper] = None,
        frontmatter_handler: Optional[FrontmatterHandler] = None,
    ):
        self.config_path = config_path
        self.output_handler = output_handler or OutputHandler()
        self.authenticator = authenticator
        self.api = api
        self.frontmatter_handler = frontmatter_handler or FrontmatterHandler()
        self.hasher = ContentHasher()

    def run(self, update_frontmatter: bool = False, dry_run: bool = False) -> ExitCode:
        """Execute state recovery.

        Args:
            update_frontmatter: Write the matched record URI into each local
                file whose atUri field is missing or different
            dry_run: Report matches without writing files or state

        Returns:
            ExitCode indicating success or specific failure type
        """
        try:
            config = load_config(self.config_path)
            return self._sync(config, update_frontmatter, dry_run)

        except InvalidCredentialsError as e:
            logger.error(f"Authentication failed: {e}")
            self.output_handler.error(f"Authentication failed: {e}")
            self.output_handler.info(
                "Check ATP_IDENTIFIER and ATP_APP_PASSWORD environment variables"
            )
            return ExitCode.AUTH_ERROR

        except (APIUnreachableError, APIAccessError) as e:
            logger.error(f"API error: {e}")
            self.output_handler.error(f"API error: {e}")
            return ExitCode.NETWORK_ERROR

        except (ConfigError, ConfigNotFoundError, FilesystemError) as e:
            logger.error(f"Configuration error: {e}")
            self.output_handler.error(f"Configuration error: {e}")
            return ExitCode.GENERAL_ERROR

        except CLIError as e:
            logger.error(f"CLI error: {e}")
            self.output_handler.error(f"Error: {e}")
            return ExitCode.GENERAL_ERROR

        except Exception as e:
            logger.exception("Unexpected error during sync")
            self.output_handler.error(f"Unexpected error: {e}")
            return ExitCode.GENERAL_ERROR

    def _sync(self, config: PublisherConfig, update_frontmatter: bool, dry_run: bool) -> ExitCode:
        summary = SyncSummary()

        scanner = build_scanner(config, self.frontmatter_handler)
        documents = scanner.scan(config.content_path)
        by_path = {document_path(config, document.slug): document for document in documents}
        self.output_handler.info(f"Found {len(documents)} local document(s)")

        if self.api is None:
            self.api = APIWrapper(self.authenticator or Authenticator(
                pds_url=config.pds_url, identity=config.identity
            ))
        document_ops = DocumentOperations(self.api, config)

        with self.output_handler.spinner("Fetching documents from PDS..."):
            self.api.ensure_connected()
            remote_records = list(document_ops.list_documents())
        self.output_handler.info(f"Found {len(remote_records)} document(s) on PDS")

        state = StateManager.load(config.config_dir)
        unmatched: List[str] = []

        for record in remote_records:
            uri = record.get("uri", "")
            value = record.get("value", {})
            document = by_path.get(value.get("path"))
            if document is None:
                unmatched.append(value.get("path") or uri)
                continue

            summary.matched_count += 1
            matches = self.matches_remote(document, uri, value, document_ops)
            if matches:
                summary.verified_count += 1
            status = "unchanged" if matches else "changed"
            self.output_handler.print(f"  [green]✓[/green] {document.relative_path} ({status})")

            if update_frontmatter and document.frontmatter.at_uri != uri:
                summary.frontmatter_updated_count += 1
                if dry_run:
                    self.output_handler.info(f"  Would set atUri in {document.relative_path}")
                else:
                    self._store_at_uri(document, uri)

            key = StateManager.state_key(config.config_dir, document.file_path)
            previous = state.posts.get(key)
            state.posts[key] = StateEntry(
                content_hash=self.hasher.hash(document.raw_content) if matches else "",
                at_uri=uri,
                last_published=utc_timestamp(),
                slug=document.slug,
                bsky_post_ref=value.get("bskyPostRef") or (previous.bsky_post_ref if previous else None),
            )

        summary.unmatched_count = len(unmatched)
        for path in unmatched:
            self.output_handler.warning(f"No local document for {path}")
        if unmatched:
            self.output_handler.info("Run 'remanso publish' to delete or republish unmatched records")

        if not dry_run:
            StateManager.save(config.config_dir, state)

        self.output_handler.print_sync_summary(summary, dry_run=dry_run)
        return ExitCode.SUCCESS

    def matches_remote(
        self,
        document: Document,
        at_uri: str,
        value: Dict[str, Any],
        document_ops: DocumentOperations,
    ) -> bool:
        """Return True if the remote record equals the local document.

        Compares the document record fields and the note display settings.
        A missing note only matches a document without display settings.
        """
        local = document_ops.build_record(document)
        for name in COMPARED_FIELDS:
            if local.get(name) != value.get(name):
                logger.debug(f"{document.relative_path}: {name} differs")
                return False
        if local["textContent"][:MAX_TEXT_CONTENT] != (value.get("textContent") or "")[:MAX_TEXT_CONTENT]:
            logger.debug(f"{document.relative_path}: textContent differs")
            return False

        local_style = {
            name: document.raw_frontmatter[name]
            for name in STYLE_FIELDS if document.raw_frontmatter.get(name) not in (None, "")
        }
        try:
            note = self.api.get_record(note_uri_for(at_uri)).get("value", {})
        except RecordNotFoundError:
            return not local_style
        remote_style = {name: note[name] for name in STYLE_FIELDS if name in note}
        return local_style == remote_style

    def _store_at_uri(self, document: Document, at_uri: str) -> None:
        try:
            updated = self.frontmatter_handler.update_at_uri(
                document.raw_content, at_uri, document.file_path
            )
            write_text_atomic(document.file_path, updated)
        except FileMapperError as e:
            logger.warning(f"Could not update {document.relative_path}: {e}")
            self.output_handler.warning(f"Could not update {document.relative_path}: {e}")
            return
        document.raw_content = updated
        document.frontmatter.at_uri = at_uri
        document.raw_frontmatter[AT_URI_FIELD] = at_uri
        logger.info(f"Stored atUri in {document.file_path}")