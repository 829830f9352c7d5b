"""Publish command orchestration for CLI.

This module provides the PublishCommand class that reconciles the local
documents with the PDS. A run goes through these phases, strictly in order:

    1. Scan        parse every publishable document
    2. Local diff  classify documents against the state (create/update/skip)
    3. Deletions   state entries whose file is gone from disk
    4. Orphans     remote records of the publication with no local document
    5. Documents   write document records; store the atUri of new ones on disk
    6. Notes       write the note record of every document from pass 5
    7. Links       rewrite notes of earlier documents linking to new ones
    8. Delete      delete records (and notes) found in phases 3 and 4
    9. Commit      save the state file

A dry run stops after phase 4 and prints the plan.
"""

import logging
import os
from datetime import datetime, UTC
from typing import Dict, List, Optional

from remanso.file_mapper.config_loader import ConfigLoader
from remanso.file_mapper.content_hasher import ContentHasher
from remanso.file_mapper.content_scanner import ContentScanner, write_text_atomic
from remanso.file_mapper.errors import ConfigError, FileMapperError, FilesystemError
from remanso.file_mapper.frontmatter_handler import AT_URI_FIELD, FrontmatterHandler
from remanso.file_mapper.models import Document, PublisherConfig
from remanso.file_mapper.slug_resolver import SlugResolver
from remanso.pds_client.api_wrapper import APIWrapper
from remanso.pds_client.auth import Authenticator
from remanso.pds_client.errors import (
    APIAccessError,
    APIUnreachableError,
    InvalidCredentialsError,
    PDSError,
)
from remanso.record_operations.bluesky_poster import BlueskyPoster
from remanso.record_operations.document_operations import DocumentOperations, document_path
from remanso.record_operations.image_uploader import ImageUploader
from remanso.record_operations.link_resolver import LinkResolver
from remanso.record_operations.note_operations import NoteOperations

from .change_detector import ChangeDetector
from .config import StateManager
from .deletion_handler import DeletionHandler
from .errors import CLIError, ConfigNotFoundError
from .models import (
    ExitCode,
    PlanEntry,
    PublishedRecord,
    PublisherState,
    PublishSummary,
    StateEntry,
)
from .output import OutputHandler

logger = logging.getLogger(__name__)


def utc_timestamp() -> str:
    now = datetime.now(UTC)
    return now.strftime('%Y-%m-%dT%H:%M:%S.') + f"{now.microsecond // 1000:03d}Z"


class PublishCommand:
    """Orchestrates the complete publish workflow for the CLI.

    All collaborators are optional so tests can inject fakes; in production
    they are created from the loaded configuration. The PDS connection is
    made lazily, on first remote call.

    Example:
        >>> output = OutputHandler(verbosity=1)
        >>> publish_cmd = PublishCommand(output_handler=output)
        >>> exit_code = publish_cmd.run(force=False, dry_run=False)
        >>> sys.exit(exit_code)
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        output_handler: Optional[OutputHandler] = None,
        authenticator: Optional[Authenticator] = None,
        api: Optional[APIWrapper] = None,
        link_resolver: Optional[LinkResolver] = None,
        frontmatter_handler: Optional[FrontmatterHandler] = None,
    ):
        """Initialize publish command with dependencies.

        Args:
            config_path: Path to remanso.yaml (discovered from the working
                directory when omitted)
            output_handler: OutputHandler for terminal output (optional)
            authenticator: Authenticator for the PDS (optional)
            api: APIWrapper to use instead of a new one (optional)
            link_resolver: LinkResolver for note content (optional)
            frontmatter_handler: FrontmatterHandler for parsing and atUri
                rewrites (optional)
        """
        self.config_path = config_path
        self.output_handler = output_handler or OutputHandler()
        self.authenticator = authenticator
        self.api = api
        self.link_resolver = link_resolver or LinkResolver()
        self.frontmatter_handler = frontmatter_handler or FrontmatterHandler()
        self.hasher = ContentHasher()

    def run(self, force: bool = False, dry_run: bool = False) -> ExitCode:
        """Execute a publish run.

        This is the main entry point for publishing. It translates exceptions
        to appropriate exit codes.

        Args:
            force: Republish every non-draft document
            dry_run: Print the plan without changing anything

        Returns:
            ExitCode indicating success or specific failure type
        """
        try:
            config = load_config(self.config_path)
            self.output_handler.info(f"Content directory: {config.content_path}")
            self.output_handler.info(f"Publication: {config.publication_uri}")
            return self._publish(config, force, dry_run)

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
            self.output_handler.info("Check your internet connection and try again")
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
            logger.exception("Unexpected error during publish")
            self.output_handler.error(f"Unexpected error: {e}")
            return ExitCode.GENERAL_ERROR

    def _connect(self, config: PublisherConfig) -> APIWrapper:
        if self.api is None:
            authenticator = self.authenticator or Authenticator(
                pds_url=config.pds_url, identity=config.identity
            )
            self.api = APIWrapper(authenticator)
        with self.output_handler.spinner("Connecting to PDS..."):
            session = self.api.ensure_connected()
        self.output_handler.info(f"Logged in as {session.handle}")
        return self.api

    def _publish(self, config: PublisherConfig, force: bool, dry_run: bool) -> ExitCode:
        summary = PublishSummary()

        # Phase 1: scan
        scanner = build_scanner(config, self.frontmatter_handler)
        documents = scanner.scan(config.content_path)
        summary.skipped_count = len(scanner.skipped)
        for path in scanner.skipped:
            self.output_handler.warning(f"Skipping unparseable document: {path}")
        self.output_handler.info(f"Found {len(documents)} publishable document(s)")

        state = StateManager.load(config.config_dir)

        # Phase 2: local diff
        changes = ChangeDetector(config.config_dir, self.hasher).detect_changes(
            documents, state, force=force
        )
        summary.unchanged_count = len(changes.unchanged)
        summary.draft_count = len(changes.drafts)

        # Phase 3: deletion diff
        deletion_handler = DeletionHandler(config.config_dir)
        scanned_keys = {StateManager.state_key(config.config_dir, d.file_path) for d in documents}
        deletions = deletion_handler.detect_local_deletions(state, scanned_keys)

        # Phase 4: remote diff
        api = self._connect(config)
        image_uploader = ImageUploader(api, config.content_path, config.images_path)
        document_ops = DocumentOperations(api, config, image_uploader)
        note_ops = NoteOperations(api, image_uploader, self.link_resolver)
        deletion_handler.document_operations = document_ops
        deletion_handler.note_operations = note_ops

        with self.output_handler.spinner("Fetching documents from PDS..."):
            remote_records = list(document_ops.list_documents())
        self.output_handler.info(f"Found {len(remote_records)} document(s) on PDS")
        orphans = deletion_handler.detect_orphans(
            remote_records,
            documents,
            config.path_prefix,
            {d.at_uri for d in deletions},
            skipped_slugs=scanner.skipped_slugs(),
            protected_uris=deletion_handler.protected_uris(state),
        )

        if not changes.to_publish and not deletions and not orphans:
            self.output_handler.success("All documents are up to date. Nothing to publish.")
            return ExitCode.SUCCESS

        self.output_handler.print_plan(changes.to_publish, deletions, orphans, summary.draft_count)

        if dry_run:
            self.output_handler.print("\nDry run complete. No changes made.")
            return ExitCode.SUCCESS

        # Phase 5: document records
        poster = self._build_poster(api, config)
        published: List[PublishedRecord] = []
        for entry in changes.to_publish:
            record = self._publish_document(entry, config, state, document_ops, poster, summary)
            if record:
                published.append(record)

        # Phase 6: notes
        for record in published:
            try:
                if record.action == "create":
                    note_ops.create(record.document, record.at_uri, documents)
                else:
                    note_ops.update(record.document, record.at_uri, documents)
            except PDSError as e:
                logger.warning(f"Failed to write note for {record.document.relative_path}: {e}")
                self.output_handler.warning(
                    f"Failed to write note for \"{record.document.frontmatter.title}\": {e}"
                )
                summary.note_warning_count += 1

        # Phase 7: stale links
        new_slugs = [record.document.slug for record in published if record.action == "create"]
        batch_paths = {record.document.file_path for record in published}
        for document in self.link_resolver.find_stale_documents(documents, new_slugs, batch_paths):
            try:
                note_ops.update(document, document.frontmatter.at_uri, documents)
                self.output_handler.info(f"Updated links in {document.relative_path}")
            except PDSError as e:
                logger.warning(f"Failed to update links in {document.relative_path}: {e}")
                self.output_handler.warning(f"Failed to update links in {document.relative_path}: {e}")
                summary.note_warning_count += 1

        # Phase 8: deletions
        deleted = deletion_handler.delete_records(deletions + orphans, state)
        summary.deleted_count = len(deleted)
        for failure in deletion_handler.failed:
            self.output_handler.warning(f"Failed to delete {failure.title}")
            summary.note_warning_count += 1

        # Phase 9: commit
        StateManager.save(config.config_dir, state)

        self.output_handler.print_publish_summary(summary)
        return ExitCode.PUBLISH_ERRORS if summary.error_count else ExitCode.SUCCESS

    def _build_poster(self, api: APIWrapper, config: PublisherConfig) -> Optional[BlueskyPoster]:
        if not config.bluesky.enabled:
            return None
        if not config.site_url:
            self.output_handler.warning("Bluesky posting needs site_url in remanso.yaml, skipping")
            return None
        return BlueskyPoster(api, config.bluesky, config.site_url)

    def _publish_document(
        self,
        entry: PlanEntry,
        config: PublisherConfig,
        state: PublisherState,
        document_ops: DocumentOperations,
        poster: Optional[BlueskyPoster],
        summary: PublishSummary,
    ) -> Optional[PublishedRecord]:
        """Write one document record; errors are counted, never raised."""
        document = entry.document
        key = StateManager.state_key(config.config_dir, document.file_path)
        previous = state.posts.get(key)
        bsky_post_ref: Optional[Dict[str, str]] = previous.bsky_post_ref if previous else None

        try:
            with self.output_handler.spinner(f"Publishing: {document.frontmatter.title}"):
                cover_image = document_ops.upload_cover_image(document)
                if entry.action == "create":
                    at_uri = document_ops.create(document, cover_image).uri
                    self._store_at_uri(document, at_uri)
                    summary.created_count += 1
                    self.output_handler.success(f"Created: {document.relative_path}")
                else:
                    at_uri = entry.at_uri
                    document_ops.update(document, at_uri, cover_image, bsky_post_ref)
                    summary.updated_count += 1
                    self.output_handler.success(f"Updated: {document.relative_path}")
        except (PDSError, FileMapperError) as e:
            logger.error(f"Error publishing {document.relative_path}: {e}")
            self.output_handler.error(f"Error publishing \"{document.relative_path}\": {e}")
            summary.error_count += 1
            return None

        if poster and poster.should_post(document, bsky_post_ref):
            try:
                ref = poster.post(document, at_uri, document_path(config, document.slug), cover_image)
                bsky_post_ref = {"uri": ref.uri, "cid": ref.cid}
                summary.bsky_post_count += 1
            except PDSError as e:
                logger.warning(f"Failed to create Bluesky post for {document.relative_path}: {e}")
                self.output_handler.warning(f"Failed to create Bluesky post: {e}")

        state.posts[key] = StateEntry(
            content_hash=self.hasher.hash(document.raw_content),
            at_uri=at_uri,
            last_published=utc_timestamp(),
            slug=document.slug,
            bsky_post_ref=bsky_post_ref,
        )
        return PublishedRecord(document=document, action=entry.action, at_uri=at_uri)

    def _store_at_uri(self, document: Document, at_uri: str) -> None:
        """Write the new record URI into the document file.

        The in-memory document is updated too, so later passes (note links,
        the state hash) see the file as it now is on disk.
        """
        updated = self.frontmatter_handler.update_at_uri(
            document.raw_content, at_uri, document.file_path
        )
        write_text_atomic(document.file_path, updated)
        document.raw_content = updated
        document.frontmatter.at_uri = at_uri
        document.raw_frontmatter[AT_URI_FIELD] = at_uri
        logger.info(f"Stored atUri in {document.file_path}")


def load_config(config_path: Optional[str] = None) -> PublisherConfig:
    """Load remanso.yaml, discovering it from the working directory if needed.

    Raises:
        ConfigNotFoundError: If no config file is found
        ConfigError: If the config is invalid
    """
    if config_path is None:
        config_path = ConfigLoader.find_config(os.getcwd())
        if config_path is None:
            raise ConfigNotFoundError(os.getcwd())
    elif not os.path.isfile(config_path):
        raise ConfigNotFoundError(config_path)
    return ConfigLoader.load(config_path)


def build_scanner(config: PublisherConfig,
                  frontmatter_handler: Optional[FrontmatterHandler] = None) -> ContentScanner:
    """Create the content scanner configured for the project."""
    return ContentScanner(
        file_suffix=config.file_suffix,
        ignore_patterns=config.ignore,
        mapping=config.frontmatter,
        slug_resolver=SlugResolver(
            slug_field=config.frontmatter.slug_field,
            remove_index=config.remove_index_from_slug,
            strip_date_prefix=config.strip_date_prefix,
        ),
        frontmatter_handler=frontmatter_handler,
    )
