"""State file loading and saving.

This module persists per-document publish state in ``.remanso-state.json``
next to the config file. State is only an optimization: the PDS is the
source of truth, so a missing or unreadable-as-JSON state file is treated as
an empty state and the next run republishes what it cannot verify.
"""

import json
import logging
import os
import tempfile
from typing import Any, Dict, Optional

from .errors import StateError, StateFilesystemError
from .models import PublisherState, StateEntry

logger = logging.getLogger(__name__)


class StateManager:
    """Handles state file loading, validation, and saving.

    State file structure:
        {
          "posts": {
            "content/blog/hello.pub.md": {
              "contentHash": "9f86d0...",
              "atUri": "at://did:plc:abc/site.standard.document/3k2",
              "lastPublished": "2024-01-15T10:30:00.000Z",
              "slug": "blog/hello",
              "bskyPostRef": {"uri": "at://...", "cid": "bafy..."}
            }
          }
        }
    """

    DEFAULT_STATE_FILE = '.remanso-state.json'

    @classmethod
    def state_path(cls, config_dir: str) -> str:
        return os.path.join(config_dir, cls.DEFAULT_STATE_FILE)

    @staticmethod
    def state_key(config_dir: str, file_path: str) -> str:
        """Key of a document: its POSIX path relative to the config directory."""
        return os.path.relpath(file_path, config_dir).replace(os.sep, "/")

    @classmethod
    def load(cls, config_dir: str) -> PublisherState:
        """Load state from the config directory.

        Args:
            config_dir: Directory containing remanso.yaml

        Returns:
            PublisherState (empty if the file is missing, empty or corrupt)

        Raises:
            StateFilesystemError: If the file exists but cannot be read
        """
        state_path = cls.state_path(config_dir)
        try:
            with open(state_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            # Missing state file is normal for first publish
            return PublisherState()
        except PermissionError:
            raise StateFilesystemError(state_path, 'read', 'Permission denied')
        except (OSError, UnicodeDecodeError) as e:
            raise StateFilesystemError(state_path, 'read', str(e))

        if not content.strip():
            return PublisherState()

        try:
            state_dict = json.loads(content)
            return cls._parse_state(state_dict)
        except (ValueError, StateError) as e:
            logger.warning(f"Ignoring corrupt state file {state_path}: {e}")
            return PublisherState()

    @classmethod
    def save(cls, config_dir: str, state: PublisherState) -> None:
        """Write state atomically (temp file in the same directory, then rename).

        Raises:
            StateFilesystemError: If file cannot be written
        """
        state_path = cls.state_path(config_dir)
        payload = json.dumps(
            {"posts": {key: cls._entry_to_dict(entry) for key, entry in state.posts.items()}},
            indent=2,
            ensure_ascii=False,
        ) + "\n"

        temp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                'w', encoding='utf-8', dir=config_dir,
                prefix='.remanso-state-', suffix='.tmp', delete=False,
            ) as f:
                temp_path = f.name
                f.write(payload)
            os.replace(temp_path, state_path)
        except PermissionError:
            cls._remove_temp(temp_path)
            raise StateFilesystemError(state_path, 'write', 'Permission denied')
        except OSError as e:
            cls._remove_temp(temp_path)
            raise StateFilesystemError(state_path, 'write', str(e))

        logger.debug(f"Saved {len(state.posts)} state entries to {state_path}")

    @staticmethod
    def _remove_temp(temp_path: Optional[str]) -> None:
        if temp_path and os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError as e:
                logger.warning(f"Failed to remove temp file {temp_path}: {e}")

    @classmethod
    def _parse_state(cls, state_dict: Any) -> PublisherState:
        """Parse and validate the decoded JSON document.

        Raises:
            StateError: If the document does not have the expected shape
        """
        if not isinstance(state_dict, dict):
            raise StateError(f"State must be a JSON object, got {type(state_dict).__name__}")

        posts_raw = state_dict.get('posts', {})
        if not isinstance(posts_raw, dict):
            raise StateError(
                f"Field 'posts' must be an object, got {type(posts_raw).__name__}", 'posts'
            )

        posts: Dict[str, StateEntry] = {}
        for key, entry_dict in posts_raw.items():
            try:
                posts[key] = cls._entry_from_dict(entry_dict)
            except StateError as e:
                logger.warning(f"Dropping state entry for {key}: {e}")
        return PublisherState(posts=posts)

    @staticmethod
    def _entry_from_dict(entry_dict: Any) -> StateEntry:
        if not isinstance(entry_dict, dict):
            raise StateError(f"Entry must be an object, got {type(entry_dict).__name__}")

        at_uri = entry_dict.get('atUri')
        if not isinstance(at_uri, str) or not at_uri:
            raise StateError("Field 'atUri' must be a non-empty string", 'atUri')

        content_hash = entry_dict.get('contentHash', '')
        if not isinstance(content_hash, str):
            raise StateError("Field 'contentHash' must be a string", 'contentHash')

        bsky_post_ref = entry_dict.get('bskyPostRef')
        if bsky_post_ref is not None and not (
            isinstance(bsky_post_ref, dict) and 'uri' in bsky_post_ref
        ):
            raise StateError("Field 'bskyPostRef' must be an object with a uri", 'bskyPostRef')

        return StateEntry(
            content_hash=content_hash,
            at_uri=at_uri,
            last_published=str(entry_dict.get('lastPublished', '')),
            slug=str(entry_dict.get('slug', '')),
            bsky_post_ref=bsky_post_ref,
        )

    @staticmethod
    def _entry_to_dict(entry: StateEntry) -> Dict[str, Any]:
        entry_dict: Dict[str, Any] = {
            'contentHash': entry.content_hash,
            'atUri': entry.at_uri,
            'lastPublished': entry.last_published,
            'slug': entry.slug,
        }
        if entry.bsky_post_ref:
            entry_dict['bskyPostRef'] = entry.bsky_post_ref
        return entry_dict
