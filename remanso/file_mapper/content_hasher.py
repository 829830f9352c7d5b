"""Content fingerprinting for change detection."""

import hashlib
from typing import Union


class ContentHasher:
    """Computes a stable SHA-256 fingerprint of raw document bytes.

    Text is encoded as UTF-8 before hashing, so the same file content always
    yields the same digest on every platform.
    """

    @staticmethod
    def hash(content: Union[str, bytes]) -> str:
        """Return the hex digest of the given content."""
        if isinstance(content, str):
            content = content.encode("utf-8")
        return hashlib.sha256(content).hexdigest()
