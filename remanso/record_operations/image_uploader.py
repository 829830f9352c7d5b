"""Local image discovery and blob upload.

Image references in documents are relative to whatever the author had in
mind: the document's own directory, the content directory or the images
directory. Each reference is tried against an ordered list of candidate
locations and the first file that uploads successfully wins.
"""

import logging
import mimetypes
import os
import re
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from ..pds_client.api_wrapper import APIWrapper
from ..pds_client.errors import PDSError

logger = logging.getLogger(__name__)

IMAGE_PATTERN = re.compile(r'!\[([^\]]*)\]\(([^)]+)\)')

DEFAULT_MIME_TYPE = "application/octet-stream"


class ImageRef(NamedTuple):
    """Uploaded image embedded in a note record."""
    blob: Dict[str, Any]
    alt: Optional[str]

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {"image": self.blob}
        if self.alt:
            record["alt"] = self.alt
        return record


def blob_link(blob: Dict[str, Any]) -> str:
    """Return the CID string of an uploaded blob."""
    ref = blob.get("ref", {})
    if isinstance(ref, dict):
        return str(ref.get("$link", ""))
    return str(ref)


class ImageUploader:
    """Resolves image paths and uploads them as blobs.

    Args:
        api: Connected API wrapper
        content_dir: Absolute content directory
        images_dir: Optional absolute images directory
    """

    def __init__(self, api: APIWrapper, content_dir: str, images_dir: Optional[str] = None):
        self.api = api
        self.content_dir = content_dir
        self.images_dir = images_dir
        self._cache: Dict[Tuple[str, str], Dict[str, Any]] = {}

    def candidate_paths(self, src: str, document_path: str) -> List[str]:
        """Ordered list of places an image reference may point at."""
        # Site-absolute references are resolved like relative ones
        src = src.lstrip("/")
        candidates = [
            os.path.normpath(os.path.join(os.path.dirname(document_path), src)),
            os.path.normpath(os.path.join(self.content_dir, src)),
        ]
        if self.images_dir:
            candidates.append(os.path.normpath(os.path.join(self.images_dir, src)))
            # "/images/x.png" with images_dir "public/images" -> "public/images/x.png"
            base_name = os.path.basename(os.path.normpath(self.images_dir))
            index = src.find(base_name) if base_name else -1
            if index != -1:
                after = src[index + len(base_name):].lstrip("/\\")
                candidates.append(os.path.normpath(os.path.join(self.images_dir, after)))
        return candidates

    def upload(self, src: str, document_path: str) -> Optional[Dict[str, Any]]:
        """Upload the first readable candidate for an image reference.

        Returns:
            Blob object suitable for embedding in a record, or None if no
            candidate exists or every upload attempt failed
        """
        key = (src, os.path.dirname(document_path))
        if key in self._cache:
            return self._cache[key]

        for candidate in self.candidate_paths(src, document_path):
            if not os.path.isfile(candidate):
                continue
            try:
                with open(candidate, 'rb') as f:
                    data = f.read()
            except OSError as e:
                logger.debug(f"Cannot read image {candidate}: {e}")
                continue
            if not data:
                continue

            mime_type = mimetypes.guess_type(candidate)[0] or DEFAULT_MIME_TYPE
            try:
                blob = self.api.upload_blob(data, mime_type)
            except PDSError as e:
                logger.debug(f"Upload of {candidate} failed: {e}")
                continue

            logger.info(f"Uploaded image {os.path.basename(candidate)} ({blob_link(blob)})")
            self._cache[key] = blob
            return blob

        return None

    def process_content(self, content: str, document_path: str) -> Tuple[str, List[ImageRef]]:
        """Upload every local image in content and point the embeds at the blobs.

        Images that cannot be found or uploaded are left untouched.

        Returns:
            Tuple of (rewritten content, uploaded images in order)
        """
        images: List[ImageRef] = []

        def _replace(match: "re.Match[str]") -> str:
            alt, src = match.group(1), match.group(2)
            if src.startswith(("http://", "https://", "#", "mailto:")):
                return match.group(0)
            blob = self.upload(src, document_path)
            if blob is None:
                logger.warning(f"Image not found: {src}")
                return match.group(0)
            images.append(ImageRef(blob=blob, alt=alt or None))
            return f"![{alt}]({blob_link(blob)})"

        return IMAGE_PATTERN.sub(_replace, content), images
