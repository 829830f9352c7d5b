"""ATProto record URI handling.

A record URI names one record in a repository:
``at://{authority}/{collection}/{rkey}``. Publishing uses two collections that
share record keys: the primary document record and the note record derived
from it.
"""

import re
from dataclasses import dataclass

from .errors import InvalidAtUriError

DOCUMENT_COLLECTION = "site.standard.document"
NOTE_COLLECTION = "space.remanso.note"
BSKY_POST_COLLECTION = "app.bsky.feed.post"

AT_URI_PATTERN = re.compile(r'^at://([^/]+)/([^/]+)/([^/]+)$')


@dataclass(frozen=True)
class AtUri:
    """Parsed ``at://authority/collection/rkey`` reference.

    Attributes:
        authority: Repository DID (or handle)
        collection: Lexicon NSID of the record type
        rkey: Record key within the collection

    Example:
        >>> uri = AtUri.parse("at://did:plc:abc/site.standard.document/k1")
        >>> str(uri.with_collection(NOTE_COLLECTION))
        'at://did:plc:abc/space.remanso.note/k1'
    """
    authority: str
    collection: str
    rkey: str

    @classmethod
    def parse(cls, value: str) -> "AtUri":
        """Parse a record URI.

        Raises:
            InvalidAtUriError: If the value does not have exactly three
                non-empty segments after ``at://``
        """
        match = AT_URI_PATTERN.match(value or "")
        if not match:
            raise InvalidAtUriError(value)
        return cls(authority=match.group(1), collection=match.group(2), rkey=match.group(3))

    def with_collection(self, collection: str) -> "AtUri":
        """Return the URI of the record sharing this rkey in another collection."""
        return AtUri(authority=self.authority, collection=collection, rkey=self.rkey)

    def __str__(self) -> str:
        return f"at://{self.authority}/{self.collection}/{self.rkey}"


def note_uri_for(at_uri: str) -> str:
    """Return the note record URI paired with a document record URI."""
    return str(AtUri.parse(at_uri).with_collection(NOTE_COLLECTION))
