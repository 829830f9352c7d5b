"""PDS client library for the publisher.

This package provides a thin Python abstraction over the ATProto XRPC
repository API, covering exactly the record operations the publisher needs.
"""

from .errors import (
    SyncError,
    PDSError,
    InvalidCredentialsError,
    RecordNotFoundError,
    APIUnreachableError,
    APIAccessError,
    InvalidAtUriError,
)
from .at_uri import AtUri, DOCUMENT_COLLECTION, NOTE_COLLECTION, BSKY_POST_COLLECTION, note_uri_for
from .auth import Authenticator, Credentials
from .api_wrapper import APIWrapper, Session, StrongRef

__all__ = [
    "SyncError",
    "PDSError",
    "InvalidCredentialsError",
    "RecordNotFoundError",
    "APIUnreachableError",
    "APIAccessError",
    "InvalidAtUriError",
    "AtUri",
    "DOCUMENT_COLLECTION",
    "NOTE_COLLECTION",
    "BSKY_POST_COLLECTION",
    "note_uri_for",
    "Authenticator",
    "Credentials",
    "APIWrapper",
    "Session",
    "StrongRef",
]
