"""Typed exception hierarchy for PDS-related errors.

This module defines all custom exceptions used by the PDS client library.
All exceptions inherit from PDSError so callers can catch transport failures
in one place, and include descriptive messages with context to help with
debugging.
"""

from typing import Optional


class SyncError(Exception):
    """Base exception for all remanso-publisher errors.

    Use this to catch any application-level error from the publisher.
    """
    pass


class PDSError(SyncError):
    """Base exception for all PDS transport errors."""
    pass


class InvalidCredentialsError(PDSError):
    """Raised when credentials are missing or the PDS rejects the login."""

    def __init__(self, identifier: str, endpoint: str):
        super().__init__(
            f"Credentials are invalid (identifier: {identifier}, endpoint: {endpoint})"
        )
        self.identifier = identifier
        self.endpoint = endpoint


class RecordNotFoundError(PDSError):
    """Raised when a requested record does not exist."""

    def __init__(self, at_uri: str):
        super().__init__(f"Record {at_uri} not found")
        self.at_uri = at_uri


class APIUnreachableError(PDSError):
    """Raised when the PDS is not available or unreachable."""

    def __init__(self, endpoint: str):
        super().__init__(f"PDS is not available at {endpoint}")
        self.endpoint = endpoint


class APIAccessError(PDSError):
    """Raised when a PDS call fails after retries or is rejected."""

    def __init__(self, message: str = "PDS API failure (after 3 retries)",
                 status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class InvalidAtUriError(PDSError):
    """Raised when a string is not a three-segment at:// record URI."""

    def __init__(self, value: str):
        super().__init__(f"Invalid atUri format: {value}")
        self.value = value
