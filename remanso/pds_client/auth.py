"""Authentication module for loading PDS credentials.

This module handles loading ATProto app-password credentials from environment
variables using python-dotenv. It validates that all required credentials are
present and raises appropriate errors if any are missing.
"""

import os
from typing import NamedTuple, Optional

from dotenv import load_dotenv

from .errors import InvalidCredentialsError

DEFAULT_PDS_URL = "https://bsky.social"


class Credentials(NamedTuple):
    """App-password credentials for a PDS account."""
    pds_url: str
    identifier: str
    password: str


class Authenticator:
    """Loads and validates PDS credentials from environment variables.

    Credentials are loaded from a .env file using python-dotenv and are never
    cached or logged.

    Environment variables:
        ATP_IDENTIFIER: Handle or DID of the account (required)
        ATP_APP_PASSWORD: App password for the account (required)
        ATP_PDS_URL: PDS base URL (defaults to https://bsky.social)

    Example:
        >>> auth = Authenticator()
        >>> creds = auth.get_credentials()
        >>> print(f"Connecting to {creds.pds_url}")
    """

    def __init__(self, pds_url: Optional[str] = None, identity: Optional[str] = None):
        """Initialize the authenticator by loading environment variables from .env file.

        Args:
            pds_url: PDS URL from the project config, overrides the environment
            identity: Identifier from the project config, overrides the environment
        """
        load_dotenv()
        self._pds_url = pds_url
        self._identity = identity

    def get_credentials(self) -> Credentials:
        """Get PDS credentials from config overrides and environment variables.

        Returns:
            Credentials: A named tuple containing pds_url, identifier and password

        Raises:
            InvalidCredentialsError: If the identifier or password is missing
        """
        pds_url = self._pds_url or os.getenv('ATP_PDS_URL') or DEFAULT_PDS_URL
        identifier = self._identity or os.getenv('ATP_IDENTIFIER')
        password = os.getenv('ATP_APP_PASSWORD')

        if not identifier or not password:
            raise InvalidCredentialsError(
                identifier=identifier if identifier else "unknown",
                endpoint=pds_url
            )

        return Credentials(pds_url=pds_url.rstrip('/'), identifier=identifier, password=password)
