"""API wrapper for the ATProto XRPC repository API.

This module wraps a requests session talking to a PDS and provides error
translation from HTTP exceptions to our typed exception hierarchy. It
integrates with the retry logic for handling rate limits.
"""

import logging
import re
from typing import Any, Dict, Iterator, NamedTuple, Optional

import requests
from requests.exceptions import ConnectionError, HTTPError, Timeout

from .at_uri import AtUri
from .auth import Authenticator
from .errors import (
    APIAccessError,
    APIUnreachableError,
    InvalidCredentialsError,
    RecordNotFoundError,
)
from .retry_logic import retry_on_rate_limit

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30
LIST_PAGE_SIZE = 100


class Session(NamedTuple):
    """Authenticated PDS session."""
    did: str
    handle: str
    access_jwt: str


class StrongRef(NamedTuple):
    """URI and CID of a written record."""
    uri: str
    cid: str


class APIWrapper:
    """Thin XRPC client with lazy login and error translation.

    This class:
    1. Logs in with app-password credentials on first use
    2. Translates HTTP errors to typed exceptions
    3. Integrates retry logic for 429 rate limits
    4. Exposes the record operations the publisher needs

    Example:
        >>> api = APIWrapper(Authenticator())
        >>> ref = api.create_record("site.standard.document", {"title": "Hi"})
        >>> api.delete_record(ref.uri)
    """

    def __init__(self, authenticator: Authenticator, http: Optional[requests.Session] = None):
        """Initialize the API wrapper.

        Args:
            authenticator: Authenticator instance for loading credentials
            http: Optional requests session (tests inject a mock)
        """
        self._authenticator = authenticator
        self._http = http or requests.Session()
        self._session: Optional[Session] = None
        self._pds_url: Optional[str] = None

    def ensure_connected(self) -> Session:
        """Log in once and return the cached session on every later call.

        Returns:
            Session with the account DID and access token

        Raises:
            InvalidCredentialsError: If credentials are missing or rejected
            APIUnreachableError: If the PDS cannot be reached
        """
        if self._session is not None:
            return self._session

        creds = self._authenticator.get_credentials()
        self._pds_url = creds.pds_url
        logger.info(f"Logging in to {creds.pds_url}")
        try:
            data = self._post(
                "com.atproto.server.createSession",
                {"identifier": creds.identifier, "password": creds.password},
                authenticated=False,
            )
        except APIAccessError as e:
            if e.status_code in (400, 401):
                raise InvalidCredentialsError(creds.identifier, creds.pds_url) from e
            raise

        self._session = Session(
            did=data["did"],
            handle=data.get("handle", data["did"]),
            access_jwt=data["accessJwt"],
        )
        logger.info(f"Logged in as {self._session.did}")
        return self._session

    @property
    def did(self) -> str:
        """DID of the connected account (connects on first access)."""
        return self.ensure_connected().did

    def create_record(
        self,
        collection: str,
        record: Dict[str, Any],
        rkey: Optional[str] = None,
        validate: Optional[bool] = None,
    ) -> StrongRef:
        """Create a record in the connected repository.

        Args:
            collection: Lexicon NSID of the record
            record: Record payload
            rkey: Optional record key (the PDS generates one if omitted)
            validate: Optional schema validation flag

        Returns:
            StrongRef of the new record
        """
        body: Dict[str, Any] = {"repo": self.did, "collection": collection, "record": record}
        if rkey:
            body["rkey"] = rkey
        if validate is not None:
            body["validate"] = validate
        data = self._post("com.atproto.repo.createRecord", body)
        return StrongRef(uri=data["uri"], cid=data.get("cid", ""))

    def put_record(self, at_uri: str, record: Dict[str, Any],
                   validate: Optional[bool] = None) -> StrongRef:
        """Create or overwrite the record named by an at:// URI."""
        uri = AtUri.parse(at_uri)
        body: Dict[str, Any] = {
            "repo": uri.authority,
            "collection": uri.collection,
            "rkey": uri.rkey,
            "record": record,
        }
        if validate is not None:
            body["validate"] = validate
        data = self._post("com.atproto.repo.putRecord", body)
        return StrongRef(uri=data.get("uri", at_uri), cid=data.get("cid", ""))

    def delete_record(self, at_uri: str) -> None:
        """Delete the record named by an at:// URI."""
        uri = AtUri.parse(at_uri)
        self._post(
            "com.atproto.repo.deleteRecord",
            {"repo": uri.authority, "collection": uri.collection, "rkey": uri.rkey},
        )

    def get_record(self, at_uri: str) -> Dict[str, Any]:
        """Fetch one record.

        Returns:
            Dict with ``uri``, ``cid`` and ``value``

        Raises:
            RecordNotFoundError: If the record does not exist
        """
        uri = AtUri.parse(at_uri)
        try:
            return self._get(
                "com.atproto.repo.getRecord",
                {"repo": uri.authority, "collection": uri.collection, "rkey": uri.rkey},
            )
        except APIAccessError as e:
            if e.status_code in (400, 404):
                raise RecordNotFoundError(at_uri) from e
            raise

    def list_records(self, repo: str, collection: str) -> Iterator[Dict[str, Any]]:
        """Iterate over every record of a collection, following the cursor.

        Yields:
            Dicts with ``uri``, ``cid`` and ``value``
        """
        cursor: Optional[str] = None
        while True:
            params: Dict[str, Any] = {"repo": repo, "collection": collection, "limit": LIST_PAGE_SIZE}
            if cursor:
                params["cursor"] = cursor
            data = self._get("com.atproto.repo.listRecords", params)
            records = data.get("records", [])
            for record in records:
                yield record
            cursor = data.get("cursor")
            if not cursor or not records:
                break

    def upload_blob(self, data: bytes, mime_type: str) -> Dict[str, Any]:
        """Upload binary data and return the blob object to embed in records."""
        response = self._send(
            "POST",
            "com.atproto.repo.uploadBlob",
            data=data,
            headers={"Content-Type": mime_type},
        )
        return response["blob"]

    def _post(self, nsid: str, body: Dict[str, Any], authenticated: bool = True) -> Dict[str, Any]:
        return self._send("POST", nsid, json=body, authenticated=authenticated)

    def _get(self, nsid: str, params: Dict[str, Any]) -> Dict[str, Any]:
        return self._send("GET", nsid, params=params)

    def _send(self, method: str, nsid: str, authenticated: bool = True, **kwargs) -> Dict[str, Any]:
        """Send one XRPC call with retry and error translation."""
        headers = dict(kwargs.pop("headers", {}) or {})
        if authenticated:
            session = self.ensure_connected()
            headers["Authorization"] = f"Bearer {session.access_jwt}"
        url = f"{self._pds_url}/xrpc/{nsid}"

        def _call():
            response = self._http.request(
                method, url, headers=headers, timeout=REQUEST_TIMEOUT, **kwargs
            )
            response.raise_for_status()
            return response

        try:
            response = retry_on_rate_limit(_call)
        except APIAccessError:
            raise
        except Exception as e:
            raise self._translate_error(e, nsid) from e

        if not response.content:
            return {}
        return response.json()

    def _translate_error(self, exception: Exception, operation: str) -> Exception:
        """Translate HTTP exceptions to typed PDS exceptions.

        Args:
            exception: The original exception from requests
            operation: XRPC method that failed (for logging)

        Returns:
            Exception: Translated exception (one of our typed exceptions)
        """
        if isinstance(exception, (Timeout, ConnectionError)):
            return APIUnreachableError(endpoint=self._pds_url or "unknown")

        status_code = None
        message = str(exception)
        if isinstance(exception, HTTPError) and exception.response is not None:
            status_code = exception.response.status_code
            message = self._error_message(exception.response) or message

        logger.error(f"PDS operation failed: {operation} - {self._sanitize(message)}")
        return APIAccessError(
            f"PDS failure during {operation}: {self._sanitize(message)}",
            status_code=status_code,
        )

    @staticmethod
    def _error_message(response: requests.Response) -> Optional[str]:
        try:
            payload = response.json()
        except ValueError:
            return None
        if isinstance(payload, dict):
            error = payload.get("error")
            detail = payload.get("message")
            if error and detail:
                return f"{error}: {detail}"
            return error or detail
        return None

    @staticmethod
    def _sanitize(text: str) -> str:
        """Mask bearer tokens and passwords in error messages."""
        sanitized = re.sub(r'Bearer\s+\S+', 'Bearer ***REDACTED***', text, flags=re.IGNORECASE)
        return re.sub(
            r'(password["\']?\s*[:=]\s*["\']?)[^"\'\s&,}]+',
            r'\1***REDACTED***',
            sanitized,
            flags=re.IGNORECASE,
        )
