"""Unit tests for pds_client.at_uri module."""

import pytest

from remanso.pds_client.at_uri import (
    DOCUMENT_COLLECTION,
    NOTE_COLLECTION,
    AtUri,
    note_uri_for,
)
from remanso.pds_client.errors import InvalidAtUriError, PDSError


class TestAtUriParse:
    """Test cases for AtUri.parse()."""

    def test_parse_three_segments(self):
        """Parse authority, collection and record key."""
        uri = AtUri.parse("at://did:plc:abc/site.standard.document/3k2")

        assert uri.authority == "did:plc:abc"
        assert uri.collection == DOCUMENT_COLLECTION
        assert uri.rkey == "3k2"

    def test_str_round_trips(self):
        value = "at://did:plc:abc/site.standard.document/3k2"
        assert str(AtUri.parse(value)) == value

    @pytest.mark.parametrize("value", [
        "",
        "at://did:plc:abc",
        "at://did:plc:abc/site.standard.document",
        "at://did:plc:abc/site.standard.document/3k2/extra",
        "https://did:plc:abc/site.standard.document/3k2",
        "at://did:plc:abc//3k2",
    ])
    def test_rejects_malformed_uris(self, value):
        """Anything but exactly three non-empty segments is rejected."""
        with pytest.raises(InvalidAtUriError) as exc_info:
            AtUri.parse(value)

        assert exc_info.value.value == value

    def test_invalid_uri_error_is_pds_error(self):
        with pytest.raises(PDSError):
            AtUri.parse("not-a-uri")


class TestNoteUri:
    """Test cases for note URI derivation."""

    def test_note_uri_keeps_authority_and_rkey(self):
        """The note lives in the note collection under the same record key."""
        note_uri = note_uri_for("at://did:plc:abc/site.standard.document/3k2")

        assert note_uri == f"at://did:plc:abc/{NOTE_COLLECTION}/3k2"

    def test_with_collection_returns_new_uri(self):
        uri = AtUri.parse("at://did:plc:abc/site.standard.document/3k2")

        other = uri.with_collection(NOTE_COLLECTION)

        assert other.rkey == uri.rkey
        assert uri.collection == DOCUMENT_COLLECTION

    def test_note_uri_for_invalid_uri_raises(self):
        with pytest.raises(InvalidAtUriError):
            note_uri_for("at://did:plc:abc/only-two")
