"""Helpers shared by the exchange modules."""

import pytest

from exchange.models import Keypair, TransportFormat
from utils import display_name_for, key_fingerprint, secret_digest


def test_fingerprint_is_stable_and_short():
    first = key_fingerprint("some-public-key")

    assert first == key_fingerprint("some-public-key")
    assert first != key_fingerprint("another-public-key")
    assert len(first.split(":")) == 8


def test_fingerprint_of_missing_key():
    assert key_fingerprint(None) == "<none>"


def test_display_name_prefers_alias():
    assert display_name_for("alice", "0123456789abcdef") == "alice"
    assert display_name_for(None, "0123456789abcdef") == "0123456789"
    assert display_name_for("", "0123456789abcdef") == "0123456789"


@pytest.mark.parametrize("value, expected", [
    ("raw", TransportFormat.RAW),
    ("json", TransportFormat.RAW),
    (" Link ", TransportFormat.LINK),
])
def test_transport_format_parse(value, expected):
    assert TransportFormat.parse(value) == expected


def test_transport_format_parse_rejects_unknown():
    with pytest.raises(ValueError):
        TransportFormat.parse("pdf")


def test_private_fields_are_not_in_repr(keypair):
    text = repr(keypair)

    assert keypair.signing_private not in text
    assert keypair.encryption_private not in text


@pytest.mark.parametrize("candidate", [None, "text", 42, {"pub": "a", "priv": "b", "epub": "c"}, {"pub": "a", "priv": "b", "epub": "c", "epriv": 5}])
def test_from_fields_rejects_incomplete_candidates(candidate):
    assert Keypair.from_fields(candidate) is None


def test_secret_digest_is_full_sha256_and_hides_input():
    digest = secret_digest("c2lnbmluZy1wcml2YXRl")

    assert len(digest) == 64
    assert "c2lnbmluZy1wcml2YXRl" not in digest
    assert digest != secret_digest("attacker")
