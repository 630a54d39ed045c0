"""Tests for request signing utilities."""

import pytest

import ovhauth.signing as signing_module
from ovhauth import (
    Credentials,
    NotCredentialError,
    SignatureError,
    build_headers,
    compute_signature,
    serialize_body,
    sha1_hex,
    verify_signature,
)

CREDENTIALS = Credentials(application_key="AK", application_secret="S", consumer_key="C")


@pytest.fixture
def frozen_time(monkeypatch):
    monkeypatch.setattr(signing_module.time, "time", lambda: 1000.75)


def test_unauthenticated_headers():
    """Test headers without credentials."""
    assert build_headers() == {"Content-Type": "application/json;charset=UTF-8"}


def test_signed_headers(frozen_time):
    """Test signed headers for a known tuple."""
    headers = build_headers(
        CREDENTIALS, method="GET", url="https://api.ovh.com/1.0/me", body="", offset=0
    )

    assert headers == {
        "Content-Type": "application/json;charset=UTF-8",
        "X-Ovh-Application": "AK",
        "X-Ovh-Consumer": "C",
        "X-Ovh-Timestamp": "1000",
        "X-Ovh-Signature": "$1$40d2d1e74ad5c0d3e84a42dba6e628203227c580",
    }


def test_signed_headers_apply_offset(frozen_time):
    """Timestamp is corrected by the clock offset."""
    # Local clock 42s ahead of the API
    headers = build_headers(
        CREDENTIALS, method="GET", url="https://api.ovh.com/1.0/me", body="", offset=42
    )

    assert headers["X-Ovh-Timestamp"] == "958"
    assert headers["X-Ovh-Signature"] == "$1$" + sha1_hex(
        "S+C+GET+https://api.ovh.com/1.0/me++958"
    )


def test_negative_offset(frozen_time):
    """Test local clock behind the API clock."""
    headers = build_headers(
        CREDENTIALS, method="GET", url="https://api.ovh.com/1.0/me", offset=-5
    )
    assert headers["X-Ovh-Timestamp"] == "1005"


def test_signature_is_deterministic(frozen_time):
    """Test signature determinism."""
    first = build_headers(CREDENTIALS, method="PUT", url="https://api.ovh.com/1.0/me", body='{"a":1}')
    second = build_headers(CREDENTIALS, method="PUT", url="https://api.ovh.com/1.0/me", body='{"a":1}')
    assert first == second


def test_signature_covers_every_field():
    """Changing any signed field changes the signature."""
    base = compute_signature("S", "C", "GET", "https://api.ovh.com/1.0/me", "", 1000)

    assert compute_signature("X", "C", "GET", "https://api.ovh.com/1.0/me", "", 1000) != base
    assert compute_signature("S", "X", "GET", "https://api.ovh.com/1.0/me", "", 1000) != base
    assert compute_signature("S", "C", "POST", "https://api.ovh.com/1.0/me", "", 1000) != base
    assert compute_signature("S", "C", "GET", "https://api.ovh.com/1.0/me/bill", "", 1000) != base
    assert compute_signature("S", "C", "GET", "https://api.ovh.com/1.0/me", "{}", 1000) != base
    assert compute_signature("S", "C", "GET", "https://api.ovh.com/1.0/me", "", 1001) != base


def test_signing_without_consumer_key_fails():
    """Signing without a consumer key raises NotCredentialError."""
    credentials = Credentials(application_key="AK", application_secret="S")

    with pytest.raises(NotCredentialError) as exc_info:
        build_headers(credentials, method="GET", url="https://api.ovh.com/1.0/me")

    assert exc_info.value.status_code == 403
    assert exc_info.value.error_code == "NOT_CREDENTIAL"


def test_serialize_body():
    """Test JSON body serialization."""
    assert serialize_body(None) == ""
    assert serialize_body({"a": 1, "b": [1, 2]}) == '{"a":1,"b":[1,2]}'
    assert serialize_body({"name": "Zoé"}) == '{"name":"Zoé"}'


def test_verify_round_trip(frozen_time):
    """Test sign and verify round trip."""
    body = serialize_body({"description": "web"})
    headers = build_headers(
        CREDENTIALS, method="PUT", url="https://api.ovh.com/1.0/vps/vps1", body=body
    )

    assert verify_signature(headers, "S", "PUT", "https://api.ovh.com/1.0/vps/vps1", body)


def test_verify_rejects_modified_body(frozen_time):
    """Verification fails when the body changes."""
    headers = build_headers(
        CREDENTIALS, method="PUT", url="https://api.ovh.com/1.0/vps/vps1", body='{"a":1}'
    )

    with pytest.raises(SignatureError, match="verification failed"):
        verify_signature(headers, "S", "PUT", "https://api.ovh.com/1.0/vps/vps1", '{"a":2}')


def test_verify_rejects_missing_headers():
    """Verification fails without signature headers."""
    with pytest.raises(SignatureError, match="Missing"):
        verify_signature({"Content-Type": "application/json"}, "S", "GET", "https://api.ovh.com/1.0/me")


def test_verify_rejects_bad_prefix():
    """Verification fails without the $1$ prefix."""
    headers = {
        "X-Ovh-Consumer": "C",
        "X-Ovh-Timestamp": "1000",
        "X-Ovh-Signature": "40d2d1e74ad5c0d3e84a42dba6e628203227c580",
    }
    with pytest.raises(SignatureError, match="format"):
        verify_signature(headers, "S", "GET", "https://api.ovh.com/1.0/me")
