"""OVH API request signatures.

An authenticated request carries four headers on top of the content type:

    X-Ovh-Application: application key
    X-Ovh-Consumer:    consumer key
    X-Ovh-Timestamp:   server-corrected epoch seconds
    X-Ovh-Signature:   "$1$" + sha1(AS+CK+METHOD+URL+BODY+TIMESTAMP)

The signed URL and body must be byte-for-byte what is sent on the wire.
"""

import hmac
import json
import time
from typing import Any, Dict, Optional

from .sha1 import sha1_hex
from .types import Credentials, NotCredentialError, SignatureError, SignedRequest

CONTENT_TYPE = "application/json;charset=UTF-8"
SIGNATURE_PREFIX = "$1$"


def serialize_body(data: Any) -> str:
    """Serialize a JSON payload the way it is signed and sent.

    Compact separators, non-ASCII characters kept as-is. ``None`` gives an
    empty body.
    """
    if data is None:
        return ""
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


def corrected_timestamp(offset: int = 0) -> int:
    """Local epoch seconds shifted onto the API clock."""
    return int(time.time()) - offset


def compute_signature(
    application_secret: str,
    consumer_key: str,
    method: str,
    url: str,
    body: str,
    timestamp: int,
) -> str:
    """Compute the X-Ovh-Signature value for a request.

    Args:
        application_secret: Application secret (AS)
        consumer_key: Consumer key (CK)
        method: HTTP method, upper case
        url: Full request URL, including the query string
        body: Exact request body, or "" when there is none
        timestamp: Timestamp sent in X-Ovh-Timestamp

    Returns:
        "$1$" followed by 40 lowercase hex characters.
    """
    request = SignedRequest(method=method, url=url, body=body, timestamp=timestamp)
    return SIGNATURE_PREFIX + sha1_hex(request.signature_base(application_secret, consumer_key))


def build_headers(
    credentials: Optional[Credentials] = None,
    method: Optional[str] = None,
    url: Optional[str] = None,
    body: str = "",
    offset: int = 0,
) -> Dict[str, str]:
    """Build request headers.

    Without credentials only the content type is returned. With credentials
    the request is signed with a timestamp corrected by ``offset``.

    Raises:
        NotCredentialError: If the credentials carry no consumer key.
    """
    headers = {"Content-Type": CONTENT_TYPE}
    if credentials is None:
        return headers

    if not credentials.consumer_key:
        raise NotCredentialError()
    if not method or not url:
        raise ValueError("method and url are required to sign a request")

    timestamp = corrected_timestamp(offset)
    headers["X-Ovh-Application"] = credentials.application_key
    headers["X-Ovh-Consumer"] = credentials.consumer_key
    headers["X-Ovh-Timestamp"] = str(timestamp)
    headers["X-Ovh-Signature"] = compute_signature(
        credentials.application_secret,
        credentials.consumer_key,
        method.upper(),
        url,
        body or "",
        timestamp,
    )
    return headers


def verify_signature(
    headers: dict,
    application_secret: str,
    method: str,
    url: str,
    body: str = "",
) -> bool:
    """Check the X-Ovh-Signature of a signed request.

    The consumer key and timestamp are taken from the headers themselves.

    Returns:
        True if the signature matches.

    Raises:
        SignatureError: If a header is missing or the signature does not match.
    """
    header_lookup = {k.lower(): v for k, v in headers.items()}

    consumer_key = header_lookup.get("x-ovh-consumer")
    timestamp = header_lookup.get("x-ovh-timestamp")
    signature = header_lookup.get("x-ovh-signature")

    if not consumer_key or not timestamp or not signature:
        raise SignatureError("Missing X-Ovh-Consumer, X-Ovh-Timestamp or X-Ovh-Signature header")

    if not signature.startswith(SIGNATURE_PREFIX):
        raise SignatureError("Invalid X-Ovh-Signature format")

    try:
        timestamp_value = int(timestamp)
    except ValueError:
        raise SignatureError("Invalid X-Ovh-Timestamp")

    expected = compute_signature(
        application_secret, consumer_key, method.upper(), url, body, timestamp_value
    )
    if not hmac.compare_digest(expected, signature):
        raise SignatureError("Signature verification failed")
    return True
