"""ovhauth - Client SDK for the OVH API.

Signs requests with the application key, application secret and consumer
key scheme, and handles the consumer key login/logout lifecycle.
"""

from .client import OvhClient
from .config import DEFAULT_BASE_URL, OvhConfig
from .sha1 import sha1_digest, sha1_hex
from .signing import (
    build_headers,
    compute_signature,
    serialize_body,
    verify_signature,
)
from .storage import CredentialStore, FileStorage, MemoryStorage, Storage
from .types import (
    DEFAULT_ACCESS_RULES,
    AccessRule,
    APIError,
    AuthState,
    CredentialRequest,
    Credentials,
    LifecycleBusyError,
    NotCredentialError,
    SignatureError,
    SignedRequest,
    StorageUnavailable,
)

__version__ = "0.1.0"
__all__ = [
    # Main client
    "OvhClient",
    "OvhConfig",
    "DEFAULT_BASE_URL",
    # Types
    "AccessRule",
    "AuthState",
    "CredentialRequest",
    "Credentials",
    "SignedRequest",
    "DEFAULT_ACCESS_RULES",
    "APIError",
    "NotCredentialError",
    "SignatureError",
    "StorageUnavailable",
    "LifecycleBusyError",
    # Storage
    "Storage",
    "MemoryStorage",
    "FileStorage",
    "CredentialStore",
    # Signing utilities
    "sha1_hex",
    "sha1_digest",
    "build_headers",
    "compute_signature",
    "serialize_body",
    "verify_signature",
]
