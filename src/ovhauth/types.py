"""Type definitions for the ovhauth SDK."""

import enum
from dataclasses import dataclass
from typing import Optional

NOT_CREDENTIAL = "NOT_CREDENTIAL"


class AuthState(enum.Enum):
    """Authentication lifecycle state of a client."""

    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class Credentials:
    """Snapshot of the three OVH keys."""

    application_key: str
    application_secret: str
    consumer_key: Optional[str] = None


@dataclass(frozen=True)
class AccessRule:
    """A method/path pair a consumer key is allowed to call."""

    method: str
    path: str

    def to_dict(self) -> dict:
        return {"method": self.method, "path": self.path}


DEFAULT_ACCESS_RULES = (
    AccessRule("GET", "/*"),
    AccessRule("POST", "/*"),
    AccessRule("PUT", "/*"),
    AccessRule("DELETE", "/*"),
)


@dataclass
class CredentialRequest:
    """Result of a credential request (login)."""

    consumer_key: str
    validation_url: str
    state: Optional[str] = None


@dataclass
class SignedRequest:
    """The parts of an HTTP request covered by an OVH signature."""

    method: str
    url: str
    body: str
    timestamp: int

    def signature_base(self, application_secret: str, consumer_key: str) -> str:
        """Join the signed fields in wire order."""
        return "+".join(
            [
                application_secret,
                consumer_key,
                self.method,
                self.url,
                self.body,
                str(self.timestamp),
            ]
        )


class APIError(Exception):
    """Error response from the OVH API."""

    def __init__(
        self,
        status_code: int,
        message: str,
        detail: Optional[str] = None,
        error_code: Optional[str] = None,
    ):
        self.status_code = status_code
        self.message = message
        self.detail = detail
        self.error_code = error_code
        super().__init__(f"APIError({status_code}): {message}")


class NotCredentialError(APIError):
    """An authenticated operation was attempted without a consumer key.

    Raised locally, before any network access, with the same shape as the
    403 the API answers for an unknown credential.
    """

    def __init__(self):
        super().__init__(
            403,
            "This credential does not exist",
            detail="Forbidden",
            error_code=NOT_CREDENTIAL,
        )

    def to_dict(self) -> dict:
        return {"errorCode": self.error_code, "message": self.message}


class SignatureError(Exception):
    """Signature verification failed."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"SignatureError: {message}")


class StorageUnavailable(Exception):
    """The persistent storage backend could not be read or written."""


class LifecycleBusyError(Exception):
    """A login or logout is already in flight on this client."""

    def __init__(self, operation: str, running: str):
        self.operation = operation
        self.running = running
        super().__init__(f"Cannot {operation}: {running} already in progress")
