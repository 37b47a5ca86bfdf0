"""Typed authentication/authorization failures.

Learn: The access-control functions return one of these instead of raising,
so a caller cannot forget the failure branch. The set is closed:

- MissingOrAmbiguousCredential → 401 (zero or two credentials)
- InvalidCredential            → 401 (credential does not resolve)
- AccessDenied                 → 403 (resolved, but not allowed)

There is deliberately no "lookup failed" variant. A store error becomes
InvalidCredential or AccessDenied at the point where it happens.
"""

from dataclasses import dataclass

AMBIGUOUS_CREDENTIAL_MESSAGE = (
    "Exactly one of x-api-key or Authorization must be provided"
)
INVALID_API_KEY_MESSAGE = "Invalid API key"
INVALID_TOKEN_MESSAGE = "Invalid or expired token"
ACCOUNT_DENIED_MESSAGE = "Access denied to specified account_id"
ORGANIZATION_DENIED_MESSAGE = "Access denied to specified organization_id"
ARTIST_DENIED_MESSAGE = "Access denied to this artist"


@dataclass(frozen=True)
class AuthFailure:
    """Base for every denial. Carries the HTTP status and a stable message.

    Abstract: only the three subclasses below are ever constructed.
    """

    message: str
    status: int = 401

    def __post_init__(self):
        if type(self) is AuthFailure:
            raise TypeError("AuthFailure is abstract; use one of its subclasses")

    def to_body(self) -> dict:
        return {"status": "error", "error": self.message}


@dataclass(frozen=True)
class MissingOrAmbiguousCredential(AuthFailure):
    message: str = AMBIGUOUS_CREDENTIAL_MESSAGE
    status: int = 401


@dataclass(frozen=True)
class InvalidCredential(AuthFailure):
    message: str = INVALID_API_KEY_MESSAGE
    status: int = 401


@dataclass(frozen=True)
class AccessDenied(AuthFailure):
    message: str = ACCOUNT_DENIED_MESSAGE
    status: int = 403


class ApiError(Exception):
    """HTTP-layer error rendered as the shared JSON error contract.

    Learn: Route code raises this (the domain layer never does). The app-wide
    handler in api/errors.py turns it into
    {"status": "error", "error": ..., "missing_fields": [...]}.
    """

    def __init__(
        self,
        status: int,
        message: str,
        missing_fields: list | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.message = message
        self.missing_fields = missing_fields

    @classmethod
    def from_failure(cls, failure: AuthFailure) -> "ApiError":
        return cls(failure.status, failure.message)

    def to_body(self) -> dict:
        body: dict = {"status": "error"}
        if self.missing_fields is not None:
            body["missing_fields"] = self.missing_fields
        body["error"] = self.message
        return body
