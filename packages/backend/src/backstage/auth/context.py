"""Auth context and lookup capabilities.

Learn: AuthContext is the unified output of authentication. It lives for one
request and is never cached or persisted. AccessLookups is the only way the
auth core reads the store; production code passes a SqlAccessStore, tests
pass an in-memory fake.
"""

import asyncio
from dataclasses import dataclass, replace
from typing import Awaitable, Optional, Protocol, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class AuthContext:
    """Resolved identity for a request.

    auth_token is the raw credential (API key, or bearer token without the
    "Bearer " prefix). It is forwarded to downstream providers and plays no
    further part in access decisions.
    """

    account_id: str
    org_id: Optional[str]
    auth_token: str

    def acting_as(self, account_id: str) -> "AuthContext":
        return replace(self, account_id=account_id)

    def within_org(self, org_id: str) -> "AuthContext":
        return replace(self, org_id=org_id)


@dataclass(frozen=True)
class ApiKeyDetails:
    account_id: str
    org_id: Optional[str] = None


class AccessLookups(Protocol):
    """Read-only capabilities the access-control core depends on."""

    async def lookup_api_key(self, key: str) -> Optional[ApiKeyDetails]: ...

    async def lookup_bearer_principal(self, token: str) -> Optional[str]: ...

    async def is_org_member(self, org_id: str, account_id: str) -> bool: ...

    async def get_artist_direct_grant(
        self, account_id: str, artist_id: str
    ) -> bool: ...

    async def get_artist_org_ids(self, artist_id: str) -> list[str]: ...


class LookupFailed(Exception):
    """A lookup raised or timed out. Callers turn this into a denial."""

    def __init__(self, lookup: str, reason: str):
        super().__init__(f"{lookup}: {reason}")
        self.lookup = lookup
        self.reason = reason


async def guarded(lookup: str, call: Awaitable[T], timeout: float) -> T:
    """Await a lookup with a deadline, folding every failure into LookupFailed.

    Learn: This is where fail-closed starts. Whatever goes wrong in the
    store (driver error, bad row, hung connection) comes out as one
    exception type that every component maps to a denial.
    """
    try:
        return await asyncio.wait_for(call, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("access.lookup_timeout", lookup=lookup, timeout=timeout)
        raise LookupFailed(lookup, "timeout")
    except Exception as e:
        logger.warning("access.lookup_failed", lookup=lookup, error=str(e))
        raise LookupFailed(lookup, type(e).__name__) from e
