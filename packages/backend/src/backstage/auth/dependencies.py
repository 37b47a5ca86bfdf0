"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers. They are the only
place where a returned AuthFailure is turned into an exception (ApiError),
because FastAPI needs an exception to short-circuit a request.

Typical use:
- get_auth_context                → credential only, no override
- get_query_auth_context          → credential + ?account_id / ?organization_id
- resolve_auth_context(...)       → call from a handler after body validation
- ensure_artist_access(...)       → 403 unless the account may reach the artist
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, Query
from pydantic_core import PydanticCustomError
from sqlalchemy.ext.asyncio import AsyncSession

from backstage.auth.context import AccessLookups, AuthContext
from backstage.auth.errors import ARTIST_DENIED_MESSAGE, ApiError, AuthFailure
from backstage.auth.resolver import AuthContextResolver
from backstage.db.engine import get_db
from backstage.schemas.common import uuid_string
from backstage.services.access_store import SqlAccessStore


@dataclass(frozen=True)
class Credentials:
    """Raw credential headers, exactly as the client sent them."""

    api_key: Optional[str] = None
    authorization: Optional[str] = None


def get_credentials(
    x_api_key: Optional[str] = Header(None),
    authorization: Optional[str] = Header(None),
) -> Credentials:
    return Credentials(api_key=x_api_key, authorization=authorization)


def get_access_store(db: AsyncSession = Depends(get_db)) -> AccessLookups:
    """Per-request lookups. Tests override this with an in-memory fake."""
    return SqlAccessStore(db)


def get_resolver(
    lookups: AccessLookups = Depends(get_access_store),
) -> AuthContextResolver:
    return AuthContextResolver(lookups)


async def resolve_auth_context(
    resolver: AuthContextResolver,
    credentials: Credentials,
    account_id: Optional[str] = None,
    organization_id: Optional[str] = None,
) -> AuthContext:
    """Resolve or raise ApiError with the failure's status and message."""
    result = await resolver.resolve(
        credentials.api_key,
        credentials.authorization,
        account_id=account_id,
        organization_id=organization_id,
    )
    if isinstance(result, AuthFailure):
        raise ApiError.from_failure(result)
    return result


async def get_auth_context(
    credentials: Credentials = Depends(get_credentials),
    resolver: AuthContextResolver = Depends(get_resolver),
) -> AuthContext:
    return await resolve_auth_context(resolver, credentials)


def _query_uuid(value: Optional[str], field: str) -> Optional[str]:
    """Canonicalise a query-string id the same way request bodies are."""
    try:
        return uuid_string(value, field)
    except PydanticCustomError as e:
        raise ApiError(400, e.message(), missing_fields=[field])


async def get_query_auth_context(
    account_id: Optional[str] = Query(None),
    organization_id: Optional[str] = Query(None),
    credentials: Credentials = Depends(get_credentials),
    resolver: AuthContextResolver = Depends(get_resolver),
) -> AuthContext:
    return await resolve_auth_context(
        resolver,
        credentials,
        account_id=_query_uuid(account_id, "account_id"),
        organization_id=_query_uuid(organization_id, "organization_id"),
    )


async def ensure_artist_access(
    resolver: AuthContextResolver, account_id: str, artist_id: str
) -> None:
    if not await resolver.can_access_artist(account_id, artist_id):
        raise ApiError(403, ARTIST_DENIED_MESSAGE)
