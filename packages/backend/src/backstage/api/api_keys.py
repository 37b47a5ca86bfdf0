"""API key management routes.

Learn: Keys are always minted for the resolved account. Passing
organization_id makes it an org key, which can act as any member account
via account_id. Membership alone is not enough to mint one: the request
must itself come from an org key for that organization. The first org key
is bootstrapped with `backstage issue-key --org-id`.

- POST   /api-keys          → create (returns the key once!)
- GET    /api-keys          → list metadata for the resolved account
- DELETE /api-keys/{key_id} → revoke one of the resolved account's keys
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backstage.auth.context import AuthContext
from backstage.auth.dependencies import (
    Credentials,
    get_credentials,
    get_query_auth_context,
    get_resolver,
    resolve_auth_context,
)
from backstage.auth.errors import ORGANIZATION_DENIED_MESSAGE, ApiError
from backstage.auth.resolver import AuthContextResolver
from backstage.db.engine import get_db
from backstage.schemas.api_key import ApiKeyCreate, ApiKeyCreated, ApiKeyRead
from backstage.services.access_store import as_uuid
from backstage.services.account_service import AccountService

router = APIRouter(prefix="/api-keys")


def _svc(db: AsyncSession = Depends(get_db)) -> AccountService:
    return AccountService(db)


@router.post("", response_model=ApiKeyCreated, status_code=201)
async def create_api_key(
    body: ApiKeyCreate,
    credentials: Credentials = Depends(get_credentials),
    resolver: AuthContextResolver = Depends(get_resolver),
    svc: AccountService = Depends(_svc),
):
    """Create a new API key. The full key is only returned ONCE."""
    ctx = await resolve_auth_context(resolver, credentials, account_id=body.account_id)
    # Only a credential already scoped to this org may mint an org key
    if body.organization_id and ctx.org_id != body.organization_id:
        raise ApiError(403, ORGANIZATION_DENIED_MESSAGE)
    api_key, raw_key = await svc.create_api_key(
        account_id=uuid.UUID(ctx.account_id),
        name=body.name,
        organization_id=uuid.UUID(body.organization_id) if body.organization_id else None,
        expires_days=body.expires_days,
    )
    await svc.db.commit()

    return ApiKeyCreated(
        id=api_key.id,
        name=api_key.name,
        key=raw_key,  # Only time the full key is returned!
        prefix=api_key.prefix,
        account_id=api_key.account_id,
        organization_id=api_key.organization_id,
        created_at=api_key.created_at,
        expires_at=api_key.expires_at,
    )


@router.get("", response_model=list[ApiKeyRead])
async def list_api_keys(
    ctx: AuthContext = Depends(get_query_auth_context),
    svc: AccountService = Depends(_svc),
):
    """List API keys for the resolved account (without the key values)."""
    return await svc.list_api_keys(uuid.UUID(ctx.account_id))


@router.delete("/{key_id}")
async def revoke_api_key(
    key_id: str,
    ctx: AuthContext = Depends(get_query_auth_context),
    svc: AccountService = Depends(_svc),
):
    key_uuid = as_uuid(key_id)
    if key_uuid is None or not await svc.revoke_api_key(
        uuid.UUID(ctx.account_id), key_uuid
    ):
        raise ApiError(404, "API key not found")
    await svc.db.commit()
    return {"deleted": True}
