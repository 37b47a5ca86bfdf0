"""SQL-backed implementation of the access-control lookups.

Learn: One store per request, built around that request's AsyncSession
(see auth/dependencies.py). There is no module-level client, so tests and
multiple deployments can hand in whatever session they like.

Every method is a read. Identifiers that are not UUIDs cannot match any
row, so they answer "no" rather than raising. Real database errors do
propagate; the auth core turns them into denials.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backstage.auth.api_keys import hash_api_key
from backstage.auth.context import ApiKeyDetails
from backstage.auth.jwt import TokenError, verify_token
from backstage.db.models import (
    Account,
    AccountApiKey,
    AccountArtist,
    AccountOrganization,
    ArtistOrganization,
)


def as_uuid(value) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        return None


def _is_expired(expires_at: Optional[datetime]) -> bool:
    if expires_at is None:
        return False
    if expires_at.tzinfo is None:
        # SQLite hands back naive datetimes; stored values are UTC.
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at <= datetime.now(timezone.utc)


class SqlAccessStore:
    """AccessLookups over the accounts/organizations/artists tables."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def lookup_api_key(self, key: str) -> Optional[ApiKeyDetails]:
        result = await self.db.execute(
            select(AccountApiKey).where(AccountApiKey.key_hash == hash_api_key(key))
        )
        api_key = result.scalars().first()
        if api_key is None or _is_expired(api_key.expires_at):
            return None
        return ApiKeyDetails(
            account_id=str(api_key.account_id),
            org_id=str(api_key.organization_id) if api_key.organization_id else None,
        )

    async def lookup_bearer_principal(self, token: str) -> Optional[str]:
        try:
            payload = verify_token(token)
        except TokenError:
            return None

        account_id = as_uuid(payload.get("sub"))
        if account_id is None:
            return None
        account = await self.db.get(Account, account_id)
        return str(account.id) if account else None

    async def is_org_member(self, org_id: str, account_id: str) -> bool:
        org_uuid, account_uuid = as_uuid(org_id), as_uuid(account_id)
        if org_uuid is None or account_uuid is None:
            return False
        result = await self.db.execute(
            select(AccountOrganization.id)
            .where(
                AccountOrganization.organization_id == org_uuid,
                AccountOrganization.account_id == account_uuid,
            )
            .limit(1)
        )
        return result.first() is not None

    async def get_artist_direct_grant(self, account_id: str, artist_id: str) -> bool:
        account_uuid, artist_uuid = as_uuid(account_id), as_uuid(artist_id)
        if account_uuid is None or artist_uuid is None:
            return False
        result = await self.db.execute(
            select(AccountArtist.id)
            .where(
                AccountArtist.account_id == account_uuid,
                AccountArtist.artist_id == artist_uuid,
            )
            .limit(1)
        )
        return result.first() is not None

    async def get_artist_org_ids(self, artist_id: str) -> list[str]:
        artist_uuid = as_uuid(artist_id)
        if artist_uuid is None:
            return []
        result = await self.db.execute(
            select(ArtistOrganization.organization_id).where(
                ArtistOrganization.artist_id == artist_uuid
            )
        )
        return [str(org_id) for org_id in result.scalars().all()]
