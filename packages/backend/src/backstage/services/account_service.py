"""Account service — accounts, organizations, memberships, and API keys.

Learn: Service layer separates business logic from HTTP routing. The HTTP
routes only use the API key half; the admin CLI uses all of it to
bootstrap accounts and organizations.

Services never decide who may do what. Callers pass ids that the auth
context resolver already approved.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backstage.auth.api_keys import generate_api_key
from backstage.db.models import (
    Account,
    AccountApiKey,
    AccountOrganization,
    Organization,
)


class AccountService:
    """Business logic for principals and their credentials."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Accounts & organizations ──────────────────────

    async def create_account(self, name: str) -> Account:
        account = Account(name=name)
        self.db.add(account)
        await self.db.flush()
        return account

    async def create_org(self, name: str) -> Organization:
        org = Organization(name=name)
        self.db.add(org)
        await self.db.flush()
        return org

    async def add_member(
        self, org_id: uuid.UUID, account_id: uuid.UUID
    ) -> AccountOrganization:
        """Add account to org. Idempotent: returns the existing row if present."""
        result = await self.db.execute(
            select(AccountOrganization).where(
                AccountOrganization.organization_id == org_id,
                AccountOrganization.account_id == account_id,
            )
        )
        existing = result.scalars().first()
        if existing:
            return existing

        membership = AccountOrganization(organization_id=org_id, account_id=account_id)
        self.db.add(membership)
        await self.db.flush()
        return membership

    # ─── API keys ──────────────────────────────────────

    async def create_api_key(
        self,
        account_id: uuid.UUID,
        name: str,
        organization_id: Optional[uuid.UUID] = None,
        expires_days: Optional[int] = None,
    ) -> tuple[AccountApiKey, str]:
        """Mint a key. Returns (row, raw_key); the raw key is never stored."""
        raw_key, prefix, key_hash = generate_api_key()

        expires_at = None
        if expires_days:
            expires_at = datetime.now(timezone.utc) + timedelta(days=expires_days)

        api_key = AccountApiKey(
            account_id=account_id,
            organization_id=organization_id,
            name=name,
            key_hash=key_hash,
            prefix=prefix,
            expires_at=expires_at,
        )
        self.db.add(api_key)
        await self.db.flush()
        await self.db.refresh(api_key)
        return api_key, raw_key

    async def list_api_keys(self, account_id: uuid.UUID) -> list[AccountApiKey]:
        result = await self.db.execute(
            select(AccountApiKey)
            .where(AccountApiKey.account_id == account_id)
            .order_by(AccountApiKey.created_at.desc())
        )
        return list(result.scalars().all())

    async def revoke_api_key(self, account_id: uuid.UUID, key_id: uuid.UUID) -> bool:
        """Delete a key owned by account_id. False when no such key is owned."""
        api_key = await self.db.get(AccountApiKey, key_id)
        if not api_key or api_key.account_id != account_id:
            return False
        await self.db.delete(api_key)
        await self.db.flush()
        return True
