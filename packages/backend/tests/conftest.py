"""Test fixtures — in-memory database, fake lookups, and a seeded world.

Learn: Two kinds of tests live here:

1. Auth core tests run the components against FakeLookups, an in-memory
   AccessLookups that counts calls and can be told to fail or hang.
   That is how we assert "no lookup happened" and "errors deny".
2. Store/API tests run against a fresh in-memory SQLite database per test
   (aiosqlite + StaticPool so every session shares one connection), with
   the real SqlAccessStore and the real auth pipeline. Only get_db is
   overridden.
"""

import asyncio
from collections import Counter
from types import SimpleNamespace

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from backstage.auth.context import ApiKeyDetails
from backstage.auth.jwt import create_access_token
from backstage.db.engine import get_db
from backstage.db.models import AccountArtist, Base
from backstage.main import app
from backstage.services.account_service import AccountService
from backstage.services.artist_service import ArtistService

TEST_DB_URL = "sqlite+aiosqlite://"


# ─── Fake lookups ───────────────────────────────────────


class FakeLookups:
    """In-memory AccessLookups with call counters and failure injection.

    failing: lookup names that raise RuntimeError("database error")
    hanging: lookup names that never return (exercise the timeout)
    """

    def __init__(
        self,
        api_keys=None,
        bearer=None,
        memberships=(),
        grants=(),
        artist_orgs=None,
        failing=(),
        hanging=(),
    ):
        self.api_keys = dict(api_keys or {})
        self.bearer = dict(bearer or {})
        self.memberships = set(memberships)  # {(org_id, account_id)}
        self.grants = set(grants)  # {(account_id, artist_id)}
        self.artist_orgs = dict(artist_orgs or {})  # {artist_id: [org_id]}
        self.failing = set(failing)
        self.hanging = set(hanging)
        self.calls = Counter()
        self.member_checks = []

    async def _enter(self, name: str) -> None:
        self.calls[name] += 1
        if name in self.failing:
            raise RuntimeError("database error")
        if name in self.hanging:
            await asyncio.sleep(3600)

    async def lookup_api_key(self, key):
        await self._enter("lookup_api_key")
        return self.api_keys.get(key)

    async def lookup_bearer_principal(self, token):
        await self._enter("lookup_bearer_principal")
        return self.bearer.get(token)

    async def is_org_member(self, org_id, account_id):
        await self._enter("is_org_member")
        self.member_checks.append((org_id, account_id))
        return (org_id, account_id) in self.memberships

    async def get_artist_direct_grant(self, account_id, artist_id):
        await self._enter("get_artist_direct_grant")
        return (account_id, artist_id) in self.grants

    async def get_artist_org_ids(self, artist_id):
        await self._enter("get_artist_org_ids")
        return list(self.artist_orgs.get(artist_id, []))


@pytest.fixture()
def fake_lookups():
    """Factory: fake_lookups(api_keys=..., memberships=..., failing=...)."""
    return FakeLookups


@pytest.fixture()
def personal_key():
    return ApiKeyDetails(account_id="acc-1", org_id=None)


@pytest.fixture()
def org_key():
    return ApiKeyDetails(account_id="org-admin", org_id="org-9")


# ─── Database ───────────────────────────────────────────


@pytest_asyncio.fixture()
async def db_session():
    """Fresh in-memory schema per test."""
    engine = create_async_engine(
        TEST_DB_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session = AsyncSession(engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


@pytest_asyncio.fixture()
async def client(db_session):
    """HTTP client with only get_db overridden — auth runs for real."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def world(db_session):
    """A small, fully-linked data set.

    - owner: personal key, bearer token, direct grant on artist_direct
    - org with admin (holds the org key) and member
    - outsider: personal key, direct grant on artist_lonely
    - artist_org belongs to org; nobody holds a direct grant on it
    - artist_lonely belongs to no org
    """
    accounts = AccountService(db_session)
    artists = ArtistService(db_session)

    owner = await accounts.create_account("Owner")
    admin = await accounts.create_account("Org Admin")
    member = await accounts.create_account("Member")
    outsider = await accounts.create_account("Outsider")
    org = await accounts.create_org("Label Co")
    other_org = await accounts.create_org("Other Co")

    await accounts.add_member(org.id, admin.id)
    await accounts.add_member(org.id, member.id)

    _, owner_key = await accounts.create_api_key(owner.id, "owner")
    _, org_key = await accounts.create_api_key(admin.id, "org", organization_id=org.id)
    _, outsider_key = await accounts.create_api_key(outsider.id, "outsider")

    artist_direct = await artists.create_artist("Direct Artist", owner.id)
    artist_lonely = await artists.create_artist("Lonely Artist", outsider.id)
    artist_org = await artists.create_artist("Org Artist", admin.id, org.id)
    # Only the org link should grant access to artist_org
    await db_session.execute(
        delete(AccountArtist).where(AccountArtist.artist_id == artist_org.id)
    )
    await db_session.commit()

    return SimpleNamespace(
        owner=str(owner.id),
        admin=str(admin.id),
        member=str(member.id),
        outsider=str(outsider.id),
        org=str(org.id),
        other_org=str(other_org.id),
        owner_key=owner_key,
        org_key=org_key,
        outsider_key=outsider_key,
        owner_token=create_access_token(str(owner.id)),
        artist_direct=str(artist_direct.id),
        artist_org=str(artist_org.id),
        artist_lonely=str(artist_lonely.id),
    )
