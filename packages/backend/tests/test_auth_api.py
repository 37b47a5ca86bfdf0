"""Auth context API tests — the full pipeline over HTTP.

Learn: These go through the real headers → SqlAccessStore → resolver →
ApiError handler path, and check the JSON error contract byte for byte.
"""

import uuid

import pytest
from sqlalchemy import delete

from backstage.auth.errors import (
    ACCOUNT_DENIED_MESSAGE,
    AMBIGUOUS_CREDENTIAL_MESSAGE,
    INVALID_API_KEY_MESSAGE,
    INVALID_TOKEN_MESSAGE,
    ORGANIZATION_DENIED_MESSAGE,
)
from backstage.db.models import AccountOrganization

URL = "/api/v1/auth/context"


# ═══════════════════════════════════════════════════════════
# Credentials
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_personal_key(client, world):
    r = await client.get(URL, headers={"x-api-key": world.owner_key})
    assert r.status_code == 200
    assert r.json() == {"account_id": world.owner, "org_id": None}


@pytest.mark.asyncio
async def test_org_key(client, world):
    r = await client.get(URL, headers={"x-api-key": world.org_key})
    assert r.status_code == 200
    assert r.json() == {"account_id": world.admin, "org_id": world.org}


@pytest.mark.asyncio
async def test_bearer_token(client, world):
    r = await client.get(URL, headers={"Authorization": f"Bearer {world.owner_token}"})
    assert r.status_code == 200
    assert r.json() == {"account_id": world.owner, "org_id": None}


@pytest.mark.asyncio
async def test_no_credentials(client, world):
    r = await client.get(URL)
    assert r.status_code == 401
    assert r.json() == {"status": "error", "error": AMBIGUOUS_CREDENTIAL_MESSAGE}


@pytest.mark.asyncio
async def test_both_credentials(client, world):
    r = await client.get(
        URL,
        headers={
            "x-api-key": world.owner_key,
            "Authorization": f"Bearer {world.owner_token}",
        },
    )
    assert r.status_code == 401
    assert r.json() == {"status": "error", "error": AMBIGUOUS_CREDENTIAL_MESSAGE}


@pytest.mark.asyncio
async def test_invalid_api_key(client, world):
    r = await client.get(URL, headers={"x-api-key": "bk_nope"})
    assert r.status_code == 401
    assert r.json() == {"status": "error", "error": INVALID_API_KEY_MESSAGE}


@pytest.mark.asyncio
async def test_invalid_bearer(client, world):
    r = await client.get(URL, headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
    assert r.json() == {"status": "error", "error": INVALID_TOKEN_MESSAGE}


# ═══════════════════════════════════════════════════════════
# Overrides
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_org_key_acts_as_member(client, world):
    r = await client.get(
        URL, params={"account_id": world.member}, headers={"x-api-key": world.org_key}
    )
    assert r.status_code == 200
    assert r.json() == {"account_id": world.member, "org_id": world.org}


@pytest.mark.asyncio
async def test_org_key_cannot_act_as_outsider(client, world):
    r = await client.get(
        URL, params={"account_id": world.outsider}, headers={"x-api-key": world.org_key}
    )
    assert r.status_code == 403
    assert r.json() == {"status": "error", "error": ACCOUNT_DENIED_MESSAGE}


@pytest.mark.asyncio
async def test_personal_key_self_override(client, world):
    r = await client.get(
        URL, params={"account_id": world.owner}, headers={"x-api-key": world.owner_key}
    )
    assert r.status_code == 200
    assert r.json()["account_id"] == world.owner


@pytest.mark.asyncio
async def test_personal_key_cannot_act_as_other(client, world):
    r = await client.get(
        URL, params={"account_id": world.member}, headers={"x-api-key": world.owner_key}
    )
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_bearer_cannot_act_as_other(client, world):
    r = await client.get(
        URL,
        params={"account_id": world.member},
        headers={"Authorization": f"Bearer {world.owner_token}"},
    )
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_organization_id_for_member(client, world):
    r = await client.get(
        URL,
        params={"account_id": world.member, "organization_id": world.org},
        headers={"x-api-key": world.org_key},
    )
    assert r.status_code == 200
    assert r.json() == {"account_id": world.member, "org_id": world.org}


@pytest.mark.asyncio
async def test_organization_id_for_non_member(client, world):
    r = await client.get(
        URL,
        params={"organization_id": world.other_org},
        headers={"x-api-key": world.owner_key},
    )
    assert r.status_code == 403
    assert r.json() == {"status": "error", "error": ORGANIZATION_DENIED_MESSAGE}


@pytest.mark.asyncio
async def test_revoked_membership_takes_effect_immediately(client, world, db_session):
    params = {"account_id": world.member}
    headers = {"x-api-key": world.org_key}
    assert (await client.get(URL, params=params, headers=headers)).status_code == 200

    await db_session.execute(
        delete(AccountOrganization).where(
            AccountOrganization.account_id == uuid.UUID(world.member)
        )
    )
    await db_session.commit()

    assert (await client.get(URL, params=params, headers=headers)).status_code == 403


# ═══════════════════════════════════════════════════════════
# Query id normalisation
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_self_override_in_uppercase(client, world):
    r = await client.get(
        URL,
        params={"account_id": world.owner.upper()},
        headers={"x-api-key": world.owner_key},
    )
    assert r.status_code == 200
    assert r.json()["account_id"] == world.owner


@pytest.mark.asyncio
async def test_member_override_is_canonicalised(client, world):
    r = await client.get(
        URL,
        params={
            "account_id": world.member.replace("-", "").upper(),
            "organization_id": world.org.upper(),
        },
        headers={"x-api-key": world.org_key},
    )
    assert r.status_code == 200
    assert r.json() == {"account_id": world.member, "org_id": world.org}


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["account_id", "organization_id"])
async def test_query_ids_must_be_uuids(client, world, field):
    r = await client.get(
        URL, params={field: "acc-2"}, headers={"x-api-key": world.owner_key}
    )
    assert r.status_code == 400
    assert r.json() == {
        "status": "error",
        "missing_fields": [field],
        "error": f"{field} must be a valid UUID",
    }
