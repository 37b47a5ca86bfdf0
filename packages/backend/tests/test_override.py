"""Account override validator tests."""

import pytest

from backstage.auth.errors import (
    ACCOUNT_DENIED_MESSAGE,
    ORGANIZATION_DENIED_MESSAGE,
    AccessDenied,
)
from backstage.auth.override import AccountOverrideValidator, OverrideGranted


@pytest.mark.asyncio
@pytest.mark.parametrize("org_id", [None, "org-9", "org-unknown"])
async def test_self_access_needs_no_lookup(fake_lookups, org_id):
    lookups = fake_lookups(failing={"is_org_member"})
    result = await AccountOverrideValidator(lookups).validate_override(
        current_account_id="acc-1", target_account_id="acc-1", org_id=org_id
    )

    assert result == OverrideGranted(account_id="acc-1")
    assert lookups.calls["is_org_member"] == 0


@pytest.mark.asyncio
async def test_org_key_can_act_as_member(fake_lookups):
    lookups = fake_lookups(memberships={("org-9", "member-5")})
    result = await AccountOverrideValidator(lookups).validate_override(
        current_account_id="org-admin", target_account_id="member-5", org_id="org-9"
    )

    assert result == OverrideGranted(account_id="member-5")
    assert lookups.member_checks == [("org-9", "member-5")]


@pytest.mark.asyncio
async def test_org_key_cannot_act_as_non_member(fake_lookups):
    lookups = fake_lookups(memberships={("org-9", "member-5")})
    result = await AccountOverrideValidator(lookups).validate_override(
        current_account_id="org-admin", target_account_id="stranger", org_id="org-9"
    )

    assert isinstance(result, AccessDenied)
    assert result.status == 403
    assert result.message == ACCOUNT_DENIED_MESSAGE


@pytest.mark.asyncio
async def test_personal_key_cannot_act_as_other(fake_lookups):
    # Membership of the target is irrelevant without an org on the credential
    lookups = fake_lookups(memberships={("org-9", "acc-2")})
    result = await AccountOverrideValidator(lookups).validate_override(
        current_account_id="acc-1", target_account_id="acc-2", org_id=None
    )

    assert isinstance(result, AccessDenied)
    assert lookups.calls["is_org_member"] == 0


@pytest.mark.asyncio
async def test_membership_error_denies(fake_lookups):
    lookups = fake_lookups(
        memberships={("org-9", "member-5")}, failing={"is_org_member"}
    )
    result = await AccountOverrideValidator(lookups).validate_override(
        current_account_id="org-admin", target_account_id="member-5", org_id="org-9"
    )

    assert isinstance(result, AccessDenied)


@pytest.mark.asyncio
async def test_membership_timeout_denies(fake_lookups):
    lookups = fake_lookups(
        memberships={("org-9", "member-5")}, hanging={"is_org_member"}
    )
    result = await AccountOverrideValidator(lookups, timeout=0.05).validate_override(
        current_account_id="org-admin", target_account_id="member-5", org_id="org-9"
    )

    assert isinstance(result, AccessDenied)


# ═══════════════════════════════════════════════════════════
# organization_id access
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_organization_access_for_member(fake_lookups):
    lookups = fake_lookups(memberships={("org-3", "acc-1")})
    denied = await AccountOverrideValidator(lookups).validate_organization_access(
        "acc-1", "org-3"
    )
    assert denied is None


@pytest.mark.asyncio
async def test_organization_access_for_non_member(fake_lookups):
    denied = await AccountOverrideValidator(fake_lookups()).validate_organization_access(
        "acc-1", "org-3"
    )
    assert isinstance(denied, AccessDenied)
    assert denied.status == 403
    assert denied.message == ORGANIZATION_DENIED_MESSAGE


@pytest.mark.asyncio
async def test_organization_access_error_denies(fake_lookups):
    lookups = fake_lookups(
        memberships={("org-3", "acc-1")}, failing={"is_org_member"}
    )
    denied = await AccountOverrideValidator(lookups).validate_organization_access(
        "acc-1", "org-3"
    )
    assert isinstance(denied, AccessDenied)
