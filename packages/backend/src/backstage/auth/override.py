"""Account override validator — may the caller act as another account?

Learn: A request can name a target account (body/query account_id). The
rules, in order:

1. Self-access: target == current → allowed, no lookup at all
2. Org delegation: the credential carries an org and the target is a
   member of that org → allowed
3. Everything else → AccessDenied (403)

A failing membership lookup counts as "not a member" and falls through to
rule 3. The same membership rule backs organization_id checks.
"""

from dataclasses import dataclass
from typing import Optional, Union

import structlog

from backstage.auth.context import AccessLookups, LookupFailed, guarded
from backstage.auth.errors import (
    ACCOUNT_DENIED_MESSAGE,
    ORGANIZATION_DENIED_MESSAGE,
    AccessDenied,
)
from backstage.config import settings

logger = structlog.get_logger()


@dataclass(frozen=True)
class OverrideGranted:
    account_id: str


class AccountOverrideValidator:
    def __init__(self, lookups: AccessLookups, timeout: Optional[float] = None):
        self.lookups = lookups
        self.timeout = timeout or settings.lookup_timeout_seconds

    async def is_member(self, org_id: str, account_id: str) -> bool:
        """Membership check that answers False on any lookup failure."""
        try:
            return bool(
                await guarded(
                    "is_org_member",
                    self.lookups.is_org_member(org_id, account_id),
                    self.timeout,
                )
            )
        except LookupFailed:
            return False

    async def validate_override(
        self,
        current_account_id: str,
        target_account_id: str,
        org_id: Optional[str],
    ) -> Union[OverrideGranted, AccessDenied]:
        if target_account_id == current_account_id:
            return OverrideGranted(account_id=target_account_id)

        if org_id and await self.is_member(org_id, target_account_id):
            return OverrideGranted(account_id=target_account_id)

        logger.info(
            "auth.override_denied",
            current_account_id=current_account_id,
            target_account_id=target_account_id,
            org_id=org_id,
        )
        return AccessDenied(ACCOUNT_DENIED_MESSAGE)

    async def validate_organization_access(
        self, account_id: str, organization_id: str
    ) -> Optional[AccessDenied]:
        """Return None when account_id belongs to organization_id, else a denial."""
        if await self.is_member(organization_id, account_id):
            return None
        logger.info(
            "auth.organization_denied",
            account_id=account_id,
            organization_id=organization_id,
        )
        return AccessDenied(ORGANIZATION_DENIED_MESSAGE)
