"""Artist access checker.

Learn: An account may reach an artist when either
1. it holds a direct grant (account_artist_ids), or
2. it belongs to at least one organization the artist belongs to.

The direct grant is checked first and short-circuits, so the common case
costs one query. Every lookup error answers False and stops the check.
"""

from typing import Optional

import structlog

from backstage.auth.context import AccessLookups, LookupFailed, guarded
from backstage.config import settings

logger = structlog.get_logger()


class ArtistAccessChecker:
    def __init__(self, lookups: AccessLookups, timeout: Optional[float] = None):
        self.lookups = lookups
        self.timeout = timeout or settings.lookup_timeout_seconds

    async def can_access(self, account_id: str, artist_id: str) -> bool:
        try:
            return await self._check(account_id, artist_id)
        except LookupFailed as e:
            logger.info(
                "access.artist_denied_on_error",
                account_id=account_id,
                artist_id=artist_id,
                lookup=e.lookup,
            )
            return False

    async def _check(self, account_id: str, artist_id: str) -> bool:
        direct = await guarded(
            "get_artist_direct_grant",
            self.lookups.get_artist_direct_grant(account_id, artist_id),
            self.timeout,
        )
        if direct:
            return True

        org_ids = await guarded(
            "get_artist_org_ids",
            self.lookups.get_artist_org_ids(artist_id),
            self.timeout,
        )
        org_ids = [org_id for org_id in org_ids or [] if org_id]
        if not org_ids:
            return False

        for org_id in org_ids:
            member = await guarded(
                "is_org_member",
                self.lookups.is_org_member(org_id, account_id),
                self.timeout,
            )
            if member:
                return True
        return False
