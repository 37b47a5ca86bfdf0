"""Auth context resolver — the single entry point route handlers use.

Learn: Runs the components strictly in order, each feeding the next:

    authenticate → account_id override → organization_id access

A failure at any step is returned immediately; later steps never run.
Requests that name no override skip the validator entirely and keep the
credential's own account.
"""

from typing import Optional, Union

from backstage.auth.artist_access import ArtistAccessChecker
from backstage.auth.authenticator import CredentialAuthenticator
from backstage.auth.context import AccessLookups, AuthContext
from backstage.auth.errors import AuthFailure
from backstage.auth.override import AccountOverrideValidator


class AuthContextResolver:
    """Compose authenticator, override validator, and artist checker.

    All three share one AccessLookups, so in production they share the
    request's database session.
    """

    def __init__(self, lookups: AccessLookups, timeout: Optional[float] = None):
        self.authenticator = CredentialAuthenticator(lookups, timeout)
        self.overrides = AccountOverrideValidator(lookups, timeout)
        self.artists = ArtistAccessChecker(lookups, timeout)

    async def resolve(
        self,
        api_key: Optional[str],
        authorization: Optional[str],
        account_id: Optional[str] = None,
        organization_id: Optional[str] = None,
    ) -> Union[AuthContext, AuthFailure]:
        ctx = await self.authenticator.authenticate(api_key, authorization)
        if isinstance(ctx, AuthFailure):
            return ctx

        if account_id:
            granted = await self.overrides.validate_override(
                current_account_id=ctx.account_id,
                target_account_id=account_id,
                org_id=ctx.org_id,
            )
            if isinstance(granted, AuthFailure):
                return granted
            ctx = ctx.acting_as(granted.account_id)

        if organization_id:
            denied = await self.overrides.validate_organization_access(
                account_id=ctx.account_id,
                organization_id=organization_id,
            )
            if denied is not None:
                return denied
            ctx = ctx.within_org(organization_id)

        return ctx

    async def can_access_artist(self, account_id: str, artist_id: str) -> bool:
        return await self.artists.can_access(account_id, artist_id)
