"""Credential authenticator — headers in, AuthContext (or failure) out.

Learn: Two credentials are supported and exactly one must be present:

1. x-api-key: <key>              → account + optional org (org keys)
2. Authorization: Bearer <token> → account only, org is always None

Both-present and both-absent are rejected before any lookup runs, so a
caller can never get one credential silently preferred over the other.
"""

import re
from typing import Optional, Union

import structlog

from backstage.auth.context import AccessLookups, AuthContext, LookupFailed, guarded
from backstage.auth.errors import (
    INVALID_API_KEY_MESSAGE,
    INVALID_TOKEN_MESSAGE,
    AuthFailure,
    InvalidCredential,
    MissingOrAmbiguousCredential,
)
from backstage.config import settings

logger = structlog.get_logger()

_BEARER_PREFIX = re.compile(r"^Bearer\s+", re.IGNORECASE)


def strip_bearer(authorization: str) -> str:
    return _BEARER_PREFIX.sub("", authorization, count=1).strip()


class CredentialAuthenticator:
    """Resolve raw credential headers into an AuthContext."""

    def __init__(self, lookups: AccessLookups, timeout: Optional[float] = None):
        self.lookups = lookups
        self.timeout = timeout or settings.lookup_timeout_seconds

    async def authenticate(
        self,
        api_key: Optional[str],
        authorization: Optional[str],
    ) -> Union[AuthContext, AuthFailure]:
        has_api_key = bool(api_key)
        has_bearer = bool(authorization)

        if has_api_key == has_bearer:
            logger.info(
                "auth.credential_count_invalid",
                has_api_key=has_api_key,
                has_bearer=has_bearer,
            )
            return MissingOrAmbiguousCredential()

        if has_api_key:
            return await self._authenticate_api_key(api_key)
        return await self._authenticate_bearer(authorization)

    async def _authenticate_api_key(
        self, api_key: str
    ) -> Union[AuthContext, AuthFailure]:
        try:
            details = await guarded(
                "lookup_api_key", self.lookups.lookup_api_key(api_key), self.timeout
            )
        except LookupFailed:
            return InvalidCredential(INVALID_API_KEY_MESSAGE)

        if details is None:
            logger.info("auth.api_key_invalid")
            return InvalidCredential(INVALID_API_KEY_MESSAGE)

        return AuthContext(
            account_id=details.account_id,
            org_id=details.org_id,
            auth_token=api_key,
        )

    async def _authenticate_bearer(
        self, authorization: str
    ) -> Union[AuthContext, AuthFailure]:
        token = strip_bearer(authorization)
        if not token:
            return InvalidCredential(INVALID_TOKEN_MESSAGE)

        try:
            account_id = await guarded(
                "lookup_bearer_principal",
                self.lookups.lookup_bearer_principal(token),
                self.timeout,
            )
        except LookupFailed:
            return InvalidCredential(INVALID_TOKEN_MESSAGE)

        if not account_id:
            logger.info("auth.bearer_invalid")
            return InvalidCredential(INVALID_TOKEN_MESSAGE)

        # Bearer tokens never carry an organization.
        return AuthContext(account_id=account_id, org_id=None, auth_token=token)
