"""Bearer token creation and verification.

Learn: Bearer tokens are short-lived HS256 JWTs whose "sub" claim is the
account id. They carry no organization; org context only ever comes from
an org API key or an authorised organization_id field.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from backstage.config import settings


class TokenError(Exception):
    """Raised when token verification fails."""


def create_access_token(
    account_id: str,
    expires_minutes: Optional[int] = None,
) -> str:
    """Create a bearer token for an account."""
    now = datetime.now(timezone.utc)
    expires = now + timedelta(
        minutes=expires_minutes or settings.access_token_expire_minutes
    )
    payload = {
        "sub": account_id,
        "type": "access",
        "exp": expires,
        "iat": now,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict:
    """Verify and decode a bearer token.

    Returns the payload dict on success.
    Raises TokenError on failure.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")

    if payload.get("type") != "access":
        raise TokenError("Not an access token")
    return payload
