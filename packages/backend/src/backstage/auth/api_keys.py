"""API key generation and hashing.

Learn: Keys look like "bk_<random>". Only the SHA-256 hex digest is stored,
plus a short prefix so users can tell their keys apart in listings.
"""

import hashlib
import secrets

from backstage.config import settings

PREFIX_LENGTH = 10


def hash_api_key(raw_key: str) -> str:
    return hashlib.sha256(raw_key.encode()).hexdigest()


def generate_api_key() -> tuple[str, str, str]:
    """Return (raw_key, prefix, key_hash). The raw key is shown exactly once."""
    raw_key = f"{settings.api_key_prefix}{secrets.token_urlsafe(32)}"
    return raw_key, raw_key[:PREFIX_LENGTH], hash_api_key(raw_key)
