"""Backstage — backend-for-frontend for the artist management platform.

The HTTP layer in front of accounts, organizations, artists, and API keys.
Every request passes through the auth context resolver, which decides which
account the caller may act as and which artists it may reach.
"""

__version__ = "0.1.0"
