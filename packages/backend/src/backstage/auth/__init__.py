"""Authentication and authorization.

Learn: Every request is resolved into an AuthContext by three cooperating
components, each usable on its own:

1. Credential authenticator → exactly one of x-api-key or Bearer token
2. Account override validator → may the caller act as another account?
3. Artist access checker → may the account reach this artist?

Denials are returned as AuthFailure values, never raised. Every lookup
error or timeout counts as a denial (fail closed).
"""
