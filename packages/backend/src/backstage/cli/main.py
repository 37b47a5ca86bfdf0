"""Backstage admin CLI.

Usage:
    backstage create-account "Jane Doe"             # New account (prints id)
    backstage create-org "Label Co"                 # New organization
    backstage add-member ORG_ID ACCOUNT_ID          # Membership
    backstage issue-key ACCOUNT_ID --org-id ORG_ID  # Mint an (org) API key
    backstage grant-artist ACCOUNT_ID ARTIST_ID     # Direct artist grant
    backstage mint-token ACCOUNT_ID                 # Dev bearer token

    backstage whoami --account-id ACCOUNT_ID        # Ask the API what we resolve to
    backstage artists                               # Artists we can reach
    backstage check-artist ARTIST_ID                # 200 or 403?

Admin commands talk to the database directly (BACKSTAGE_DATABASE_URL).
API commands talk HTTP to BACKSTAGE_API_URL with BACKSTAGE_API_KEY or
BACKSTAGE_TOKEN as the credential; exactly one must be set.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
import uuid
from typing import Optional

import click
import httpx

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("BACKSTAGE_API_URL", DEFAULT_API_URL).rstrip("/")


def _auth_headers() -> dict[str, str]:
    api_key = os.environ.get("BACKSTAGE_API_KEY")
    token = os.environ.get("BACKSTAGE_TOKEN")
    if bool(api_key) == bool(token):
        click.secho(
            "Error: set exactly one of BACKSTAGE_API_KEY or BACKSTAGE_TOKEN",
            fg="red",
            err=True,
        )
        sys.exit(1)
    if api_key:
        return {"x-api-key": api_key}
    return {"Authorization": f"Bearer {token}"}


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=_api_url(), headers=_auth_headers(), timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Offloads to a thread when a loop is already running (e.g. CliRunner
    inside an async test).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _uuid(value: str, name: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        click.secho(f"Error: {name} must be a valid UUID", fg="red", err=True)
        sys.exit(1)


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _fail(resp: httpx.Response) -> None:
    try:
        message = resp.json().get("error", resp.text)
    except ValueError:
        message = resp.text
    click.secho(f"{resp.status_code}: {message}", fg="red", err=True)
    sys.exit(1)


async def _with_session(fn):
    from backstage.db.engine import async_session_factory, engine
    from backstage.services.account_service import AccountService

    try:
        async with async_session_factory() as session:
            result = await fn(AccountService(session))
            await session.commit()
            return result
    finally:
        await engine.dispose()


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="backstage")
def main():
    """Backstage — accounts, organizations, keys, and access checks."""


# ---------------------------------------------------------------------------
# Admin commands (database)
# ---------------------------------------------------------------------------


@main.command("create-account")
@click.argument("name")
def create_account(name: str):
    """Create an account and print its id."""
    account = _run(_with_session(lambda svc: svc.create_account(name)))
    click.echo(str(account.id))


@main.command("create-org")
@click.argument("name")
def create_org(name: str):
    """Create an organization and print its id."""
    org = _run(_with_session(lambda svc: svc.create_org(name)))
    click.echo(str(org.id))


@main.command("add-member")
@click.argument("org_id")
@click.argument("account_id")
def add_member(org_id: str, account_id: str):
    """Make ACCOUNT_ID a member of ORG_ID."""
    oid, aid = _uuid(org_id, "org_id"), _uuid(account_id, "account_id")
    _run(_with_session(lambda svc: svc.add_member(oid, aid)))
    click.secho(f"{account_id} is now a member of {org_id}", fg="green")


@main.command("issue-key")
@click.argument("account_id")
@click.option("--name", "-n", default="cli", help="Key label")
@click.option("--org-id", "-o", help="Organization UUID (makes an org key)")
@click.option("--expires-days", type=int, help="Expire after N days")
def issue_key(account_id: str, name: str, org_id: Optional[str],
              expires_days: Optional[int]):
    """Mint an API key for ACCOUNT_ID. The key is printed once."""
    aid = _uuid(account_id, "account_id")
    oid = _uuid(org_id, "org_id") if org_id else None

    async def _issue(svc):
        from backstage.services.access_store import SqlAccessStore

        if oid is not None and not await SqlAccessStore(svc.db).is_org_member(
            str(oid), str(aid)
        ):
            return None
        return await svc.create_api_key(aid, name, oid, expires_days)

    issued = _run(_with_session(_issue))
    if issued is None:
        click.secho(f"Error: {account_id} is not a member of {org_id}", fg="red", err=True)
        sys.exit(1)
    api_key, raw_key = issued
    click.secho(f"Key {api_key.prefix}… ({api_key.id})", bold=True)
    click.echo(raw_key)


@main.command("grant-artist")
@click.argument("account_id")
@click.argument("artist_id")
def grant_artist(account_id: str, artist_id: str):
    """Give ACCOUNT_ID direct access to ARTIST_ID."""
    from backstage.services.artist_service import ArtistService

    aid, rid = _uuid(account_id, "account_id"), _uuid(artist_id, "artist_id")
    _run(_with_session(lambda svc: ArtistService(svc.db).grant(aid, rid)))
    click.secho(f"Granted {artist_id} to {account_id}", fg="green")


@main.command("mint-token")
@click.argument("account_id")
@click.option("--minutes", "-m", type=int, help="Lifetime in minutes")
def mint_token(account_id: str, minutes: Optional[int]):
    """Sign a bearer token for ACCOUNT_ID with the local JWT secret."""
    from backstage.auth.jwt import create_access_token

    click.echo(create_access_token(str(_uuid(account_id, "account_id")), minutes))


# ---------------------------------------------------------------------------
# API commands (HTTP)
# ---------------------------------------------------------------------------


@main.command()
@click.option("--account-id", "-a", help="Act as this account")
@click.option("--organization-id", "-o", help="Within this organization")
def whoami(account_id: Optional[str], organization_id: Optional[str]):
    """Show the auth context the API resolves for our credential."""

    async def _impl():
        params = {}
        if account_id:
            params["account_id"] = account_id
        if organization_id:
            params["organization_id"] = organization_id
        async with _client() as c:
            r = await c.get("/api/v1/auth/context", params=params)
        if r.status_code != 200:
            _fail(r)
        click.echo(_pretty_json(r.json()))

    _run(_impl())


@main.command()
@click.option("--account-id", "-a", help="Act as this account")
def artists(account_id: Optional[str]):
    """List artists the (resolved) account can reach."""

    async def _impl():
        params = {"account_id": account_id} if account_id else {}
        async with _client() as c:
            r = await c.get("/api/v1/artists", params=params)
        if r.status_code != 200:
            _fail(r)
        rows = r.json()
        if not rows:
            click.echo("No artists.")
            return
        for row in rows:
            click.echo(f"{row['id']}  {row['name']}")

    _run(_impl())


@main.command("check-artist")
@click.argument("artist_id")
@click.option("--account-id", "-a", help="Act as this account")
def check_artist(artist_id: str, account_id: Optional[str]):
    """Exit 0 if we can access ARTIST_ID, 1 otherwise."""

    async def _impl():
        params = {"account_id": account_id} if account_id else {}
        async with _client() as c:
            r = await c.get(f"/api/v1/artists/{artist_id}", params=params)
        if r.status_code != 200:
            _fail(r)
        click.secho(f"allowed: {r.json()['name']}", fg="green")

    _run(_impl())


if __name__ == "__main__":
    main()
