"""Artist API routes.

Learn: Every artist route goes through the resolver first. Reading a single
artist additionally runs the artist access checker, and the access check
happens before the row is fetched. A denied caller gets the same 403
whether or not the artist exists.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backstage.auth.context import AuthContext
from backstage.auth.dependencies import (
    Credentials,
    ensure_artist_access,
    get_credentials,
    get_query_auth_context,
    get_resolver,
    resolve_auth_context,
)
from backstage.auth.errors import ApiError
from backstage.auth.resolver import AuthContextResolver
from backstage.db.engine import get_db
from backstage.schemas.artist import ArtistCreate, ArtistRead
from backstage.services.access_store import as_uuid
from backstage.services.artist_service import ArtistService

router = APIRouter(prefix="/artists")


def _svc(db: AsyncSession = Depends(get_db)) -> ArtistService:
    return ArtistService(db)


@router.post("", response_model=ArtistRead, status_code=201)
async def create_artist(
    body: ArtistCreate,
    credentials: Credentials = Depends(get_credentials),
    resolver: AuthContextResolver = Depends(get_resolver),
    svc: ArtistService = Depends(_svc),
):
    """Create an artist owned by the resolved account.

    account_id lets an org key create on behalf of a member; organization_id
    links the new artist to an org the account belongs to.
    """
    ctx = await resolve_auth_context(
        resolver,
        credentials,
        account_id=body.account_id,
        organization_id=body.organization_id,
    )
    artist = await svc.create_artist(
        name=body.name,
        account_id=uuid.UUID(ctx.account_id),
        organization_id=uuid.UUID(body.organization_id) if body.organization_id else None,
    )
    await svc.db.commit()
    return artist


@router.get("", response_model=list[ArtistRead])
async def list_artists(
    ctx: AuthContext = Depends(get_query_auth_context),
    svc: ArtistService = Depends(_svc),
):
    return await svc.list_accessible(uuid.UUID(ctx.account_id))


@router.get("/{artist_id}", response_model=ArtistRead)
async def get_artist(
    artist_id: str,
    ctx: AuthContext = Depends(get_query_auth_context),
    resolver: AuthContextResolver = Depends(get_resolver),
    svc: ArtistService = Depends(_svc),
):
    await ensure_artist_access(resolver, ctx.account_id, artist_id)

    artist = await svc.get_artist(as_uuid(artist_id))
    if not artist:
        raise ApiError(404, "Artist not found")
    return artist
