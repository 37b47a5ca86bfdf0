"""Artist service — create artists and list the ones an account can reach."""

import uuid
from typing import Optional

from sqlalchemy import select, union
from sqlalchemy.ext.asyncio import AsyncSession

from backstage.db.models import (
    AccountArtist,
    AccountOrganization,
    Artist,
    ArtistOrganization,
)


class ArtistService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_artist(
        self,
        name: str,
        account_id: uuid.UUID,
        organization_id: Optional[uuid.UUID] = None,
    ) -> Artist:
        """Create an artist, grant it to account_id, and optionally link it to an org."""
        artist = Artist(name=name)
        self.db.add(artist)
        await self.db.flush()

        self.db.add(AccountArtist(account_id=account_id, artist_id=artist.id))
        if organization_id:
            self.db.add(
                ArtistOrganization(artist_id=artist.id, organization_id=organization_id)
            )
        await self.db.flush()
        await self.db.refresh(artist)
        return artist

    async def grant(self, account_id: uuid.UUID, artist_id: uuid.UUID) -> AccountArtist:
        grant = AccountArtist(account_id=account_id, artist_id=artist_id)
        self.db.add(grant)
        await self.db.flush()
        return grant

    async def get_artist(self, artist_id: uuid.UUID) -> Artist | None:
        return await self.db.get(Artist, artist_id)

    async def list_accessible(self, account_id: uuid.UUID) -> list[Artist]:
        """Artists granted directly, plus artists of every org the account is in.

        Learn: Mirrors the artist access checker as one query, so the list
        never shows an artist the checker would refuse.
        """
        direct = select(AccountArtist.artist_id.label("artist_id")).where(
            AccountArtist.account_id == account_id
        )
        via_org = (
            select(ArtistOrganization.artist_id.label("artist_id"))
            .join(
                AccountOrganization,
                AccountOrganization.organization_id
                == ArtistOrganization.organization_id,
            )
            .where(AccountOrganization.account_id == account_id)
        )
        ids = union(direct, via_org).subquery()

        result = await self.db.execute(
            select(Artist)
            .where(Artist.id.in_(select(ids.c.artist_id)))
            .order_by(Artist.name)
        )
        return list(result.scalars().all())
