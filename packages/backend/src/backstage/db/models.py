"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Alembic auto-generates migrations by comparing these
models to the actual DB.

Key concepts:
- UUID primary keys via the dialect-neutral Uuid type (native UUID on
  PostgreSQL, CHAR(32) elsewhere — tests run against SQLite)
- Join tables for every relation the access-control layer reads:
  memberships, artist grants, and artist-organization links
- server_default for DB-level defaults (work even for raw SQL inserts)
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


# ══════════════════════════════════════════════════════════════
# Principals: accounts and organizations
# ══════════════════════════════════════════════════════════════


class Account(Base):
    """A billing/identity principal.

    Learn: Both people and organization admin identities are accounts.
    Every credential resolves to exactly one account id.
    """

    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=new_uuid
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    api_keys: Mapped[list["AccountApiKey"]] = relationship(
        back_populates="account", cascade="all, delete-orphan"
    )


class Organization(Base):
    """A grouping of accounts with shared delegation rights."""

    __tablename__ = "organizations"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=new_uuid
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class AccountOrganization(Base):
    """Membership — account_id is a member of organization_id.

    Learn: This one table drives both org delegation (an org key acting
    as a member account) and the shared-org path of artist access.
    """

    __tablename__ = "account_organization_ids"
    __table_args__ = (
        UniqueConstraint(
            "account_id", "organization_id", name="uq_account_organization"
        ),
        Index("idx_account_org_org", "organization_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=new_uuid
    )
    account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class AccountApiKey(Base):
    """API key for programmatic access.

    Learn: The key itself is only shown once (on creation). We store the
    SHA-256 hash and a short prefix for identification. A key minted with
    an organization_id is an "org key": it may act as any member account.
    """

    __tablename__ = "account_api_keys"
    __table_args__ = (
        Index("idx_api_keys_account", "account_id"),
        Index("idx_api_keys_hash", "key_hash", unique=True),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=new_uuid
    )
    account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    organization_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    key_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    prefix: Mapped[str] = mapped_column(String(12), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    account: Mapped["Account"] = relationship(back_populates="api_keys")


# ══════════════════════════════════════════════════════════════
# Artists and who may reach them
# ══════════════════════════════════════════════════════════════


class Artist(Base):
    """An artist record — the resource most routes are scoped to."""

    __tablename__ = "artists"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=new_uuid
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class AccountArtist(Base):
    """ArtistGrant — account_id has direct access to artist_id."""

    __tablename__ = "account_artist_ids"
    __table_args__ = (
        UniqueConstraint("account_id", "artist_id", name="uq_account_artist"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=new_uuid
    )
    account_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    artist_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("artists.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class ArtistOrganization(Base):
    """ArtistOrg — artist_id belongs to organization_id (zero or more)."""

    __tablename__ = "artist_organization_ids"
    __table_args__ = (
        UniqueConstraint(
            "artist_id", "organization_id", name="uq_artist_organization"
        ),
        Index("idx_artist_org_artist", "artist_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=new_uuid
    )
    artist_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("artists.id", ondelete="CASCADE"), nullable=False
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
