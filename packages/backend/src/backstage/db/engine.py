"""Async SQLAlchemy engine and session factory.

The access store never touches a global client: every request gets its own
session from get_db() and the store is built around that session.

Learn: Pool sizing comes from Settings. SQLite URLs (tests, local
experiments) get no pool arguments, since its async driver uses a
pool class that rejects them.
"""

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from backstage.config import Settings, settings


def engine_options(cfg: Settings) -> dict:
    """Keyword arguments for create_async_engine under the given settings."""
    options: dict = {"echo": cfg.debug}
    if make_url(cfg.database_url).get_backend_name() == "sqlite":
        return options
    options.update(
        pool_size=cfg.db_pool_size,
        max_overflow=cfg.db_max_overflow,
        pool_timeout=cfg.db_pool_timeout_seconds,
        pool_pre_ping=True,
    )
    return options


engine = create_async_engine(settings.database_url, **engine_options(settings))

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """FastAPI dependency. Yields one session per request and closes it."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
