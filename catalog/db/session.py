import ssl as _ssl
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from catalog.config import settings


def _clean_url(url: str) -> str:
    """Strip query params from DATABASE_URL; asyncpg doesn't accept sslmode, channel_binding, etc."""
    return url.split("?")[0]


def _connect_args() -> dict:
    # asyncpg takes SSL via connect_args, not the query string
    if settings.DATABASE_SSL:
        return {"ssl": _ssl.create_default_context()}
    return {}


engine = create_async_engine(
    _clean_url(settings.DATABASE_URL),
    echo=settings.DEBUG,
    pool_size=5,
    max_overflow=10,
    connect_args=_connect_args(),
)

async_session_factory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request: commit on success, roll back everything on error.

    Bulk tier replacement relies on this: the delete and the inserts land in
    the same transaction, so readers never see a product with zero tiers.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
