from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tripdesk.config import settings

# one engine per process; connections are checked before reuse
engine = create_async_engine(str(settings.DATABASE_URL), echo=settings.DEBUG, pool_pre_ping=True)

# services open their own transaction with ``async with db.begin()``,
# so handlers must not issue statements on the session before calling them
async_session = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one session per request."""
    async with async_session() as session:
        yield session
