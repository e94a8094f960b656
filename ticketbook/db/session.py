"""
Async engine and session factory.

Request handlers get a session through `get_db`, which commits when the
handler returns and rolls back if it raises. The booking ledger does not use
request sessions: it opens its own short transaction per operation from
`AsyncSessionLocal`.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ticketbook.core.config import get_settings

settings = get_settings()


def build_engine(url: str) -> AsyncEngine:
    if url.startswith("sqlite"):
        # SQLite picks its own pool; busy timeout lets concurrent writers queue
        return create_async_engine(url, connect_args={"timeout": settings.STORE_TIMEOUT_SECONDS})
    return create_async_engine(
        url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.DATABASE_URL)
AsyncSessionLocal = build_session_factory(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
