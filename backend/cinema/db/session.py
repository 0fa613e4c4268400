"""
Async engine and session factory.

`get_db` is the FastAPI dependency: one session per request, committed when
the handler returns normally and rolled back when it raises. Services that
need their own transaction boundary (booking confirmation) commit or roll
back explicitly; the trailing commit is then a no-op.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from cinema.core.config import get_settings
from cinema.db.base import Base

settings = get_settings()


def build_engine(url: str, sqlite: bool = False) -> AsyncEngine:
    if sqlite:
        # SQLite has no server-side pool to size
        return create_async_engine(url, echo=settings.DEBUG)
    return create_async_engine(
        url,
        echo=settings.DEBUG,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
    )


engine = build_engine(settings.DATABASE_URL, sqlite=settings.is_sqlite)

SessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create tables directly; development only. Production uses Alembic."""
    import cinema.models  # noqa: F401 - register models on Base.metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
