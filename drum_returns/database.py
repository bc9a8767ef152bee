"""Database engine, session factory, and declarative base.

All four business tables (companies, drums, return requests, return-period
overrides) and the two account tables live on a single `Base`.

Session dependency for FastAPI:
  - get_db()  → commits when the request handler returns, rolls back on error
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase

from drum_returns.config import settings


def _engine_options(url: str) -> dict:
    # SQLite (dev / tests) uses a static pool that rejects sizing arguments
    if url.startswith("sqlite"):
        return {}
    return {"pool_size": 20, "max_overflow": 10, "pool_pre_ping": True}


engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    **_engine_options(settings.database_url),
)

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


class Base(DeclarativeBase):
    pass


async def init_models(bind=None) -> None:
    """Create all tables. Used for local development and the test suite."""
    import drum_returns.models  # noqa: F401  (registers mappers)

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncSession:
    """Yield a session; commit on success, roll back on any exception."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
