"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode: create_async_engine for connection pooling,
async_sessionmaker for per-operation sessions. Services hold the factory and
open a session per operation, so each call commits or rolls back as a unit.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from nexusadmin.config import settings


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    # SQLite has no server-side pool to size
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=echo)
    return create_async_engine(
        database_url,
        echo=echo,
        pool_size=5,
        max_overflow=15,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.database_url, echo=settings.debug)

# Session factory: each operation gets its own session.
async_session_factory = build_session_factory(engine)


async def create_all(target: AsyncEngine) -> None:
    """Create tables from the ORM metadata (dev bootstrap and tests)."""
    from nexusadmin.db.models import Base

    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
