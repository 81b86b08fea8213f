from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

# Base class for models
Base = declarative_base()


def create_engine(database_url: str) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    SQLite gets NullPool (no real pooling with aiosqlite); every other
    backend uses SQLAlchemy's default async pool.
    """
    if "sqlite" in database_url:
        return create_async_engine(
            database_url,
            echo=False,
            poolclass=NullPool,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(
        database_url,
        echo=False,
        pool_pre_ping=True,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Create the async session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create tables and indexes, then probe the connection."""
    # Register models on Base.metadata
    from tir_takip import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.execute(text("SELECT 1"))


async def close_db(engine: AsyncEngine) -> None:
    """Close database connections."""
    await engine.dispose()
