"""
Database connection management with SQLAlchemy async.
Provides session dependency injection, upsert helpers and sentinel seeding.
"""
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from typing import Annotated, Any

from fastapi import Depends, Request
from sqlalchemy import text
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from hitcount.core.config import settings
from hitcount.core.logging import get_logger

logger = get_logger(__name__)

SessionFactory = async_sessionmaker[AsyncSession]


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all models."""
    pass


def normalize_database_url(database_url: str) -> str:
    """Convert postgresql:// to postgresql+asyncpg://."""
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return database_url


def create_engine(database_url: str | None = None) -> AsyncEngine:
    """Create async database engine with proper configuration."""
    url = normalize_database_url(database_url or settings.database_url)

    if url.startswith("sqlite"):
        return create_async_engine(url, echo=settings.database_echo)

    return create_async_engine(
        url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        echo=settings.database_echo,
        pool_pre_ping=True,  # Verify connections before use
    )


def create_session_factory(bind: AsyncEngine) -> SessionFactory:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# Global engine and session factory
engine = create_engine()
async_session_factory = create_session_factory(engine)


def get_session_factory(request: Request) -> SessionFactory:
    """Session factory for work that outlives the request (background hits)."""
    return getattr(request.app.state, "session_factory", async_session_factory)


async def get_db_session(
    factory: Annotated[SessionFactory, Depends(get_session_factory)],
) -> AsyncGenerator[AsyncSession, None]:
    """Dependency that provides a database session with automatic cleanup."""
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# Type alias for dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]


@asynccontextmanager
async def get_db_context(
    factory: SessionFactory | None = None,
) -> AsyncGenerator[AsyncSession, None]:
    """Context manager for database sessions outside of request context."""
    async with (factory or async_session_factory)() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def dialect_insert(session: AsyncSession) -> Callable[..., Any]:
    """
    Return the dialect-specific ``insert`` construct for the session's bind.

    Both the PostgreSQL and SQLite variants expose ``on_conflict_do_nothing``
    and ``on_conflict_do_update`` with the same signature.
    """
    name = session.get_bind().dialect.name
    if name == "postgresql":
        return postgresql.insert
    if name == "sqlite":
        return sqlite.insert
    raise NotImplementedError(f"Upserts are not supported on {name}")


# Tables whose id 1 is the reserved "unknown/direct" row
SENTINEL_TABLES = (
    ("refs", "ref_id"),
    ("browsers", "browser_id"),
    ("systems", "system_id"),
)


async def seed_defaults(session: AsyncSession) -> None:
    """
    Insert the id 1 sentinel rows and the default settings, if missing.

    Safe to run on every startup.
    """
    from hitcount.models import Browser, Referrer, Setting, SettingKey, System

    upsert = dialect_insert(session)
    await session.execute(
        upsert(Referrer).values(ref_id=1, ref="", ref_scheme="o").on_conflict_do_nothing()
    )
    await session.execute(
        upsert(Browser).values(browser_id=1, name="", version="").on_conflict_do_nothing()
    )
    await session.execute(
        upsert(System).values(system_id=1, name="", version="").on_conflict_do_nothing()
    )
    await session.execute(
        upsert(Setting)
        .values(
            [
                {"key": SettingKey.FIRST_HIT_AT, "value": None},
                {
                    "key": SettingKey.DATA_RETENTION_DAYS,
                    "value": str(settings.data_retention_days),
                },
                {"key": SettingKey.SITE_NAME, "value": settings.site_name},
            ]
        )
        .on_conflict_do_nothing()
    )

    if session.get_bind().dialect.name == "postgresql":
        # Explicit id 1 inserts do not advance the serial sequences
        for table, column in SENTINEL_TABLES:
            await session.execute(
                text(
                    f"SELECT setval(pg_get_serial_sequence('{table}', '{column}'), "
                    f"GREATEST((SELECT MAX({column}) FROM {table}), 1))"
                )
            )


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Create tables and seed the reserved rows."""
    bind = bind or engine
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with get_db_context(create_session_factory(bind)) as session:
        await seed_defaults(session)

    logger.info("Database initialized", dialect=bind.dialect.name)


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()
    logger.info("Database connections closed")
