"""Async SQLAlchemy engine, declarative base, and error translation.

Uses SQLAlchemy 2.0 async. The default URL targets SQLite through aiosqlite;
PostgreSQL works through any async driver URL (e.g. postgresql+asyncpg://).
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from mention_reminder.errors import PersistenceError


class Base(DeclarativeBase):
    """Base class for all table models."""


def create_engine(database_url: str) -> AsyncEngine:
    """Create the async engine for the configured URL.

    In-memory SQLite shares a single connection so every session sees the
    same database.
    """
    in_memory = database_url.startswith("sqlite") and (
        ":memory:" in database_url or database_url.endswith("://")
    )
    if in_memory:
        return create_async_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(database_url, pool_pre_ping=True)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,  # Prevent lazy loading after commit
        autoflush=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def dialect_insert(engine: AsyncEngine):
    """Return the dialect-specific insert() that supports ON CONFLICT clauses."""
    name = engine.dialect.name
    if name == "postgresql":
        return postgresql.insert
    if name == "sqlite":
        return sqlite.insert
    raise PersistenceError(f"Unsupported database dialect for upserts: {name}")


@asynccontextmanager
async def transaction(
    sessions: async_sessionmaker[AsyncSession], action: str
) -> AsyncIterator[AsyncSession]:
    """Run one committed transaction, translating driver errors to PersistenceError."""
    try:
        async with sessions.begin() as session:
            yield session
    except SQLAlchemyError as exc:
        raise PersistenceError(f"{action} failed: {exc}") from exc
