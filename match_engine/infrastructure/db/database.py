"""
Database Connection for the Match Engine

One lazily built async engine per process. Requests get a session through
`get_session`; the match cache's data source and other background work
use `get_session_context`.
"""

from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from match_engine.config.settings import settings
from match_engine.infrastructure.exceptions import ConfigurationError


ASYNC_DRIVER = "postgresql+asyncpg://"


def normalize_database_url(database_url: str) -> str:
    """Force the asyncpg driver onto plain PostgreSQL URLs."""
    for scheme in ("postgresql://", "postgres://"):
        if database_url.startswith(scheme):
            return ASYNC_DRIVER + database_url[len(scheme):]
    return database_url


class Database:
    """Engine and session factory, built on first use and dropped on close."""

    def __init__(self) -> None:
        self._engine: Optional[AsyncEngine] = None
        self._sessions: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def sessions(self) -> async_sessionmaker[AsyncSession]:
        if self._sessions is None:
            self._connect()
        return self._sessions

    def _connect(self) -> None:
        if not settings.database_url:
            raise ConfigurationError(
                "Missing database configuration",
                missing_keys=["DATABASE_URL"]
            )

        self._engine = create_async_engine(
            normalize_database_url(settings.database_url),
            echo=settings.database_echo,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_timeout=settings.database_pool_timeout,
            pool_pre_ping=True,
        )
        # Rows stay readable after commit; services hand them back to routes
        self._sessions = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._sessions = None


@lru_cache
def get_database() -> Database:
    return Database()


@asynccontextmanager
async def get_session_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Session scope outside a request.

    Commits when the block exits cleanly and rolls back when it raises.
    """
    async with get_database().sessions() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a request-scoped session."""
    async with get_session_context() as session:
        yield session


async def init_db() -> None:
    """Open the pool and check the database answers (app startup)."""
    async with get_database().sessions() as session:
        await session.execute(text("SELECT 1"))


async def close_db() -> None:
    await get_database().dispose()
