# app/db/session.py
from __future__ import annotations

"""
Database engine & session dependencies (async only).

The engine is created at import but does not connect until first use, so
tests that override repositories never touch Postgres.

- `get_async_db`: request-scoped session for repositories (callers commit).
- `transactional_async_session`: one unit of work outside a request, used by
  the usage writer so the event insert and the counter bump commit together.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings

async_engine: AsyncEngine = create_async_engine(
    settings.ASYNC_DATABASE_URL,
    pool_pre_ping=True,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_recycle=settings.DB_POOL_RECYCLE_SECONDS,
    echo=settings.DB_ECHO,
)

async_session_maker = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        try:
            yield session
        except SQLAlchemyError:
            await session.rollback()
            raise


@asynccontextmanager
async def transactional_async_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session, session.begin():
        yield session


async def db_healthcheck() -> bool:
    """`SELECT 1` on a pooled connection; False (and logged) on any driver error."""
    try:
        async with async_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("DB healthcheck failed: {}", exc)
        return False
    return True


__all__ = [
    "async_engine",
    "async_session_maker",
    "get_async_db",
    "transactional_async_session",
    "db_healthcheck",
]
