"""Postgres wiring for the event log, course structure and snapshots.

With DATABASE_URL set, one asyncpg-backed engine serves every request.  A
request's unit of work is a `session_scope()`:

  append event → SAVEPOINT → recompute + upsert snapshot → release
  → commit (handler, before cache invalidation) → scope exit

Without DATABASE_URL, `engine` and `async_session_factory` stay None and
tracker.api.dependencies hands out the in-memory repositories instead.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from tracker.core.config import SETTINGS

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base shared by tracker.db.tables."""


if SETTINGS.database_url:
    engine = create_async_engine(
        SETTINGS.database_url,
        echo=SETTINGS.is_dev,
        pool_size=5,
        max_overflow=10,
        # Drop dead pooled connections before handing them out.
        pool_pre_ping=True,
    )
    # Snapshots and events are returned as frozen dataclasses after the
    # handler commits, so rows must stay readable past the commit.
    async_session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
else:
    engine = None
    async_session_factory = None


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Session for one request.

    Anything not yet committed when the block exits is committed; an
    exception rolls the whole request back, event append included.
    """
    if async_session_factory is None:
        raise RuntimeError("DATABASE_URL is not configured; no event store session")
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def lifespan_db():
    """Dispose of the connection pool on shutdown."""
    if engine is None:
        logger.info("No DATABASE_URL configured, events and snapshots are in-memory")
        yield
        return

    logger.info("Event store engine ready: %s", engine.url.render_as_string())
    yield
    await engine.dispose()
    logger.info("Event store engine disposed")
