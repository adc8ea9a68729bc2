"""Database setup for SQLAlchemy with an async driver."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class Database:
    """Engine and session factory built once at process start."""

    def __init__(self, url: str, **engine_kwargs: Any) -> None:
        self.url = url
        options: dict[str, Any] = {"echo": False}
        if not make_url(url).drivername.startswith("sqlite"):
            # Survive Postgres restarts:
            # - pool_pre_ping: validate connections before using
            # - pool_recycle: recycle before server-side timeouts hit
            options.update(pool_pre_ping=True, pool_recycle=1800)
        options.update(engine_kwargs)
        self.engine: AsyncEngine = create_async_engine(url, **options)
        self.sessionmaker = async_sessionmaker(self.engine, expire_on_commit=False)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Provide a transactional scope around a series of operations."""

        async with self.sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def init(self, max_attempts: int = 5, delay: float = 5.0) -> None:
        """Create tables, retrying while the server comes up.

        If all attempts fail, the last exception is propagated.
        """

        # Import models so Base.metadata is populated
        from . import models  # noqa: F401

        last_exc: SQLAlchemyError | None = None
        for attempt in range(1, max_attempts + 1):
            try:
                async with self.engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
                logger.info("DB schema ensured (attempt %d)", attempt)
                return
            except SQLAlchemyError as exc:
                last_exc = exc
                if attempt == max_attempts:
                    break
                logger.warning(
                    "DB init attempt %d failed: %s. Retrying in %ss", attempt, exc, delay
                )
                await asyncio.sleep(delay)

        logger.error("DB init failed after %d attempts", max_attempts)
        if last_exc is not None:
            raise last_exc

    async def dispose(self) -> None:
        await self.engine.dispose()


__all__ = ["Base", "Database"]
