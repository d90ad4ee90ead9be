"""Async database engine and session management.

Usage:
    db = Database("sqlite+aiosqlite:///paper_portal.db")
    await db.init()

    async with db.session() as session:
        ...

    await db.dispose()
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from paper_portal.storage.exceptions import StoreError
from paper_portal.storage.tables import Base

logger = logging.getLogger(__name__)


class Database:
    """Owns one async engine and its session factory.

    Every session and ``init()`` runs under ``timeout_s``; the same bound is
    handed to the driver as its connect (and, for asyncpg, command) timeout.
    Driver, network and timeout failures all surface as ``StoreError``.
    """

    def __init__(self, url: str, echo: bool = False, timeout_s: float = 5.0) -> None:
        self.url = url
        self.timeout_s = timeout_s
        self.engine: AsyncEngine = create_async_engine(
            url,
            echo=echo,
            pool_pre_ping=True,
            connect_args=_connect_args(url, timeout_s),
        )
        self._session_factory = async_sessionmaker(
            bind=self.engine, class_=AsyncSession, expire_on_commit=False
        )

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def insert(self, table: Any) -> Any:
        """Dialect ``INSERT`` that supports ``ON CONFLICT`` clauses."""
        match self.dialect:
            case "postgresql":
                from sqlalchemy.dialects.postgresql import insert
            case "sqlite":
                from sqlalchemy.dialects.sqlite import insert
            case _:
                raise StoreError(f"Upserts are not supported on {self.dialect!r}")
        return insert(table)

    async def init(self) -> None:
        """Create missing tables."""
        try:
            async with asyncio.timeout(self.timeout_s):
                async with self.engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
        except _STORE_FAILURES as exc:
            raise StoreError(f"Database initialization failed: {_describe(exc)}") from exc
        logger.info("Database ready (%s)", self.dialect)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Transactional session: commit on success, roll back on error."""
        try:
            async with asyncio.timeout(self.timeout_s):
                async with self._session_factory() as session:
                    try:
                        yield session
                        await session.commit()
                    except Exception:
                        await session.rollback()
                        raise
        except _STORE_FAILURES as exc:
            raise StoreError(_describe(exc)) from exc

    async def dispose(self) -> None:
        await self.engine.dispose()


# Connection refused and friends are OSErrors; TimeoutError is one too.
_STORE_FAILURES = (SQLAlchemyError, OSError)


def _connect_args(url: str, timeout_s: float) -> dict[str, Any]:
    match make_url(url).get_backend_name():
        case "postgresql":
            return {"timeout": timeout_s, "command_timeout": timeout_s}
        case "sqlite":
            return {"timeout": timeout_s}
        case _:
            return {}


def _describe(exc: BaseException) -> str:
    if isinstance(exc, TimeoutError):
        return "database operation timed out"
    return str(exc) or exc.__class__.__name__
