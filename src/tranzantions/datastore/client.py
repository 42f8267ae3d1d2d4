"""Datastore client — async SQLAlchemy engine & session management.

Stores talk to the database through ``Datastore.scope``, which hands out a
session and turns driver-level failures into ``StoreUnavailableError`` so
the API and the poller see one error type for "database unreachable".
Constraint violations (``IntegrityError``) are left for the store to map
onto its own domain errors.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from tranzantions.datastore.engines import create_engine
from tranzantions.errors.app_errors import StoreUnavailableError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.orm import DeclarativeBase

    from tranzantions.config.settings import DatabaseConfig

logger = logging.getLogger(__name__)

_ERR_NOT_OPEN = "Datastore is not open. Call open() first."


class Datastore:
    """Owns the engine and session factory for the durable stores.

    Usage::

        ds = Datastore(db_config)
        await ds.open(base=Base)
        async with ds.scope("count registrations") as session:
            ...
        await ds.close()
    """

    def __init__(self, config: DatabaseConfig) -> None:
        self._config = config
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError(_ERR_NOT_OPEN)
        return self._engine

    async def open(self, *, base: type[DeclarativeBase] | None = None) -> None:
        """Build the engine; with *base*, also create any missing tables.

        Production deployments run the alembic migrations instead of
        passing *base*; tests and the SQLite default rely on it.

        Raises:
            StoreUnavailableError: If the schema cannot be provisioned.
        """
        engine = create_engine(self._config)
        if base is not None:
            try:
                async with engine.begin() as conn:
                    await conn.run_sync(base.metadata.create_all)
            except (DBAPIError, OSError) as exc:
                await engine.dispose()
                logger.error("Unable to provision schema: %s", exc)
                raise StoreUnavailableError(f"unable to provision schema: {exc}") from exc
        self._engine = engine
        self._sessions = async_sessionmaker(engine, expire_on_commit=False)
        logger.debug("Datastore open (%s)", engine.url.render_as_string(hide_password=True))

    async def close(self) -> None:
        """Dispose the engine. Safe to call more than once."""
        engine, self._engine, self._sessions = self._engine, None, None
        if engine is not None:
            await engine.dispose()

    def session(self) -> AsyncSession:
        """A bare session, for callers that handle driver errors themselves."""
        if self._sessions is None:
            raise RuntimeError(_ERR_NOT_OPEN)
        return self._sessions()

    @asynccontextmanager
    async def scope(self, action: str) -> AsyncIterator[AsyncSession]:
        """Session for one unit of work described by *action*.

        Raises:
            StoreUnavailableError: On connection or driver failures.
            IntegrityError: Unchanged, when a constraint rejects a write.
        """
        try:
            async with self.session() as session:
                yield session
        except IntegrityError:
            raise
        except (DBAPIError, OSError) as exc:
            logger.warning("Datastore failed to %s: %s", action, exc)
            raise StoreUnavailableError(f"unable to {action}: {exc}") from exc

    async def ping(self) -> bool:
        """True when ``SELECT 1`` round-trips."""
        if self._engine is None:
            return False
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (DBAPIError, OSError):
            logger.warning("Datastore ping failed", exc_info=True)
            return False
        return True
