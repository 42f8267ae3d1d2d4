"""Database engine factory — PostgreSQL (asyncpg) or SQLite (aiosqlite)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from tranzantions.config.settings import DatabaseEngine

if TYPE_CHECKING:
    from tranzantions.config.settings import DatabaseConfig


def create_engine(config: DatabaseConfig) -> AsyncEngine:
    """Create an async SQLAlchemy engine from database configuration.

    In-memory SQLite is pinned to a single shared connection so every
    session sees the same database.
    """
    kwargs: dict[str, Any] = {
        "echo": config.debug_sql,
    }

    if config.engine is DatabaseEngine.SQLITE:
        if ":memory:" in config.dsn:
            kwargs["poolclass"] = StaticPool
            kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs["pool_size"] = config.max_idle_connections
        kwargs["max_overflow"] = config.max_open_connections - config.max_idle_connections
        kwargs["pool_pre_ping"] = True

    return create_async_engine(config.dsn, **kwargs)
