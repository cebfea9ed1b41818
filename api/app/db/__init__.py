"""Async engine and session factory for the tables database.

The URL comes from ``DATABASE_URL`` (see :mod:`config`). Tests point the
module at a throwaway SQLite file with :func:`configure` and create the schema
with :func:`create_tables`.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from config import get_settings

from ..models_tenant import Base
from ..obs.queries import add_query_logger

_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker[AsyncSession] | None = None


def configure(url: str | None = None, **engine_kwargs: Any) -> AsyncEngine:
    """Create the engine for ``url`` (or ``DATABASE_URL``) and return it.

    ``engine_kwargs`` go to :func:`create_async_engine`; tests pass
    ``poolclass=NullPool`` so no connection outlives its event loop.
    """
    global _engine, _sessionmaker
    url = url or get_settings().database_url
    _engine = create_async_engine(url, **engine_kwargs)
    add_query_logger(_engine, "tables")
    _sessionmaker = async_sessionmaker(
        _engine, expire_on_commit=False, class_=AsyncSession
    )
    return _engine


def get_engine() -> AsyncEngine:
    """Return a singleton async engine, creating it on first use."""
    if _engine is None:
        return configure()
    return _engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Return the session factory bound to :func:`get_engine`."""
    if _sessionmaker is None:
        configure()
    assert _sessionmaker is not None  # for type checkers
    return _sessionmaker


async def create_tables() -> None:
    """Create the schema on the configured engine if it does not exist."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose() -> None:
    """Dispose the engine so the next call to :func:`get_engine` starts fresh."""
    global _engine, _sessionmaker
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _sessionmaker = None


__all__ = [
    "configure",
    "create_tables",
    "dispose",
    "get_engine",
    "get_sessionmaker",
]
