"""Async SQLAlchemy engine and session factory helpers for the template store."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)


def create_session_factory(
    database_url: str,
    *,
    echo: bool = False,
) -> async_sessionmaker[AsyncSession]:
    """Create a reusable async session factory for the provided database URL.

    Non-SQLite engines enable `pool_pre_ping`.
    """

    engine_options: dict[str, object] = {"echo": echo}
    if not database_url.startswith("sqlite"):
        engine_options["pool_pre_ping"] = True
    engine = create_async_engine(database_url, **engine_options)
    return async_sessionmaker(engine, expire_on_commit=False)


async def dispose_session_factory(session_factory: async_sessionmaker[AsyncSession]) -> None:
    """Close pooled connections held by the engine bound to a session factory."""

    engine = session_factory.kw.get("bind")
    if isinstance(engine, AsyncEngine):
        await engine.dispose()
