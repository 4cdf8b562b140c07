"""Async SQLAlchemy engine and session factory helpers for the account store."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine


def create_session_factory(
    database_url: str,
    *,
    echo: bool = False,
) -> async_sessionmaker[AsyncSession]:
    """Create a reusable async session factory for the account database.

    Server databases get connection liveness checks; SQLite files do not need them.
    """

    engine = create_async_engine(
        database_url,
        echo=echo,
        pool_pre_ping=not database_url.startswith("sqlite"),
    )
    return async_sessionmaker(engine, expire_on_commit=False)
