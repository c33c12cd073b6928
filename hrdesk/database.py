"""Async SQLAlchemy engine and session management."""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from hrdesk.config import Settings


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """Turn on FK enforcement for every new SQLite connection (off by default)."""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for ``settings.DATABASE_URL``."""
    kwargs: dict = {"echo": settings.DB_ECHO, "pool_pre_ping": True}
    is_sqlite = settings.DATABASE_URL.startswith("sqlite")
    if not is_sqlite:
        # SQLite uses a single-connection pool; sizing only applies to servers
        kwargs.update(pool_size=10, max_overflow=20)
    engine = create_async_engine(settings.DATABASE_URL, **kwargs)
    if is_sqlite:
        enable_sqlite_foreign_keys(engine)
    return engine


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yield an async database session."""
    async with request.app.state.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
