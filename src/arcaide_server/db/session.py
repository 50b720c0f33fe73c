"""
Database Session Management

Provides the async SQLAlchemy engine and session factory. Both are built by
the application factory and kept on ``app.state``; nothing here is a
module-level singleton.

SQLite connection setup
-----------------------
- Foreign keys are enabled per connection (cascade deletes rely on it).
- The driver's implicit transaction handling is disabled and ``BEGIN`` is
  emitted by SQLAlchemy instead, so transactions and SAVEPOINTs behave the
  same way they do on a server database.
- ``levenshtein(a, b)`` is registered as a SQL function when the fuzzy
  backend is enabled. Without it, vocabulary lookups fail and the
  correction engine falls back to identity corrections.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator, Optional

from fastapi import Request
from rapidfuzz.distance import Levenshtein
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
)

from ..config import Settings
from ..documents.model import serialize_document, deserialize_document
from .models import Base
from .search_index import CREATE_SEARCH_INDEX


def _levenshtein(a: Optional[str], b: Optional[str]) -> Optional[int]:
    if a is None or b is None:
        return None
    return Levenshtein.distance(a, b)


def _install_sqlite_hooks(engine: AsyncEngine, fuzzy_backend_enabled: bool) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Let SQLAlchemy own BEGIN so SAVEPOINT works
        dbapi_connection.isolation_level = None

        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

        if fuzzy_backend_enabled:
            dbapi_connection.create_function(
                "levenshtein", 2, _levenshtein, deterministic=True
            )

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """
    Build the async engine described by ``settings``.
    """
    engine = create_async_engine(
        settings.database_url,
        echo=settings.sql_echo,
        json_serializer=serialize_document,
        json_deserializer=deserialize_document,
    )

    if engine.dialect.name == "sqlite":
        _install_sqlite_hooks(engine, settings.fuzzy_backend_enabled)

    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """
    Create ORM tables and the FTS5 search index if they do not exist.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.execute(text(CREATE_SEARCH_INDEX))


@asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """
    One unit of work: commit on success, roll back on any exception.
    """
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_async_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for FastAPI endpoints that need database access.

    The whole request runs in one transaction, so an entity rename and the
    link rewrite it triggers commit or roll back together.

    Usage:
        @router.get("/items")
        async def get_items(session: AsyncSession = Depends(get_async_session)):
            ...
    """
    async with session_scope(request.app.state.session_factory) as session:
        yield session
