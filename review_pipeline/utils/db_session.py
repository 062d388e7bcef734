from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from typing import AsyncGenerator, Optional
from functools import lru_cache
from contextlib import asynccontextmanager

from review_pipeline.config.settings import settings

@lru_cache
def get_async_engine():
    """Returns a cached instance of the async engine."""
    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DEBUG,
        pool_pre_ping=True,
        pool_recycle=3600,
    )

@lru_cache
def get_async_session_factory() -> async_sessionmaker[AsyncSession]:
    """Returns a cached instance of the async session factory."""
    return async_sessionmaker(
        bind=get_async_engine(),
        autoflush=False,
        expire_on_commit=False,
        class_=AsyncSession,
    )

@asynccontextmanager
async def get_db_session_context_manager(
    existing_session: Optional[AsyncSession] = None,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> AsyncGenerator[AsyncSession, None]:
    """
    Provides an SQLAlchemy async session within an asynchronous context manager.

    If an `existing_session` is provided, it yields that session and the caller
    is responsible for its lifecycle (commit, rollback, close).
    Otherwise, it opens a session from `session_factory` (the application
    factory when omitted), commits it on successful exit, rolls it back on
    error, and closes it regardless.
    """
    if existing_session is not None:
        yield existing_session
        return

    factory = session_factory or get_async_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

def dialect_insert(session: AsyncSession, model):
    """
    Returns an INSERT construct for `model` that supports ON CONFLICT clauses
    on the dialect the session is bound to (PostgreSQL in production, SQLite in tests).
    """
    if session.bind.dialect.name == "sqlite":
        return sqlite.insert(model)
    return postgresql.insert(model)
