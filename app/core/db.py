from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from typing import AsyncGenerator, Optional

from app.config.settings import get_settings

# SQLAlchemy declarative base for models
Base = declarative_base()

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker] = None


def create_engine_for(url: str) -> AsyncEngine:
    """Create an async engine; SQLite connections are not pooled across event loops."""
    if url.startswith("sqlite"):
        return create_async_engine(url, poolclass=NullPool, future=True)
    return create_async_engine(url, pool_pre_ping=True, future=True)


def configure_engine(url: Optional[str] = None) -> AsyncEngine:
    """(Re)bind the module engine and session factory, e.g. to a test database."""
    global _engine, _session_factory
    _engine = create_engine_for(url or get_settings().database_url)
    _session_factory = async_sessionmaker(
        bind=_engine, autoflush=False, expire_on_commit=False
    )
    return _engine


def get_engine() -> AsyncEngine:
    if _engine is None:
        configure_engine()
    return _engine


def get_session_factory() -> async_sessionmaker:
    if _session_factory is None:
        configure_engine()
    return _session_factory


async def init_db(engine: Optional[AsyncEngine] = None) -> None:
    """Create tables for all registered models."""
    # Register models on Base.metadata
    from app.models import saved_walk  # noqa: F401

    async with (engine or get_engine()).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    async with get_session_factory()() as session:
        yield session
