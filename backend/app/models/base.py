"""
Async SQLAlchemy engine, session factory and declarative base.

Any configured DATABASE_URL is mapped onto its async driver: asyncpg for
postgres, aiosqlite for sqlite. `get_db` serves request handlers and
`AsyncSessionLocal` serves the database-backed session sync client.
"""
from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import AsyncAdaptedQueuePool

from app.core.config import settings

# Matched in order, so driver-qualified prefixes come first. String
# replacement keeps hostnames with underscores intact, which a make_url()
# round-trip does not.
_ASYNC_DRIVER_PREFIXES = (
    ("postgresql+asyncpg://", "postgresql+asyncpg://"),
    ("postgresql+psycopg2://", "postgresql+asyncpg://"),
    ("postgresql://", "postgresql+asyncpg://"),
    ("postgres://", "postgresql+asyncpg://"),
    ("sqlite+aiosqlite://", "sqlite+aiosqlite://"),
    ("sqlite://", "sqlite+aiosqlite://"),
)


def to_async_url(url: str) -> str:
    """Map a database URL onto its async driver (asyncpg or aiosqlite)."""
    for prefix, async_prefix in _ASYNC_DRIVER_PREFIXES:
        if url.startswith(prefix):
            return async_prefix + url[len(prefix) :]
    supported = [prefix for prefix, _ in _ASYNC_DRIVER_PREFIXES]
    raise ValueError(
        f"No async driver mapping for DATABASE_URL prefix. Supported: {supported}"
    )


def engine_options(async_url: str) -> Dict[str, Any]:
    """Keyword arguments for create_async_engine; pooling is postgres-only."""
    options: Dict[str, Any] = {"echo": settings.DB_ECHO}
    if async_url.startswith("postgresql"):
        options.update(
            poolclass=AsyncAdaptedQueuePool,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_POOL_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
            pool_pre_ping=settings.DB_POOL_PRE_PING,
        )
    return options


ASYNC_DATABASE_URL = to_async_url(settings.database_url)

async_engine = create_async_engine(
    ASYNC_DATABASE_URL, **engine_options(ASYNC_DATABASE_URL)
)

AsyncSessionLocal = async_sessionmaker(
    async_engine, class_=AsyncSession, expire_on_commit=False
)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session; rolled back if the handler raises."""
    async with AsyncSessionLocal() as db:
        try:
            yield db
        except Exception:
            await db.rollback()
            raise
