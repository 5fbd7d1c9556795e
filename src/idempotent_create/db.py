"""SQLAlchemy plumbing shared by the durable store and the business tables.

Provides the declarative base, a timezone-aware UTC datetime column type,
engine/session factories, and schema creation.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import DateTime
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

from idempotent_create.observability.logging import get_logger

logger = get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(UTC)


class UTCDateTime(TypeDecorator[datetime]):
    """DateTime column that always round-trips aware UTC values.

    Dialects without timezone support (SQLite) hand back naive datetimes;
    those are re-labelled as UTC on load. Naive values are rejected on write.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Any) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("UTCDateTime requires timezone-aware datetimes")
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Any) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


class Base(DeclarativeBase):
    """Declarative base for every table in the service."""


def create_engine(url: str, **kwargs: Any) -> AsyncEngine:
    """Create an async engine.

    ``postgres://`` URLs are rewritten to the asyncpg driver form.
    """
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+asyncpg://", 1)
    engine = create_async_engine(url, pool_pre_ping=True, **kwargs)
    logger.info("db.engine_created", dialect=engine.dialect.name)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory used by the durable store and request handlers."""
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


async def create_schema(engine: AsyncEngine) -> None:
    """Create every table registered on ``Base`` that does not exist yet."""
    # Register the table modules on Base.metadata
    import idempotent_create.storage.sql  # noqa: F401
    import idempotent_create.transactions.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
