"""Relational durable store for idempotency records.

Records live in the ``idempotency_meta`` table, keyed by the idempotency key
itself. The primary key is the enforcement point for at-most-one record per
key: when two admissions race, the loser's insert fails and surfaces as
DuplicateKeyError.

Examples:
    Write-through inside one transaction::

        store = SqlDurableStore(create_session_factory(engine))

        async with store.transaction() as tx:
            tx.session.add(Transaction(...))
            await tx.insert(record)
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime

from sqlalchemy import Index, String, Text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import Mapped, mapped_column

from idempotent_create.db import Base, UTCDateTime
from idempotent_create.exceptions import DuplicateKeyError, IdempotencyError, StorageError
from idempotent_create.models import IdempotencyRecord
from idempotent_create.storage.base import DurableStore, DurableTransaction


class IdempotencyRecordRow(Base):
    __tablename__ = "idempotency_meta"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    body_hash: Mapped[str] = mapped_column(Text, nullable=False)
    response_payload: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    __table_args__ = (Index("ix_idempotency_meta_expires_at", "expires_at"),)

    @classmethod
    def from_record(cls, record: IdempotencyRecord) -> "IdempotencyRecordRow":
        return cls(
            key=record.key,
            body_hash=record.body_hash,
            response_payload=record.response_payload,
            created_at=record.created_at,
            updated_at=record.updated_at,
            expires_at=record.expires_at,
        )

    def to_record(self) -> IdempotencyRecord:
        return IdempotencyRecord(
            key=self.key,
            body_hash=self.body_hash,
            response_payload=self.response_payload,
            created_at=self.created_at,
            updated_at=self.updated_at,
            expires_at=self.expires_at,
        )


class SqlTransaction(DurableTransaction):
    """An open durable transaction bound to one AsyncSession."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def insert(self, record: IdempotencyRecord) -> None:
        # Flush the business writes first so their failures are not
        # mistaken for a duplicate key
        await self.session.flush()

        self.session.add(IdempotencyRecordRow.from_record(record))
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise DuplicateKeyError(record.key) from e


class SqlDurableStore(DurableStore):
    """Durable store on top of a SQLAlchemy async session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, key: str) -> IdempotencyRecord | None:
        try:
            async with self._session_factory() as session:
                row = await session.get(IdempotencyRecordRow, key)
                return row.to_record() if row is not None else None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read idempotency record {key!r}: {e}", cause=e) from e

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[SqlTransaction]:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield SqlTransaction(session)
        except IdempotencyError:
            raise
        except SQLAlchemyError as e:
            raise StorageError(f"Durable transaction failed: {e}", cause=e) from e
