"""ORM model for the ``transactions`` table."""

import uuid
from datetime import datetime

from sqlalchemy import Float, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from idempotent_create.db import Base, UTCDateTime, utcnow


def _new_id() -> str:
    return str(uuid.uuid4())


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    type: Mapped[str] = mapped_column(String(32))
    amount: Mapped[float] = mapped_column(Float)
    # pending | completed | failed
    status: Mapped[str] = mapped_column(String(16), default="pending")
    consumer_id: Mapped[str] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)

    __table_args__ = (Index("ix_transactions_consumer_id", "consumer_id"),)
