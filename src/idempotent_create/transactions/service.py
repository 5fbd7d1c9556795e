"""Queries behind the transactions API.

``create_transaction`` runs inside the coordinator's transaction: it only
adds and flushes, and the coordinator commits (or rolls back) together with
the idempotency record.
"""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from idempotent_create.exceptions import OperationError
from idempotent_create.transactions.models import Transaction
from idempotent_create.transactions.schemas import TransactionRequest, TransactionResponse

# Wire name -> column
SORTABLE_FIELDS = {
    "createdAt": Transaction.created_at,
    "updatedAt": Transaction.updated_at,
    "amount": Transaction.amount,
    "type": Transaction.type,
    "status": Transaction.status,
}


class TransactionNotFoundError(OperationError):
    status_code = 404

    def __init__(self) -> None:
        super().__init__(
            "No transactions found",
            "There are no transactions available at the moment.",
        )


async def create_transaction(
    session: AsyncSession,
    request: TransactionRequest,
    now: datetime | None = None,
) -> TransactionResponse:
    """Insert a pending transaction and return its response body."""
    transaction = Transaction(
        type=request.type.value,
        amount=request.amount,
        status="pending",
        consumer_id=str(request.consumer_id),
    )
    if now is not None:
        transaction.created_at = now
        transaction.updated_at = now

    session.add(transaction)
    await session.flush()
    return TransactionResponse.model_validate(transaction)


async def list_transactions(
    session: AsyncSession,
    limit: int = 10,
    offset: int = 0,
    sort_by: str = "createdAt",
    sort_order: str = "desc",
) -> list[TransactionResponse]:
    """Page through transactions.

    Raises:
        OperationError: If ``sort_by`` or ``sort_order`` is not supported.
        TransactionNotFoundError: If the page is empty.
    """
    column = SORTABLE_FIELDS.get(sort_by)
    if column is None:
        raise OperationError(
            "Invalid request",
            f"sortBy must be one of: {', '.join(SORTABLE_FIELDS)}",
        )

    order = sort_order.lower()
    if order not in ("asc", "desc"):
        raise OperationError("Invalid request", "sortOrder must be 'asc' or 'desc'")

    stmt = (
        select(Transaction)
        .order_by(column.asc() if order == "asc" else column.desc())
        .limit(limit)
        .offset(offset)
    )
    rows = (await session.scalars(stmt)).all()
    if not rows:
        raise TransactionNotFoundError()
    return [TransactionResponse.model_validate(row) for row in rows]
