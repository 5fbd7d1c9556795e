"""``/api/transactions`` endpoints.

``POST`` is protected: the middleware has already admitted the request, and
the route finishes the admission so the transaction row and the idempotency
record are written in one database transaction.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request
from starlette.responses import Response

from idempotent_create.api.dependencies import (
    get_coordinator,
    get_session,
    outcome_response,
    require_admission,
)
from idempotent_create.api.envelope import envelope_response
from idempotent_create.core.coordinator import IdempotencyCoordinator
from idempotent_create.models import Decision
from idempotent_create.transactions.schemas import TransactionRequest
from idempotent_create.transactions.service import create_transaction, list_transactions

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


@router.post("", status_code=201)
async def post_transaction(
    request: Request,
    body: TransactionRequest,
    decision: Decision = Depends(require_admission),
    coordinator: IdempotencyCoordinator = Depends(get_coordinator),
) -> Response:
    async def operation(session: Any) -> Any:
        return await create_transaction(session, body, now=coordinator.now())

    outcome = await coordinator.complete(decision, operation)
    return outcome_response(
        request,
        outcome,
        created_message="Transaction created successfully",
        replay_message=coordinator.config.replay_message,
    )


@router.get("")
async def get_transactions(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    session: AsyncSession = Depends(get_session),
) -> Response:
    transactions = await list_transactions(
        session,
        limit=limit,
        offset=(page - 1) * limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return envelope_response(
        request,
        200,
        "Transactions fetched successfully",
        data=[t.model_dump(mode="json", by_alias=True) for t in transactions],
    )
