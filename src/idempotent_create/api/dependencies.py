"""FastAPI dependencies for routes behind the idempotency middleware."""

from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request
from starlette.responses import Response

from idempotent_create.api.envelope import envelope_response
from idempotent_create.core.coordinator import IdempotencyCoordinator
from idempotent_create.exceptions import InvalidKeyError
from idempotent_create.models import Decision, Outcome
from idempotent_create.utils.headers import add_replay_headers


def get_coordinator(request: Request) -> IdempotencyCoordinator:
    return request.app.state.coordinator


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """Session for read-only routes; writes go through ``coordinator.complete``."""
    async with request.app.state.session_factory() as session:
        yield session


def require_admission(request: Request) -> Decision:
    """Admission decision attached by ``ASGIIdempotencyMiddleware``.

    Raises:
        InvalidKeyError: If the request reached the route without admission,
            which happens only when the middleware is not installed.
    """
    decision = getattr(request.state, "idempotency", None)
    if decision is None:
        raise InvalidKeyError()
    return decision


def outcome_response(
    request: Request,
    outcome: Outcome,
    created_message: str,
    replay_message: str,
) -> Response:
    """Envelope for a completed admission: 201 when fresh, 200 when replayed."""
    message = replay_message if outcome.replayed else created_message
    return envelope_response(
        request,
        outcome.status_code,
        message,
        data=outcome.data,
        headers=add_replay_headers(None, outcome.key, is_replay=outcome.replayed),
    )
