"""ASGI middleware adapter for FastAPI and Starlette applications.

The middleware performs admission for every unsafe request before it reaches
the route:

1. Reads the idempotency key header and the raw request body
2. Asks the coordinator for a decision
3. Answers replays, conflicts, expiries and invalid keys itself
4. Hands admitted requests to the route with the decision attached as
   ``request.state.idempotency``

The route then finishes the admission with ``coordinator.complete`` so that
its business write and the idempotency record share one transaction.

Examples:
    FastAPI integration::

        from fastapi import FastAPI
        from idempotent_create.adapters.asgi import ASGIIdempotencyMiddleware

        app = FastAPI()
        app.add_middleware(ASGIIdempotencyMiddleware, coordinator=coordinator)

        @app.post("/api/transactions")
        async def create(request: Request, decision=Depends(require_admission)):
            outcome = await coordinator.complete(decision, operation)
            ...

    When the coordinator is built during lifespan startup, omit it and the
    middleware will use ``app.state.coordinator``::

        app.add_middleware(ASGIIdempotencyMiddleware, config=config)
"""

from collections.abc import Awaitable, Callable
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from idempotent_create.api.envelope import envelope_response
from idempotent_create.api.errors import idempotency_error_response
from idempotent_create.config import IdempotencyConfig
from idempotent_create.core.coordinator import IdempotencyCoordinator
from idempotent_create.core.replay import decode_payload
from idempotent_create.exceptions import IdempotencyError
from idempotent_create.observability.logging import (
    bind_request_context,
    clear_request_context,
)
from idempotent_create.utils.headers import add_replay_headers, extract_trace_id

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "TRACE"})


class ASGIIdempotencyMiddleware(BaseHTTPMiddleware):
    """ASGI middleware for idempotent admission.

    Attributes:
        config: Configuration object; defaults to the coordinator's config
        coordinator: Coordinator instance, or None to resolve it from
            ``app.state.coordinator`` per request
    """

    def __init__(
        self,
        app: Any,
        coordinator: IdempotencyCoordinator | None = None,
        config: IdempotencyConfig | None = None,
    ) -> None:
        super().__init__(app)
        self.coordinator = coordinator
        self._config = config

    def config_for(self, coordinator: IdempotencyCoordinator) -> IdempotencyConfig:
        return self._config or coordinator.config

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Admit, replay or reject an incoming request.

        Safe methods bypass admission entirely.
        """
        if request.method.upper() in SAFE_METHODS:
            return await call_next(request)

        coordinator = self.coordinator or request.app.state.coordinator
        config = self.config_for(coordinator)

        # Starlette headers are case-insensitive
        key = request.headers.get(config.header_name)
        body = await request.body()

        bind_request_context(
            idempotency_key=key,
            path=request.url.path,
            trace_id=extract_trace_id(request.headers),
        )
        try:
            try:
                decision = await coordinator.admit(request.method, key, body)
            except IdempotencyError as e:
                return idempotency_error_response(
                    request, e, expose_internal_errors=config.expose_internal_errors
                )

            if decision.is_replay:
                return envelope_response(
                    request,
                    200,
                    config.replay_message,
                    data=decode_payload(decision.response_payload),
                    headers=add_replay_headers(None, decision.key),
                )

            request.state.idempotency = decision
            return await call_next(request)
        finally:
            clear_request_context()
