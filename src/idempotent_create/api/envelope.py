"""Response envelope shared by every endpoint.

Every response body has the shape ``{message, error, data, path, timestamp}``:
``data`` carries the business result on success or replay and is null on
error; ``error`` carries a human-readable detail on failure and is null on
success.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field
from starlette.requests import Request
from starlette.responses import Response

from idempotent_create.core.replay import encode_payload


class ResponseEnvelope(BaseModel):
    message: str
    error: Any = None
    data: Any = None
    path: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


def request_path(request: Request) -> str:
    """Path plus query string, as the client sent it."""
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


def format_response(
    request: Request,
    message: str,
    data: Any = None,
    error: Any = None,
) -> ResponseEnvelope:
    return ResponseEnvelope(
        message=message,
        error=error,
        data=data,
        path=request_path(request),
    )


def envelope_response(
    request: Request,
    status_code: int,
    message: str,
    data: Any = None,
    error: Any = None,
    headers: dict[str, str] | None = None,
) -> Response:
    """Build a JSON response wrapping ``data``/``error`` in the envelope."""
    envelope = format_response(request, message, data=data, error=error)
    return Response(
        content=encode_payload(envelope),
        status_code=status_code,
        headers=headers,
        media_type="application/json",
    )
