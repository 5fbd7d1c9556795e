"""Exception-to-envelope mapping for FastAPI applications."""

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.requests import Request
from starlette.responses import Response

from idempotent_create.api.envelope import envelope_response
from idempotent_create.exceptions import IdempotencyError, OperationError, StorageError
from idempotent_create.observability.logging import get_logger

logger = get_logger(__name__)

INTERNAL_ERROR_DETAIL = "An internal error occurred. Please retry later."


def idempotency_error_response(
    request: Request,
    error: IdempotencyError,
    expose_internal_errors: bool = False,
) -> Response:
    """Envelope for an idempotency rejection or storage failure.

    Storage failures keep their details out of the response body unless
    ``expose_internal_errors`` is set.
    """
    detail = error.detail
    if error.status_code >= 500 and not expose_internal_errors:
        detail = INTERNAL_ERROR_DETAIL

    message = error.message
    if isinstance(error, StorageError) and not expose_internal_errors:
        message = "Internal server error"

    headers = {"idempotency-key": error.key} if hasattr(error, "key") else None
    return envelope_response(request, error.status_code, message, error=detail, headers=headers)


def install_exception_handlers(app: FastAPI, expose_internal_errors: bool = False) -> None:
    """Register envelope handlers for idempotency, operation and validation errors."""

    async def handle_idempotency_error(request: Request, exc: IdempotencyError) -> Response:
        if exc.status_code >= 500:
            logger.error(
                "request.failed",
                path=request.url.path,
                error=str(exc),
                error_type=type(exc).__name__,
            )
        return idempotency_error_response(request, exc, expose_internal_errors)

    async def handle_operation_error(request: Request, exc: OperationError) -> Response:
        return envelope_response(request, exc.status_code, exc.message, error=exc.detail)

    async def handle_validation_error(request: Request, exc: RequestValidationError) -> Response:
        messages = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
        return envelope_response(request, 400, "Invalid request", error=messages)

    app.add_exception_handler(IdempotencyError, handle_idempotency_error)  # type: ignore[arg-type]
    app.add_exception_handler(OperationError, handle_operation_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_validation_error)  # type: ignore[arg-type]
