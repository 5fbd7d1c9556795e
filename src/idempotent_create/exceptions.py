"""Custom exceptions for idempotency coordination.

This module defines the exception hierarchy used throughout the package.
Every exception carries a stable ``message`` (the envelope ``message``) and a
human-readable ``detail`` (the envelope ``error``), plus the HTTP status the web
layer should answer with.

Examples:
    Handling a conflict error::

        from idempotent_create.exceptions import ConflictError

        try:
            decision = await coordinator.admit("POST", key, body)
        except ConflictError as e:
            logger.warning("idempotency.conflict", key=e.key)
            return envelope_response(request, e.status_code, e.message, error=e.detail)

    Passing a business failure through the coordinator::

        from idempotent_create.exceptions import OperationError

        class InsufficientFunds(OperationError):
            status_code = 422

        async def operation(session):
            raise InsufficientFunds("Insufficient funds", "Balance is below 12000")
"""

from datetime import datetime


class IdempotencyError(Exception):
    """Base exception for all idempotency-related errors.

    Attributes:
        message: Stable, short description (envelope ``message``).
        detail: Human-readable explanation (envelope ``error``).
        status_code: HTTP status the web layer answers with.
    """

    status_code: int = 500

    def __init__(self, message: str, detail: str | None = None) -> None:
        """Initialize the exception with a message.

        Args:
            message: Stable, short description.
            detail: Human-readable explanation. Defaults to ``message``.
        """
        self.message = message
        self.detail = detail if detail is not None else message
        super().__init__(message)


class InvalidKeyError(IdempotencyError):
    """The idempotency key is missing, blank, or too long."""

    status_code = 400

    def __init__(
        self,
        message: str = "Invalid idempotency key",
        detail: str = "Idempotency key is required and must be a non-empty string",
    ) -> None:
        super().__init__(message, detail)


class MethodNotAllowedError(IdempotencyError):
    """The request method is not eligible for idempotency protection.

    Attributes:
        method: The rejected HTTP method.
    """

    status_code = 405

    def __init__(self, method: str) -> None:
        super().__init__(
            "Method not allowed",
            f"The {method} method is not allowed for idempotent operations.",
        )
        self.method = method


class ConflictError(IdempotencyError):
    """Request conflict detected - same key, different fingerprint.

    Raised when a key that already owns a record is submitted with a payload
    whose fingerprint differs from the stored one. The client is reusing a key
    for a different operation; the web layer answers 409 Conflict.

    Attributes:
        key: The idempotency key that conflicted.
        stored_fingerprint: The fingerprint stored with the record.
        request_fingerprint: The fingerprint of the incoming request.
    """

    status_code = 409

    def __init__(
        self,
        key: str,
        stored_fingerprint: str,
        request_fingerprint: str,
        message: str = "Idempotency key conflict",
    ) -> None:
        super().__init__(
            message,
            "A request with this idempotency key already exists with a different request body.",
        )
        self.key = key
        self.stored_fingerprint = stored_fingerprint
        self.request_fingerprint = request_fingerprint


class KeyExpiredError(IdempotencyError):
    """The key matches its original payload but is past its validity window.

    Attributes:
        key: The expired idempotency key.
        expires_at: When the record stopped being eligible for replay.
    """

    status_code = 419

    def __init__(self, key: str, expires_at: datetime) -> None:
        super().__init__(
            "Idempotency key expired",
            "The idempotency key has expired and cannot be used for this request.",
        )
        self.key = key
        self.expires_at = expires_at


class StorageError(IdempotencyError):
    """Storage backend operation failed.

    Raised when the cache or the durable store cannot complete an operation:
    network failures, unavailable backends, undecodable entries. Durable
    failures surface as internal errors; cache failures are logged and
    absorbed by the coordinator.

    Attributes:
        cause: The underlying exception that caused the storage error.

    Examples:
        Raising a storage error::

            try:
                await redis.get(key)
            except RedisError as e:
                raise StorageError(
                    message=f"Failed to retrieve key from Redis: {e}",
                    cause=e,
                ) from e
    """

    status_code = 500

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class DuplicateKeyError(IdempotencyError):
    """The durable store's unique key constraint rejected an insert.

    Another request admitted and persisted the same key first. The
    coordinator treats this as a signal to re-run the lookup, not as a
    failure.

    Attributes:
        key: The idempotency key that lost the race.
    """

    status_code = 500

    def __init__(self, key: str) -> None:
        super().__init__(
            "Idempotency key already persisted",
            f"A record for idempotency key {key!r} was committed concurrently.",
        )
        self.key = key


class OperationError(Exception):
    """Failure raised by a protected operation.

    The coordinator never wraps these; they reach the web layer with their own
    classification. Subclass and override ``status_code`` for domain errors.

    Attributes:
        message: Stable, short description (envelope ``message``).
        detail: Human-readable explanation (envelope ``error``).
        status_code: HTTP status the web layer answers with.
    """

    status_code: int = 400

    def __init__(
        self,
        message: str,
        detail: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.message = message
        self.detail = detail if detail is not None else message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)
