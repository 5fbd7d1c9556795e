"""Storage protocols for the two idempotency tiers.

The coordinator talks to two independent stores that can disagree:

- A **cache store**: volatile key -> record map with per-entry expiry. It is an
  optimization only; it may be empty, stale, or down without breaking
  correctness, because the durable store is always consulted on a miss.
- A **durable store**: the authoritative relational table. Records are
  written inside the same transaction as the protected business effect, and
  the unique constraint on ``key`` is the only mutual-exclusion mechanism.

Both tiers hold the same ``IdempotencyRecord`` shape.

Examples:
    Implementing a custom cache store::

        class MyCacheStore:
            async def get(self, key: str) -> IdempotencyRecord | None:
                data = await self.backend.get(build_cache_key(self.prefix, key))
                if data is None:
                    return None
                return IdempotencyRecord.model_validate_json(data)

            async def set(self, record: IdempotencyRecord, ttl_seconds: int) -> None:
                await self.backend.set(
                    build_cache_key(self.prefix, record.key),
                    record.model_dump_json(),
                    ttl_seconds,
                )

    Writing through the durable store::

        async with durable.transaction() as tx:
            result = await operation(tx.session)
            await tx.insert(record)
        # committed here; any exception above rolled everything back

Error Handling:
    Implementations raise StorageError for backend failures and
    DuplicateKeyError when the durable unique constraint rejects an insert.
    Backend-specific exceptions must not leak.
"""

from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol, runtime_checkable

from idempotent_create.models import IdempotencyRecord


def build_cache_key(prefix: str, key: str) -> str:
    """Cache entry key for an idempotency key: ``"<prefix>:<key>"``."""
    return f"{prefix}:{key}"


@runtime_checkable
class CacheStore(Protocol):
    """Protocol for the volatile cache tier.

    Entries must never outlive the record's ``expires_at``; callers pass a TTL
    already bounded by the remaining validity window.
    """

    async def get(self, key: str) -> IdempotencyRecord | None:
        """Return the cached record for ``key``, or None on a miss.

        Raises:
            StorageError: If the backend fails or the entry cannot be decoded.
        """
        ...

    async def set(self, record: IdempotencyRecord, ttl_seconds: int) -> None:
        """Cache ``record`` for ``ttl_seconds`` seconds.

        Raises:
            StorageError: If the backend fails.
        """
        ...

    async def delete(self, key: str) -> None:
        """Drop the cached entry for ``key`` if present."""
        ...

    async def close(self) -> None:
        """Release backend connections."""
        ...


@runtime_checkable
class DurableTransaction(Protocol):
    """One open durable-store transaction.

    Attributes:
        session: Backend handle passed to the protected operation so its
            business writes join the same transaction.
    """

    session: Any

    async def insert(self, record: IdempotencyRecord) -> None:
        """Insert the idempotency record inside this transaction.

        Raises:
            DuplicateKeyError: If a record with the same key already exists.
            StorageError: If the backend fails.
        """
        ...


@runtime_checkable
class DurableStore(Protocol):
    """Protocol for the authoritative relational tier."""

    async def get(self, key: str) -> IdempotencyRecord | None:
        """Look up a record by key alone.

        The lookup never filters by body hash: a record stored under the same
        key with a different fingerprint must be found so it can be reported
        as a conflict.

        Raises:
            StorageError: If the backend fails.
        """
        ...

    def transaction(self) -> AbstractAsyncContextManager[DurableTransaction]:
        """Open a transaction that commits on clean exit and rolls back on
        any exception, cancellation included.

        Raises:
            StorageError: If the backend fails to begin or commit.
        """
        ...
