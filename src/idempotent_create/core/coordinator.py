"""Idempotency coordinator: the create-once decision procedure.

Given a key and a request body, the coordinator decides whether to

- replay a previously computed response,
- reject the request because the key was used with a different payload,
- reject the request because the key is past its validity window, or
- admit the request for first-time processing.

Admitted requests run their protected operation inside a durable transaction
that also inserts the idempotency record, so the business effect and the
record commit or vanish together. The cache is populated only after commit.

Two admissions of the same key can both miss and both execute. The durable
unique constraint rejects the slower insert, which rolls back its business
effect; the coordinator then re-runs the lookup and answers with whatever
the winner stored (replay, conflict or expiry).

Examples:
    Full flow in one call::

        coordinator = IdempotencyCoordinator(config, durable=store, cache=cache)

        async def create(session):
            session.add(Transaction(...))
            await session.flush()
            return TransactionResponse(...)

        outcome = await coordinator.process("POST", "unique-key-123", raw_body, create)
        outcome.status_code  # 201 first time, 200 on retries

    Split flow (admission in middleware, execution in the route)::

        decision = await coordinator.admit("POST", key, raw_body)
        if decision.is_replay:
            return decision.response_payload
        outcome = await coordinator.complete(decision, create)
"""

import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from idempotent_create.config import IdempotencyConfig
from idempotent_create.core.lookup import TieredLookup
from idempotent_create.core.replay import encode_payload
from idempotent_create.exceptions import (
    ConflictError,
    DuplicateKeyError,
    InvalidKeyError,
    KeyExpiredError,
    MethodNotAllowedError,
    StorageError,
)
from idempotent_create.fingerprint import compute_fingerprint
from idempotent_create.models import Decision, IdempotencyRecord, Outcome
from idempotent_create.observability.logging import get_logger
from idempotent_create.observability.metrics import (
    record_decision,
    record_execution_time,
    record_reconciliation,
)
from idempotent_create.storage.base import CacheStore, DurableStore

logger = get_logger(__name__)

# The protected operation receives the durable transaction's session
Operation = Callable[[Any], Awaitable[Any]]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class IdempotencyCoordinator:
    """Stateless coordinator between the cache tier, the durable tier and a
    protected operation.

    Attributes:
        config: Immutable configuration.
        durable: Authoritative record store.
        cache: Optional volatile record store.
        lookup: Cache-then-durable lookup over the two stores.
    """

    def __init__(
        self,
        config: IdempotencyConfig,
        durable: DurableStore,
        cache: CacheStore | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.config = config
        self.durable = durable
        self.cache = cache
        self._clock = clock
        self.lookup = TieredLookup(durable=durable, cache=cache, clock=clock)

    def now(self) -> datetime:
        """Current time according to the injected clock."""
        return self._clock()

    async def admit(self, method: str, key: str | None, raw_body: bytes | str) -> Decision:
        """Decide what to do with an incoming request.

        Validation happens before any store access.

        Args:
            method: HTTP method of the request.
            key: Idempotency key from the request header.
            raw_body: Request body exactly as received.

        Returns:
            ``Decision.replay`` if a matching unexpired record exists,
            ``Decision.admit`` if the key is unseen.

        Raises:
            MethodNotAllowedError: If the method is not protected.
            InvalidKeyError: If the key is missing, blank, or too long.
            ConflictError: If the key is stored with a different fingerprint.
            KeyExpiredError: If the matching record is past ``expires_at``.
            StorageError: If the durable store fails.
        """
        if not self.config.is_protected_method(method):
            record_decision("method", MethodNotAllowedError.status_code)
            raise MethodNotAllowedError(method.upper())

        key = self.validate_key(key)
        body_hash = compute_fingerprint(raw_body)
        return await self.resolve(key, body_hash)

    async def resolve(self, key: str, body_hash: str) -> Decision:
        """Run the two-tier lookup and apply the conflict/expiry policy.

        Raises:
            ConflictError, KeyExpiredError, StorageError: As for ``admit``.
        """
        try:
            found = await self.lookup.find(key)
        except StorageError:
            record_decision("error", StorageError.status_code)
            logger.error("idempotency.lookup_failed", key=key)
            raise

        if found is None:
            logger.info("idempotency.admitted", key=key)
            return Decision.admit(key, body_hash)

        record = self._check(found.record, body_hash)
        record_decision("replayed", 200)
        logger.info("idempotency.replayed", key=key, source=found.source)
        return Decision.replay(record, found.source)

    async def execute(self, key: str, body_hash: str, operation: Operation) -> Outcome:
        """Run an admitted operation and persist its outcome atomically.

        The operation runs inside a durable transaction together with the
        record insert. Any failure (operation error, insert failure, commit
        failure, cancellation) rolls both back. After commit, the record is
        written to the cache on a best-effort basis.

        Args:
            key: Admitted idempotency key.
            body_hash: Fingerprint of the admitted request body.
            operation: Coroutine function receiving the transaction session
                and returning a serializable result.

        Returns:
            A fresh (non-replayed) Outcome.

        Raises:
            DuplicateKeyError: If another request persisted the key first.
            StorageError: If the durable store fails.
            Exception: Whatever the operation raised, unchanged.
        """
        started = time.perf_counter()
        try:
            async with self.durable.transaction() as tx:
                result = await operation(tx.session)

                now = self.now()
                record = IdempotencyRecord(
                    key=key,
                    body_hash=body_hash,
                    response_payload=encode_payload(result),
                    created_at=now,
                    updated_at=now,
                    expires_at=now + timedelta(seconds=self.config.ttl_seconds),
                )
                await tx.insert(record)
        except DuplicateKeyError:
            logger.info("idempotency.rolled_back", key=key, reason="duplicate_key")
            raise
        except BaseException as e:
            logger.warning(
                "idempotency.rolled_back",
                key=key,
                reason=type(e).__name__,
            )
            raise

        elapsed = time.perf_counter() - started
        record_execution_time(elapsed)
        record_decision("admitted", 201)
        logger.info("idempotency.executed", key=key, execution_ms=int(elapsed * 1000))

        await self.lookup.remember(record)
        return Outcome.from_record(record, replayed=False)

    async def complete(self, decision: Decision, operation: Operation) -> Outcome:
        """Finish an admission, reconciling lost unique-constraint races.

        A replay decision is answered from its record without running the
        operation. For an admission, the operation is executed; if the insert
        loses a race, the lookup is re-run and its answer is returned (or
        raised, for conflicts and expiries).

        Raises:
            ConflictError, KeyExpiredError: If the race winner's record rejects
                this request.
            StorageError: If the durable store fails, or the race cannot be
                settled within ``max_admission_attempts``.
        """
        attempts = 0
        while True:
            if decision.is_replay and decision.record is not None:
                return Outcome.from_record(decision.record, replayed=True)

            attempts += 1
            try:
                return await self.execute(decision.key, decision.body_hash, operation)
            except DuplicateKeyError as e:
                record_reconciliation()
                if attempts >= self.config.max_admission_attempts:
                    record_decision("error", StorageError.status_code)
                    raise StorageError(
                        f"Could not settle admission of key {decision.key!r} "
                        f"after {attempts} attempts",
                        cause=e,
                    ) from e

                logger.info("idempotency.reconciling", key=decision.key, attempt=attempts)
                decision = await self.resolve(decision.key, decision.body_hash)

    async def process(
        self,
        method: str,
        key: str | None,
        raw_body: bytes | str,
        operation: Operation,
    ) -> Outcome:
        """Admit a request and run its operation once.

        Returns:
            Outcome with status 201 on first execution, 200 on replay.
        """
        decision = await self.admit(method, key, raw_body)
        return await self.complete(decision, operation)

    def validate_key(self, key: str | None) -> str:
        """Validate an idempotency key and return it exactly as sent.

        Raises:
            InvalidKeyError: If the key is missing, blank, or too long.
        """
        if key is None or not key.strip():
            record_decision("invalid", InvalidKeyError.status_code)
            raise InvalidKeyError()

        if len(key) > self.config.max_key_length:
            record_decision("invalid", InvalidKeyError.status_code)
            raise InvalidKeyError(
                detail=(
                    "Idempotency key exceeds maximum length of "
                    f"{self.config.max_key_length} characters"
                )
            )
        return key

    def _check(self, record: IdempotencyRecord, body_hash: str) -> IdempotencyRecord:
        """Apply the mismatch-then-expiry policy to a stored record."""
        if record.body_hash != body_hash:
            record_decision("conflict", ConflictError.status_code)
            logger.warning("idempotency.conflict", key=record.key)
            raise ConflictError(
                key=record.key,
                stored_fingerprint=record.body_hash,
                request_fingerprint=body_hash,
            )

        if record.is_expired(self.now()):
            record_decision("expired", KeyExpiredError.status_code)
            logger.info("idempotency.expired", key=record.key, expires_at=record.expires_at.isoformat())
            raise KeyExpiredError(record.key, record.expires_at)

        return record


__all__ = ["IdempotencyCoordinator", "Operation"]
