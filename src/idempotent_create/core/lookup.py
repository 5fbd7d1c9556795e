"""Two-tier lookup of idempotency records.

The cache and the durable store are tried in a fixed order. The cache is an
optimization: a failing or undecodable cache read is logged and treated as a
miss, so the durable store is always consulted before a key is considered
unseen. A durable failure is a real error and propagates as StorageError.

When the durable store answers a key the cache did not have, the record is
written back to the cache (read repair) with a TTL bounded by its remaining
validity window. Expired records are never written back.
"""

from collections.abc import Callable
from datetime import datetime

from idempotent_create.exceptions import StorageError
from idempotent_create.models import IdempotencyRecord
from idempotent_create.observability.logging import get_logger
from idempotent_create.observability.metrics import record_cache_failure
from idempotent_create.storage.base import CacheStore, DurableStore

logger = get_logger(__name__)

CACHE = "cache"
DURABLE = "durable"


class LookupResult:
    """A record found by ``TieredLookup.find``.

    Attributes:
        record: The stored record.
        source: Tier that answered ("cache" or "durable").
    """

    def __init__(self, record: IdempotencyRecord, source: str) -> None:
        self.record = record
        self.source = source


class TieredLookup:
    """Cache-then-durable record lookup.

    Attributes:
        cache: Volatile tier, or None to run on the durable store alone.
        durable: Authoritative tier.
    """

    def __init__(
        self,
        durable: DurableStore,
        cache: CacheStore | None,
        clock: Callable[[], datetime],
        read_repair: bool = True,
    ) -> None:
        self.durable = durable
        self.cache = cache
        self._clock = clock
        self._read_repair = read_repair

    async def find(self, key: str) -> LookupResult | None:
        """Find the record for ``key`` in the first tier that has it.

        Raises:
            StorageError: If the durable store fails.
        """
        cached = await self._cache_get(key)
        if cached is not None:
            return LookupResult(cached, CACHE)

        record = await self.durable.get(key)
        if record is None:
            return None

        if self._read_repair and await self.remember(record):
            logger.info("idempotency.cache_backfilled", key=key)

        return LookupResult(record, DURABLE)

    async def remember(self, record: IdempotencyRecord) -> bool:
        """Best-effort cache write bounded by the record's validity window.

        Returns:
            True if the entry was written.
        """
        if self.cache is None:
            return False

        ttl_seconds = record.remaining_ttl_seconds(self._clock())
        if ttl_seconds <= 0:
            return False

        try:
            await self.cache.set(record, ttl_seconds)
        except StorageError as e:
            record_cache_failure("set")
            logger.warning(
                "idempotency.cache_write_failed",
                key=record.key,
                error=str(e),
            )
            return False

        logger.debug("idempotency.cache_written", key=record.key, ttl_seconds=ttl_seconds)
        return True

    async def _cache_get(self, key: str) -> IdempotencyRecord | None:
        if self.cache is None:
            return None

        try:
            return await self.cache.get(key)
        except StorageError as e:
            record_cache_failure("get")
            logger.warning(
                "idempotency.cache_read_failed",
                key=key,
                error=str(e),
            )
            return None
