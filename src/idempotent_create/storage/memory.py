"""In-memory cache store with per-entry expiry.

This module provides an in-process implementation of the CacheStore
protocol. Entries are kept in a dictionary together with a monotonic
deadline and evicted lazily on read.

The MemoryCacheStore is suitable for:
    - Single-process applications
    - Development and testing

For multi-process deployments use RedisCacheStore, which every worker shares.

Examples:
    Basic usage::

        from idempotent_create.storage.memory import MemoryCacheStore

        cache = MemoryCacheStore(prefix="idempotency")
        await cache.set(record, ttl_seconds=3600)

        cached = await cache.get(record.key)
        assert cached == record
"""

import asyncio
import time
from collections.abc import Callable

from idempotent_create.models import IdempotencyRecord
from idempotent_create.storage.base import CacheStore, build_cache_key


class MemoryCacheStore(CacheStore):
    """In-memory cache store.

    Attributes:
        prefix: Namespace prepended to every entry key.
        _entries: Mapping of cache keys to (record, deadline) pairs.
        _lock: Lock serializing writes and evictions.
    """

    def __init__(
        self,
        prefix: str = "idempotency",
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize an empty cache.

        Args:
            prefix: Namespace prepended to every entry key.
            monotonic: Clock used for entry deadlines (injectable for tests).
        """
        self.prefix = prefix
        self._monotonic = monotonic
        self._entries: dict[str, tuple[IdempotencyRecord, float]] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> IdempotencyRecord | None:
        """Return the cached record, evicting it first if its TTL elapsed."""
        cache_key = build_cache_key(self.prefix, key)
        entry = self._entries.get(cache_key)
        if entry is None:
            return None

        record, deadline = entry
        if self._monotonic() >= deadline:
            async with self._lock:
                # Only evict if nobody replaced the entry meanwhile
                if self._entries.get(cache_key) is entry:
                    del self._entries[cache_key]
            return None

        return record

    async def set(self, record: IdempotencyRecord, ttl_seconds: int) -> None:
        """Cache ``record``; a non-positive TTL stores nothing."""
        if ttl_seconds <= 0:
            return

        cache_key = build_cache_key(self.prefix, record.key)
        async with self._lock:
            self._entries[cache_key] = (record, self._monotonic() + ttl_seconds)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._entries.pop(build_cache_key(self.prefix, key), None)

    async def clear(self) -> None:
        """Drop every entry."""
        async with self._lock:
            self._entries.clear()

    async def close(self) -> None:
        return None

    def __len__(self) -> int:
        return len(self._entries)
