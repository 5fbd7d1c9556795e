"""Storage tiers for idempotency records.

- base.py: CacheStore / DurableStore protocols
- memory.py: in-process cache store
- redis_cache.py: Redis cache store
- sql.py: SQLAlchemy durable store
"""

from idempotent_create.storage.base import (
    CacheStore,
    DurableStore,
    DurableTransaction,
    build_cache_key,
)
from idempotent_create.storage.memory import MemoryCacheStore

__all__ = [
    "CacheStore",
    "DurableStore",
    "DurableTransaction",
    "MemoryCacheStore",
    "build_cache_key",
]
