"""Redis-backed cache store.

Entries live under ``"<prefix>:<idempotency-key>"`` and hold the JSON form of
the IdempotencyRecord. Redis enforces the TTL with ``SET ... EX``, so an
entry never outlives the validity window it was written with.

Examples:
    Connecting from a URL::

        from idempotent_create.storage.redis_cache import RedisCacheStore

        cache = RedisCacheStore.from_url("redis://localhost:6379/0", prefix="idempotency")
        record = await cache.get("unique-key-123")
        await cache.close()
"""

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from idempotent_create.exceptions import StorageError
from idempotent_create.models import IdempotencyRecord
from idempotent_create.storage.base import CacheStore, build_cache_key


class RedisCacheStore(CacheStore):
    """Cache store on top of a ``redis.asyncio`` client.

    Attributes:
        client: The Redis client. Shared connection pool, safe across tasks.
        prefix: Namespace prepended to every entry key.
    """

    def __init__(self, client: Redis, prefix: str = "idempotency") -> None:
        self.client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = "idempotency", **kwargs: object) -> "RedisCacheStore":
        """Build a store with a client created from ``url``."""
        return cls(Redis.from_url(url, **kwargs), prefix=prefix)

    async def get(self, key: str) -> IdempotencyRecord | None:
        cache_key = build_cache_key(self.prefix, key)
        try:
            data = await self.client.get(cache_key)
        except RedisError as e:
            raise StorageError(f"Failed to read {cache_key!r} from Redis: {e}", cause=e) from e

        if data is None:
            return None

        try:
            return IdempotencyRecord.model_validate_json(data)
        except ValidationError as e:
            raise StorageError(f"Undecodable cache entry at {cache_key!r}", cause=e) from e

    async def set(self, record: IdempotencyRecord, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return

        cache_key = build_cache_key(self.prefix, record.key)
        try:
            await self.client.set(cache_key, record.model_dump_json(), ex=ttl_seconds)
        except RedisError as e:
            raise StorageError(f"Failed to write {cache_key!r} to Redis: {e}", cause=e) from e

    async def delete(self, key: str) -> None:
        cache_key = build_cache_key(self.prefix, key)
        try:
            await self.client.delete(cache_key)
        except RedisError as e:
            raise StorageError(f"Failed to delete {cache_key!r} from Redis: {e}", cause=e) from e

    async def close(self) -> None:
        await self.client.aclose()
