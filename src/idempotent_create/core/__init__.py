"""Core idempotency logic.

- Coordinator: admission decisions and atomic write-through execution
- Lookup: cache-then-durable record lookup with read repair
- Replay: serialization of results for verbatim replay

The core is framework-agnostic; the ASGI adapter and the API package wire it
into FastAPI/Starlette.
"""

from idempotent_create.core.coordinator import IdempotencyCoordinator
from idempotent_create.core.lookup import LookupResult, TieredLookup
from idempotent_create.core.replay import decode_payload, encode_payload

__all__ = [
    "IdempotencyCoordinator",
    "LookupResult",
    "TieredLookup",
    "decode_payload",
    "encode_payload",
]
