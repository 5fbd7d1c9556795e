"""Demo server for the idempotent transactions API.

Run with: python demo_app.py
Settings come from IDEMPOTENCY_* environment variables, e.g.
IDEMPOTENCY_DATABASE_URL and IDEMPOTENCY_REDIS_URL.
Set DEMO_MEMORY_CACHE=1 to run without a Redis server.
"""

import os

import uvicorn

from idempotent_create.app import create_app
from idempotent_create.config import IdempotencyConfig
from idempotent_create.observability.logging import configure_logging
from idempotent_create.storage.memory import MemoryCacheStore

configure_logging(level=os.environ.get("LOG_LEVEL", "INFO"), json_output=False)

config = IdempotencyConfig.from_env()
cache = MemoryCacheStore(prefix=config.key_prefix) if os.environ.get("DEMO_MEMORY_CACHE") else None
app = create_app(config, cache=cache)


if __name__ == "__main__":
    print("=" * 60)
    print("Idempotent Transactions Demo Server")
    print("=" * 60)
    print("\nStarting server at http://localhost:8000")
    print("\nTry these commands:")
    print(
        "  curl -X POST http://localhost:8000/api/transactions "
        "-H 'Content-Type: application/json' -H 'Idempotency-Key: demo-1' "
        '-d \'{"type": "payment", "amount": 12000, '
        '"consumerId": "8c3a2ed8-7f67-4f0e-aabc-3e2d725f6f01"}\''
    )
    print("  curl http://localhost:8000/api/transactions")
    print("\nPress Ctrl+C to stop")
    print("=" * 60)
    print()

    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="info")
