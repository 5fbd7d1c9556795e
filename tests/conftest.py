"""
Pytest configuration and shared fixtures for idempotent_create tests.
"""

from collections.abc import AsyncIterator, Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from idempotent_create.app import create_app
from idempotent_create.config import IdempotencyConfig
from idempotent_create.core.coordinator import IdempotencyCoordinator
from idempotent_create.core.replay import encode_payload
from idempotent_create.db import create_engine, create_schema, create_session_factory
from idempotent_create.fingerprint import compute_fingerprint
from idempotent_create.models import IdempotencyRecord
from idempotent_create.storage.memory import MemoryCacheStore
from idempotent_create.storage.sql import SqlDurableStore

START = datetime(2025, 7, 10, 12, 0, 0, tzinfo=UTC)
CONSUMER_ID = "8c3a2ed8-7f67-4f0e-aabc-3e2d725f6f01"


class FrozenClock:
    """Manually advanced UTC clock."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def make_record(
    key: str = "test-key-12345",
    body: bytes = b'{"data": "test"}',
    payload: Any = None,
    created_at: datetime = START,
    ttl: timedelta = timedelta(hours=1),
) -> IdempotencyRecord:
    """Build a record as the coordinator would have stored it."""
    return IdempotencyRecord(
        key=key,
        body_hash=compute_fingerprint(body),
        response_payload=encode_payload(payload if payload is not None else {"id": "tx-1"}),
        created_at=created_at,
        updated_at=created_at,
        expires_at=created_at + ttl,
    )


def transaction_body(**overrides: Any) -> dict[str, Any]:
    body: dict[str, Any] = {"type": "payment", "amount": 12000, "consumerId": CONSUMER_ID}
    body.update(overrides)
    return body


@pytest.fixture
def sample_idempotency_key() -> str:
    """Provide a sample idempotency key for tests."""
    return "test-key-12345"


@pytest.fixture
def sample_request_body() -> bytes:
    """Provide a sample request body for tests."""
    return b'{"data": "test"}'


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def config(tmp_path: Path) -> IdempotencyConfig:
    return IdempotencyConfig(database_url=f"sqlite+aiosqlite:///{tmp_path / 'idempotency.db'}")


@pytest.fixture
async def engine(config: IdempotencyConfig) -> AsyncIterator[Any]:
    engine = create_engine(config.database_url)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: Any) -> Any:
    return create_session_factory(engine)


@pytest.fixture
def durable(session_factory: Any) -> SqlDurableStore:
    return SqlDurableStore(session_factory)


@pytest.fixture
def cache() -> MemoryCacheStore:
    return MemoryCacheStore()


@pytest.fixture
def coordinator(
    config: IdempotencyConfig,
    durable: SqlDurableStore,
    cache: MemoryCacheStore,
    clock: FrozenClock,
) -> IdempotencyCoordinator:
    return IdempotencyCoordinator(config, durable=durable, cache=cache, clock=clock)


@pytest.fixture
def client(
    config: IdempotencyConfig,
    cache: MemoryCacheStore,
    clock: FrozenClock,
) -> Iterator[TestClient]:
    """TestClient over the full application, lifespan included."""
    app = create_app(config, cache=cache, clock=clock)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def record_factory() -> Any:
    return make_record


@pytest.fixture
def body_factory() -> Any:
    return transaction_body
