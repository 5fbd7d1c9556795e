"""FastAPI application factory.

The lifespan builds the durable store on the configured database, creates
the schema, and wires the coordinator into ``app.state`` where the middleware
and the routes find it.

Examples:
    Default wiring (Redis cache, database from config)::

        app = create_app(IdempotencyConfig.from_env())

    In-process cache and a fixed clock, as the tests do::

        app = create_app(config, cache=MemoryCacheStore(), clock=lambda: frozen_now)
"""

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI

from idempotent_create.adapters.asgi import ASGIIdempotencyMiddleware
from idempotent_create.api.errors import install_exception_handlers
from idempotent_create.config import IdempotencyConfig
from idempotent_create.core.coordinator import IdempotencyCoordinator
from idempotent_create.db import create_engine, create_schema, create_session_factory, utcnow
from idempotent_create.observability.logging import get_logger
from idempotent_create.storage.base import CacheStore
from idempotent_create.storage.redis_cache import RedisCacheStore
from idempotent_create.storage.sql import SqlDurableStore
from idempotent_create.transactions.routes import router as transactions_router

logger = get_logger(__name__)


def create_app(
    config: IdempotencyConfig | None = None,
    *,
    cache: CacheStore | None = None,
    clock: Callable[[], datetime] | None = None,
) -> FastAPI:
    """Build the transactions API with idempotent admission.

    Args:
        config: Configuration (defaults to ``IdempotencyConfig()``).
        cache: Cache store; a Redis store on ``config.redis_url`` when omitted.
        clock: Time source for the coordinator; wall-clock UTC when omitted.
    """
    config = config or IdempotencyConfig()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        engine = create_engine(config.database_url)
        await create_schema(engine)
        session_factory = create_session_factory(engine)

        cache_store = cache
        if cache_store is None:
            cache_store = RedisCacheStore.from_url(config.redis_url, prefix=config.key_prefix)

        app.state.session_factory = session_factory
        app.state.coordinator = IdempotencyCoordinator(
            config,
            durable=SqlDurableStore(session_factory),
            cache=cache_store,
            clock=clock or utcnow,
        )
        logger.info("app.started", database=engine.dialect.name, cache=type(cache_store).__name__)
        try:
            yield
        finally:
            await cache_store.close()
            await engine.dispose()
            logger.info("app.stopped")

    app = FastAPI(
        title="Idempotent Transactions API",
        description="Create-once transaction API guarded by idempotency keys",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(ASGIIdempotencyMiddleware, config=config)
    install_exception_handlers(app, expose_internal_errors=config.expose_internal_errors)
    app.include_router(transactions_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "healthy"}

    return app
