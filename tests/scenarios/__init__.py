"""End-to-end scenarios for the idempotent transactions API.

Each scenario drives the full application (middleware, coordinator, SQLite
durable store, in-memory cache) through FastAPI's TestClient and checks one
aspect of create-once handling.
"""
