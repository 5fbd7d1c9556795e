"""Framework adapters for idempotent admission.

- asgi.py: ASGI middleware for FastAPI, Starlette, etc.

The adapter reads the key and raw body from the framework request, runs
admission through the coordinator and answers replays and rejections with
the standard response envelope.
"""

from idempotent_create.adapters.asgi import SAFE_METHODS, ASGIIdempotencyMiddleware

__all__ = ["ASGIIdempotencyMiddleware", "SAFE_METHODS"]
