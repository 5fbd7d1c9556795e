"""
Create-once idempotency coordination for mutating HTTP operations.

A client-supplied idempotency key guarantees that a protected operation takes
effect at most once: retries with the same key and body replay the stored
result, retries with a different body are rejected, and the business write
and the idempotency record are committed in one durable transaction.
"""

from idempotent_create.config import IdempotencyConfig
from idempotent_create.core.coordinator import IdempotencyCoordinator
from idempotent_create.models import Decision, DecisionKind, IdempotencyRecord, Outcome

__version__ = "0.1.0"

__all__ = [
    "Decision",
    "DecisionKind",
    "IdempotencyConfig",
    "IdempotencyCoordinator",
    "IdempotencyRecord",
    "Outcome",
    "__version__",
]
