"""Observability utilities for idempotency coordination.

- Prometheus metrics for decisions, execution time, and cache health
- Structured logging with contextual information
"""

from idempotent_create.observability.logging import configure_logging, get_logger
from idempotent_create.observability.metrics import (
    record_cache_failure,
    record_decision,
    record_execution_time,
    record_reconciliation,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "record_decision",
    "record_execution_time",
    "record_cache_failure",
    "record_reconciliation",
]
