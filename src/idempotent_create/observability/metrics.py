"""Prometheus metrics for idempotency coordination.

Metrics include:

- Decisions by result (admitted, replayed, conflict, expired, invalid, error)
- Execution time of protected operations
- Cache tier failures by operation
- Reconciliations after a lost unique-constraint race

Examples:
    >>> record_decision(result="replayed", status_code=200)
    >>> record_execution_time(0.042)
    >>> record_cache_failure("get")
"""

from prometheus_client import Counter, Histogram

# Labels: result (admitted, replayed, conflict, expired, invalid, method, error), status_code
decisions_total = Counter(
    "idempotency_decisions_total",
    "Total number of idempotency decisions by result",
    ["result", "status_code"],
)

# Only tracks fresh executions, not replays
execution_seconds = Histogram(
    "idempotency_execution_seconds",
    "Protected operation execution time in seconds (fresh executions only)",
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Labels: operation (get, set)
cache_failures_total = Counter(
    "idempotency_cache_failures_total",
    "Cache tier operations that failed and were absorbed",
    ["operation"],
)

reconciliations_total = Counter(
    "idempotency_reconciliations_total",
    "Admissions that lost a unique-constraint race and re-ran the lookup",
)


def record_decision(result: str, status_code: int) -> None:
    """Record a coordination outcome.

    Args:
        result: The result type (admitted, replayed, conflict, expired, ...)
        status_code: HTTP status code the outcome maps to
    """
    decisions_total.labels(result=result, status_code=str(status_code)).inc()


def record_execution_time(seconds: float) -> None:
    """Record how long a fresh protected operation took, commit included."""
    execution_seconds.observe(seconds)


def record_cache_failure(operation: str) -> None:
    cache_failures_total.labels(operation=operation).inc()


def record_reconciliation() -> None:
    reconciliations_total.inc()
