"""Header helpers for idempotent responses."""

REPLAY_HEADER = "Idempotent-Replay"
KEY_HEADER = "Idempotency-Key"


def add_replay_headers(
    headers: dict[str, str] | None,
    idempotency_key: str,
    is_replay: bool = True,
) -> dict[str, str]:
    """Add idempotency-specific headers to response.

    Args:
        headers: Existing response headers
        idempotency_key: The idempotency key used for this request
        is_replay: Whether this is a replayed response (default True)

    Returns:
        Headers with replay metadata added

    Example:
        >>> add_replay_headers({"Content-Type": "application/json"}, "abc-123")
        {'Content-Type': 'application/json', 'Idempotent-Replay': 'true', 'Idempotency-Key': 'abc-123'}
    """
    # Create new dict to avoid mutating original
    result = dict(headers or {})
    result[REPLAY_HEADER] = "true" if is_replay else "false"
    result[KEY_HEADER] = idempotency_key
    return result


def extract_trace_id(headers: dict[str, str] | object) -> str | None:
    """Find a distributed tracing ID among common tracing headers.

    Args:
        headers: Any mapping with case-insensitive ``get`` (Starlette Headers)

    Returns:
        Trace ID if found, None otherwise
    """
    trace_headers = [
        "x-trace-id",
        "x-request-id",
        "x-correlation-id",
        "traceparent",
    ]

    for header in trace_headers:
        value = headers.get(header)  # type: ignore[attr-defined]
        if value:
            return str(value)

    return None
