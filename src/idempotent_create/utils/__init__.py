"""Utility modules for idempotency handling."""

from .headers import KEY_HEADER, REPLAY_HEADER, add_replay_headers, extract_trace_id

__all__ = [
    "add_replay_headers",
    "extract_trace_id",
    "KEY_HEADER",
    "REPLAY_HEADER",
]
