"""HTTP surface shared by idempotent endpoints.

- envelope.py: ``{message, error, data, path, timestamp}`` response body
- errors.py: exception handlers mapping errors to envelopes
- dependencies.py: FastAPI dependencies (coordinator, session, admission)
"""

from idempotent_create.api.dependencies import (
    get_coordinator,
    get_session,
    outcome_response,
    require_admission,
)
from idempotent_create.api.envelope import ResponseEnvelope, envelope_response
from idempotent_create.api.errors import install_exception_handlers

__all__ = [
    "ResponseEnvelope",
    "envelope_response",
    "get_coordinator",
    "get_session",
    "install_exception_handlers",
    "outcome_response",
    "require_admission",
]
