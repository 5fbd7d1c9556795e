"""Serialization of protected-operation results for replay.

A result is serialized once, when the operation first runs, and the stored
text is what every caller receives from then on. Replays therefore return
the original result byte for byte instead of re-serializing a fresh object.

Examples:
    >>> payload = encode_payload({"id": "8c3a2ed8", "amount": 12000})
    >>> payload
    '{"id":"8c3a2ed8","amount":12000}'
    >>> decode_payload(payload)["amount"]
    12000
"""

import json
from typing import Any

from pydantic_core import PydanticSerializationError, to_json


def encode_payload(result: Any) -> str:
    """Serialize an operation result to JSON text.

    Pydantic models are dumped by alias; datetimes, UUIDs and decimals use
    pydantic's JSON representations.

    Raises:
        ValueError: If the result is not serializable.
    """
    try:
        return to_json(result, by_alias=True).decode("utf-8")
    except PydanticSerializationError as e:
        raise ValueError(f"Operation result is not JSON serializable: {e}") from e


def decode_payload(payload: str) -> Any:
    """Decode a stored payload back into plain JSON values."""
    return json.loads(payload)
