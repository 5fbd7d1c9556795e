"""Request body fingerprinting for idempotency.

The fingerprint is a SHA-256 digest of the request body exactly as it was
serialized. Two logically identical payloads serialized differently produce
different fingerprints; canonicalizing the payload is the caller's job.
"""

import hashlib

FINGERPRINT_LENGTH = 64


def compute_fingerprint(body: bytes | str) -> str:
    """Compute the fingerprint of a raw request body.

    Args:
        body: Request body as bytes, or text (encoded as UTF-8).

    Returns:
        Hexadecimal SHA-256 hash string (64 characters)

    Examples:
        >>> compute_fingerprint(b"")
        'e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855'
    """
    if isinstance(body, str):
        body = body.encode("utf-8")
    return hashlib.sha256(body).hexdigest()


def is_fingerprint(value: str) -> bool:
    """Whether ``value`` looks like a fingerprint produced by this module."""
    return len(value) == FINGERPRINT_LENGTH and all(c in "0123456789abcdef" for c in value)
