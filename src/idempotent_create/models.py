"""Core type definitions for idempotency coordination.

This module provides the data structures shared by the coordinator and the
storage tiers: the idempotency record itself, the admission decision, and the
outcome of running a protected operation.

Examples:
    Creating an idempotency record::

        from datetime import UTC, datetime, timedelta
        from idempotent_create.models import IdempotencyRecord

        now = datetime.now(UTC)
        record = IdempotencyRecord(
            key="unique-key-123",
            body_hash="a" * 64,
            response_payload='{"id": "8c3a2ed8"}',
            created_at=now,
            updated_at=now,
            expires_at=now + timedelta(hours=1),
        )

    Inspecting a decision::

        decision = await coordinator.admit("POST", "unique-key-123", body)
        if decision.is_replay:
            return decision.response_payload
"""

import json
import math
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from idempotent_create.fingerprint import is_fingerprint


class IdempotencyRecord(BaseModel):
    """Durable trace of one admitted operation.

    Records are created once, inside the transaction that performs the
    protected effect, and never modified afterwards. Both storage tiers hold
    the same shape so comparison logic is backend-agnostic.

    Attributes:
        key: The idempotency key provided by the client.
        body_hash: Fingerprint of the payload that first claimed the key.
        response_payload: Serialized result, replayed verbatim on retries.
        created_at: When the record was written.
        updated_at: Last write time (equal to created_at in practice).
        expires_at: After this instant the key is no longer valid for replay.
    """

    key: str = Field(
        ...,
        description="Idempotency key provided by the client",
        min_length=1,
        max_length=255,
        examples=["unique-key-123", "8c3a2ed8-7f67-4f0e-aabc-3e2d725f6f01"],
    )
    body_hash: str = Field(
        ...,
        description="SHA-256 fingerprint of the request body (64 hex characters)",
        examples=["a" * 64],
    )
    response_payload: str = Field(
        ...,
        description="Serialized result of the protected operation",
    )
    created_at: datetime = Field(..., description="Timestamp when the record was created")
    updated_at: datetime = Field(..., description="Timestamp of the last write")
    expires_at: datetime = Field(..., description="Timestamp after which replay is refused")

    model_config = {"frozen": True}

    @field_validator("body_hash")
    @classmethod
    def validate_body_hash(cls, v: str) -> str:
        """Validate that the body hash is a valid SHA-256 hex string."""
        if not is_fingerprint(v):
            raise ValueError("body_hash must be exactly 64 lowercase hex characters")
        return v

    @field_validator("created_at", "updated_at", "expires_at")
    @classmethod
    def validate_timezone(cls, v: datetime) -> datetime:
        """Normalize timestamps to aware UTC; naive values are taken as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v.astimezone(UTC)

    @field_validator("expires_at")
    @classmethod
    def validate_expires_after_created(cls, v: datetime, info: Any) -> datetime:
        """Validate that expires_at is after created_at."""
        if "created_at" in info.data and v <= info.data["created_at"]:
            raise ValueError("expires_at must be after created_at")
        return v

    def is_expired(self, now: datetime) -> bool:
        """Whether the record is past its validity window at ``now``."""
        return now > self.expires_at

    def remaining_ttl_seconds(self, now: datetime) -> int:
        """Whole seconds left in the validity window, rounded down.

        0 means the record must not be cached: it is expired or has less
        than a second left.
        """
        remaining = (self.expires_at - now).total_seconds()
        if remaining <= 0:
            return 0
        return math.floor(remaining)


class DecisionKind(str, Enum):
    """What the coordinator decided for an incoming request.

    Attributes:
        ADMIT: No record exists; the caller may run the operation once.
        REPLAY: A matching, unexpired record exists; return its payload.
    """

    ADMIT = "ADMIT"
    REPLAY = "REPLAY"


class Decision(BaseModel):
    """Result of ``IdempotencyCoordinator.admit``.

    Rejections (conflict, expiry, invalid input) are raised, never returned,
    so a decision is either an admission or a replay.

    Attributes:
        kind: ADMIT or REPLAY.
        key: The idempotency key.
        body_hash: Fingerprint of the incoming request body.
        record: The stored record (REPLAY only).
        source: Which tier answered the lookup ("cache" or "durable"; REPLAY only).
    """

    kind: DecisionKind
    key: str
    body_hash: str
    record: IdempotencyRecord | None = None
    source: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def admit(cls, key: str, body_hash: str) -> "Decision":
        return cls(kind=DecisionKind.ADMIT, key=key, body_hash=body_hash)

    @classmethod
    def replay(cls, record: IdempotencyRecord, source: str) -> "Decision":
        return cls(
            kind=DecisionKind.REPLAY,
            key=record.key,
            body_hash=record.body_hash,
            record=record,
            source=source,
        )

    @property
    def is_admit(self) -> bool:
        return self.kind == DecisionKind.ADMIT

    @property
    def is_replay(self) -> bool:
        return self.kind == DecisionKind.REPLAY

    @property
    def response_payload(self) -> str:
        """Stored payload of a replay decision.

        Raises:
            ValueError: If the decision is an admission.
        """
        if self.record is None:
            raise ValueError(f"Decision for key {self.key} has no stored response")
        return self.record.response_payload


class Outcome(BaseModel):
    """Response to hand back to the client after coordination.

    Fresh executions and replays both carry the stored serialized payload, so
    the first response and every retry are identical apart from the status.

    Attributes:
        key: The idempotency key.
        replayed: True if the payload came from an existing record.
        response_payload: Serialized result of the protected operation.
    """

    key: str
    replayed: bool
    response_payload: str

    model_config = {"frozen": True}

    @classmethod
    def from_record(cls, record: IdempotencyRecord, replayed: bool) -> "Outcome":
        return cls(key=record.key, replayed=replayed, response_payload=record.response_payload)

    @property
    def status_code(self) -> int:
        """201 for a first execution, 200 for a replay."""
        return 200 if self.replayed else 201

    @property
    def data(self) -> Any:
        """Decoded result payload."""
        return json.loads(self.response_payload)
