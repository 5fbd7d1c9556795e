"""Unit tests for the record, decision and outcome models."""

from datetime import UTC, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from idempotent_create.models import Decision, DecisionKind, IdempotencyRecord, Outcome

NOW = datetime(2025, 7, 10, 12, 0, 0, tzinfo=UTC)
HASH = "a" * 64


def record(**overrides) -> IdempotencyRecord:
    values = {
        "key": "key-1",
        "body_hash": HASH,
        "response_payload": '{"id":"tx-1","amount":12000}',
        "created_at": NOW,
        "updated_at": NOW,
        "expires_at": NOW + timedelta(hours=1),
    }
    values.update(overrides)
    return IdempotencyRecord(**values)


class TestIdempotencyRecord:
    def test_valid_record(self) -> None:
        r = record()
        assert r.key == "key-1"
        assert r.body_hash == HASH

    def test_frozen(self) -> None:
        r = record()
        with pytest.raises(ValidationError):
            r.key = "other"  # type: ignore[misc]

    @pytest.mark.parametrize("key", ["", "k" * 256])
    def test_key_length_bounds(self, key: str) -> None:
        with pytest.raises(ValidationError):
            record(key=key)

    @pytest.mark.parametrize("body_hash", ["", "a" * 63, "Z" * 64])
    def test_invalid_body_hash(self, body_hash: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            record(body_hash=body_hash)
        assert "body_hash must be exactly 64 lowercase hex characters" in str(exc_info.value)

    def test_expires_must_follow_created(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            record(expires_at=NOW)
        assert "expires_at must be after created_at" in str(exc_info.value)

    def test_naive_timestamps_taken_as_utc(self) -> None:
        naive = NOW.replace(tzinfo=None)
        r = record(created_at=naive, updated_at=naive, expires_at=naive + timedelta(hours=1))
        assert r.created_at == NOW
        assert r.created_at.tzinfo is not None

    def test_offset_timestamps_normalized_to_utc(self) -> None:
        plus_two = timezone(timedelta(hours=2))
        r = record(created_at=NOW.astimezone(plus_two))
        assert r.created_at.utcoffset() == timedelta(0)
        assert r.created_at == NOW

    def test_is_expired_is_strict(self) -> None:
        r = record()
        assert not r.is_expired(NOW)
        assert not r.is_expired(r.expires_at)
        assert r.is_expired(r.expires_at + timedelta(microseconds=1))

    def test_remaining_ttl_seconds(self) -> None:
        r = record()
        assert r.remaining_ttl_seconds(NOW) == 3600
        assert r.remaining_ttl_seconds(NOW + timedelta(minutes=59, seconds=58, milliseconds=500)) == 1
        assert r.remaining_ttl_seconds(NOW + timedelta(minutes=59, seconds=59, milliseconds=500)) == 0
        assert r.remaining_ttl_seconds(r.expires_at) == 0
        assert r.remaining_ttl_seconds(r.expires_at + timedelta(hours=1)) == 0

    def test_json_roundtrip_keeps_timestamps(self) -> None:
        r = record()
        assert IdempotencyRecord.model_validate_json(r.model_dump_json()) == r


class TestDecision:
    def test_admit(self) -> None:
        decision = Decision.admit("key-1", HASH)
        assert decision.kind == DecisionKind.ADMIT
        assert decision.is_admit
        assert not decision.is_replay
        assert decision.record is None

    def test_admit_has_no_payload(self) -> None:
        with pytest.raises(ValueError):
            _ = Decision.admit("key-1", HASH).response_payload

    def test_replay(self) -> None:
        r = record()
        decision = Decision.replay(r, "cache")
        assert decision.is_replay
        assert decision.key == r.key
        assert decision.body_hash == r.body_hash
        assert decision.source == "cache"
        assert decision.response_payload == r.response_payload


class TestOutcome:
    def test_fresh(self) -> None:
        outcome = Outcome.from_record(record(), replayed=False)
        assert outcome.status_code == 201
        assert outcome.data == {"id": "tx-1", "amount": 12000}

    def test_replayed(self) -> None:
        outcome = Outcome.from_record(record(), replayed=True)
        assert outcome.status_code == 200
        assert outcome.response_payload == record().response_payload


class TestRemainingTTLNeverOutlivesRecord:
    @pytest.mark.parametrize("left", [timedelta(milliseconds=300), timedelta(seconds=1, milliseconds=999)])
    def test_rounds_down(self, left: timedelta) -> None:
        r = record()
        ttl = r.remaining_ttl_seconds(r.expires_at - left)
        assert ttl <= left.total_seconds()
        assert ttl == int(left.total_seconds())
