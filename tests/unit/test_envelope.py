"""Unit tests for the response envelope and error mapping."""

import json
from datetime import UTC, datetime

from starlette.requests import Request

from idempotent_create.api.envelope import envelope_response, format_response, request_path
from idempotent_create.api.errors import INTERNAL_ERROR_DETAIL, idempotency_error_response
from idempotent_create.exceptions import ConflictError, InvalidKeyError, KeyExpiredError, StorageError


def make_request(path: str = "/api/transactions", query: str = "") -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": path,
        "query_string": query.encode(),
        "headers": [],
        "scheme": "http",
        "server": ("testserver", 80),
    }
    return Request(scope)


def body_of(response) -> dict:
    return json.loads(response.body)


class TestEnvelope:
    def test_request_path_with_query(self):
        assert request_path(make_request(query="page=2&limit=5")) == "/api/transactions?page=2&limit=5"

    def test_request_path_without_query(self):
        assert request_path(make_request()) == "/api/transactions"

    def test_format_response_shape(self):
        envelope = format_response(make_request(), "Transaction created successfully", data={"id": "tx-1"})
        assert envelope.message == "Transaction created successfully"
        assert envelope.error is None
        assert envelope.data == {"id": "tx-1"}
        assert envelope.path == "/api/transactions"
        assert envelope.timestamp.tzinfo is not None
        assert envelope.timestamp <= datetime.now(UTC)

    def test_envelope_response(self):
        response = envelope_response(make_request(), 201, "Created", data={"id": "tx-1"}, headers={"X-A": "1"})
        assert response.status_code == 201
        assert response.media_type == "application/json"
        assert response.headers["x-a"] == "1"
        assert set(body_of(response)) == {"message", "error", "data", "path", "timestamp"}


class TestIdempotencyErrorResponse:
    def test_invalid_key(self):
        response = idempotency_error_response(make_request(), InvalidKeyError())
        body = body_of(response)
        assert response.status_code == 400
        assert body["message"] == "Invalid idempotency key"
        assert body["error"] == "Idempotency key is required and must be a non-empty string"
        assert body["data"] is None

    def test_conflict_echoes_key(self):
        response = idempotency_error_response(make_request(), ConflictError("key-1", "a" * 64, "b" * 64))
        assert response.status_code == 409
        assert response.headers["idempotency-key"] == "key-1"

    def test_expired(self):
        error = KeyExpiredError("key-1", datetime(2025, 7, 10, tzinfo=UTC))
        response = idempotency_error_response(make_request(), error)
        assert response.status_code == 419
        assert body_of(response)["message"] == "Idempotency key expired"

    def test_storage_error_hides_details(self):
        response = idempotency_error_response(make_request(), StorageError("password=hunter2 rejected"))
        body = body_of(response)
        assert response.status_code == 500
        assert body["message"] == "Internal server error"
        assert body["error"] == INTERNAL_ERROR_DETAIL
        assert "hunter2" not in response.body.decode()

    def test_storage_error_details_exposed_when_configured(self):
        response = idempotency_error_response(
            make_request(), StorageError("database unavailable"), expose_internal_errors=True
        )
        assert body_of(response)["error"] == "database unavailable"
