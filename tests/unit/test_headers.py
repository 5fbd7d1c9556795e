"""Unit tests for header helpers."""

from starlette.datastructures import Headers

from idempotent_create.utils.headers import add_replay_headers, extract_trace_id


class TestAddReplayHeaders:
    def test_replay(self):
        headers = add_replay_headers({"Content-Type": "application/json"}, "abc-123")
        assert headers == {
            "Content-Type": "application/json",
            "Idempotent-Replay": "true",
            "Idempotency-Key": "abc-123",
        }

    def test_fresh(self):
        assert add_replay_headers(None, "abc-123", is_replay=False)["Idempotent-Replay"] == "false"

    def test_does_not_mutate_input(self):
        original = {"X-Custom": "1"}
        add_replay_headers(original, "abc-123")
        assert original == {"X-Custom": "1"}


class TestExtractTraceId:
    def test_finds_first_known_header(self):
        headers = Headers({"X-Request-Id": "req-1", "traceparent": "00-abc"})
        assert extract_trace_id(headers) == "req-1"

    def test_case_insensitive(self):
        assert extract_trace_id(Headers({"X-TRACE-ID": "t-1"})) == "t-1"

    def test_missing(self):
        assert extract_trace_id(Headers({"content-type": "application/json"})) is None
