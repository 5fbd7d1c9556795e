"""Property-based tests for fingerprint module using Hypothesis."""

from hypothesis import assume, given
from hypothesis import strategies as st

from idempotent_create.fingerprint import compute_fingerprint, is_fingerprint

body_strategy = st.one_of(
    st.binary(min_size=0, max_size=10000),
    st.text(min_size=0, max_size=5000).map(lambda s: s.encode("utf-8")),
    st.just(b""),
)


@given(body_strategy)
def test_fingerprint_is_deterministic(body: bytes) -> None:
    assert compute_fingerprint(body) == compute_fingerprint(body)


@given(body_strategy)
def test_fingerprint_is_valid_hex(body: bytes) -> None:
    assert is_fingerprint(compute_fingerprint(body))


@given(body_strategy, body_strategy)
def test_different_bodies_different_fingerprints(first: bytes, second: bytes) -> None:
    assume(first != second)
    assert compute_fingerprint(first) != compute_fingerprint(second)


@given(st.text(max_size=2000))
def test_text_equals_utf8_bytes(text: str) -> None:
    assert compute_fingerprint(text) == compute_fingerprint(text.encode("utf-8"))

