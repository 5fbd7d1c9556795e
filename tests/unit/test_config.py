"""Unit tests for configuration module.

Tests the IdempotencyConfig class including validation, factory methods,
and immutability.
"""

import pytest
from pydantic import ValidationError

from idempotent_create.config import MAX_TTL_HOURS, VALID_HTTP_METHODS, IdempotencyConfig


class TestIdempotencyConfigDefaults:
    """Tests for default configuration values."""

    def test_default_values(self) -> None:
        """Test that default values are set correctly."""
        config = IdempotencyConfig()

        assert config.enabled_methods == ["POST", "PUT", "PATCH"]
        assert config.header_name == "Idempotency-Key"
        assert config.key_prefix == "idempotency"
        assert config.default_ttl_hours == 1
        assert config.max_key_length == 255
        assert config.max_admission_attempts == 3
        assert config.replay_message == "Request already processed"
        assert config.expose_internal_errors is False
        assert config.redis_url == "redis://localhost:6379/0"
        assert config.database_url.startswith("sqlite+aiosqlite://")

    def test_ttl_seconds(self) -> None:
        assert IdempotencyConfig().ttl_seconds == 3600
        assert IdempotencyConfig(default_ttl_hours=24).ttl_seconds == 86400

    def test_config_is_frozen(self) -> None:
        config = IdempotencyConfig()
        with pytest.raises(ValidationError):
            config.header_name = "X-Other"  # type: ignore[misc]


class TestEnabledMethodsValidation:
    """Tests for enabled_methods field validation."""

    def test_enabled_methods_uppercase_conversion(self) -> None:
        """Test that methods are converted to uppercase."""
        config = IdempotencyConfig(enabled_methods=["post", "put", "patch"])
        assert config.enabled_methods == ["POST", "PUT", "PATCH"]

    def test_enabled_methods_from_comma_string(self) -> None:
        config = IdempotencyConfig(enabled_methods="post, put")
        assert config.enabled_methods == ["POST", "PUT"]

    def test_enabled_methods_all_valid_methods(self) -> None:
        config = IdempotencyConfig(enabled_methods=list(VALID_HTTP_METHODS))
        assert set(config.enabled_methods) == VALID_HTTP_METHODS

    def test_enabled_methods_invalid_method(self) -> None:
        """Test that invalid HTTP methods are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            IdempotencyConfig(enabled_methods=["POST", "INVALID"])

        assert "Invalid HTTP methods: INVALID" in str(exc_info.value)

    def test_enabled_methods_empty(self) -> None:
        with pytest.raises(ValidationError):
            IdempotencyConfig(enabled_methods=[])

    def test_is_protected_method_case_insensitive(self) -> None:
        config = IdempotencyConfig()
        assert config.is_protected_method("post")
        assert config.is_protected_method("PATCH")
        assert not config.is_protected_method("DELETE")


class TestTTLValidation:
    @pytest.mark.parametrize("hours", [1, 12, MAX_TTL_HOURS])
    def test_valid_ttl(self, hours: int) -> None:
        assert IdempotencyConfig(default_ttl_hours=hours).default_ttl_hours == hours

    @pytest.mark.parametrize("hours", [0, -1, MAX_TTL_HOURS + 1])
    def test_invalid_ttl(self, hours: int) -> None:
        with pytest.raises(ValidationError) as exc_info:
            IdempotencyConfig(default_ttl_hours=hours)
        assert "default_ttl_hours must be between 1 and 168" in str(exc_info.value)


class TestKeySettings:
    def test_key_prefix_trailing_separator_stripped(self) -> None:
        config = IdempotencyConfig(key_prefix="payments:")
        assert config.key_prefix == "payments"

    def test_key_prefix_only_separators_rejected(self) -> None:
        with pytest.raises(ValidationError):
            IdempotencyConfig(key_prefix=":::")

    def test_max_key_length_bounded_by_column_width(self) -> None:
        with pytest.raises(ValidationError):
            IdempotencyConfig(max_key_length=256)

    def test_max_admission_attempts_at_least_one(self) -> None:
        with pytest.raises(ValidationError):
            IdempotencyConfig(max_admission_attempts=0)


class TestFactories:
    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("IDEMPOTENCY_DEFAULT_TTL_HOURS", "12")
        monkeypatch.setenv("IDEMPOTENCY_KEY_PREFIX", "tx")
        monkeypatch.setenv("IDEMPOTENCY_ENABLED_METHODS", "POST,PUT")
        monkeypatch.setenv("IDEMPOTENCY_EXPOSE_INTERNAL_ERRORS", "true")

        config = IdempotencyConfig.from_env()

        assert config.default_ttl_hours == 12
        assert config.key_prefix == "tx"
        assert config.enabled_methods == ["POST", "PUT"]
        assert config.expose_internal_errors is True

    def test_from_env_custom_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APP_HEADER_NAME", "X-Idempotency-Key")
        assert IdempotencyConfig.from_env(prefix="APP_").header_name == "X-Idempotency-Key"

    def test_from_env_defaults_when_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("IDEMPOTENCY_DEFAULT_TTL_HOURS", raising=False)
        assert IdempotencyConfig.from_env().default_ttl_hours == 1

    def test_from_dict_invalid(self) -> None:
        with pytest.raises(ValidationError):
            IdempotencyConfig.from_dict({"default_ttl_hours": 500})
