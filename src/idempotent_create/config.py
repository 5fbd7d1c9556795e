"""Configuration module for the idempotency coordinator.

This module provides the IdempotencyConfig class. A config instance is built
once (explicitly, from the environment, or from a dictionary) and handed to the
coordinator and the HTTP middleware at construction time; the decision logic
itself never reads process state.

Example:
    Basic usage with defaults:

        >>> config = IdempotencyConfig()
        >>> config.enabled_methods
        ['POST', 'PUT', 'PATCH']

    Custom configuration:

        >>> config = IdempotencyConfig(
        ...     header_name="X-Idempotency-Key",
        ...     key_prefix="payments",
        ...     default_ttl_hours=24,
        ...     redis_url="redis://cache:6379/1",
        ... )

    Loading from environment:

        >>> import os
        >>> os.environ['IDEMPOTENCY_DEFAULT_TTL_HOURS'] = '12'
        >>> os.environ['IDEMPOTENCY_KEY_PREFIX'] = 'tx'
        >>> config = IdempotencyConfig.from_env()
"""

import os
from typing import Any

from pydantic import BaseModel, Field, field_validator

# Valid HTTP methods for idempotency
VALID_HTTP_METHODS = {
    "GET",
    "HEAD",
    "POST",
    "PUT",
    "DELETE",
    "CONNECT",
    "OPTIONS",
    "TRACE",
    "PATCH",
}

# Upper bound for the validity window (7 days)
MAX_TTL_HOURS = 168


class IdempotencyConfig(BaseModel):
    """Configuration for idempotency coordination.

    Attributes:
        enabled_methods: HTTP methods protected by the create-once guarantee.
            Any other unsafe method is rejected with 405. Default is the
            create/update verbs POST, PUT, PATCH.
        header_name: Name of the request header carrying the idempotency key.
            Matched case-insensitively. Default is "Idempotency-Key".
        key_prefix: Prefix of cache entry keys ("<prefix>:<key>").
        default_ttl_hours: Validity window of a record, in hours. Must be
            between 1 and 168. Default is 1 hour.
        max_key_length: Longest accepted idempotency key. Must match the
            width of the durable key column. Default is 255.
        max_admission_attempts: How many times an admission that lost a
            unique-constraint race re-runs the lookup before giving up.
        replay_message: Envelope message returned with replayed responses.
        expose_internal_errors: If True, storage error details are included in
            500 responses. Keep False in production.
        redis_url: Connection URL of the cache tier.
        database_url: SQLAlchemy async URL of the durable store.

    Note:
        This class is immutable (frozen=True). Create a new instance if you
        need different settings.
    """

    enabled_methods: list[str] | str = Field(
        default=["POST", "PUT", "PATCH"],
        description="HTTP methods protected by idempotency keys",
    )
    header_name: str = Field(
        default="Idempotency-Key",
        min_length=1,
        description="Request header carrying the idempotency key",
    )
    key_prefix: str = Field(
        default="idempotency",
        min_length=1,
        description="Prefix for cache entry keys",
    )
    default_ttl_hours: int = Field(
        default=1,
        description="Validity window of idempotency records in hours (1-168)",
    )
    max_key_length: int = Field(
        default=255,
        ge=1,
        le=255,
        description="Maximum accepted idempotency key length",
    )
    max_admission_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Lookup re-runs allowed after a lost admission race",
    )
    replay_message: str = Field(
        default="Request already processed",
        description="Envelope message for replayed responses",
    )
    expose_internal_errors: bool = Field(
        default=False,
        description="Include storage error details in 500 responses",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Connection URL for the cache tier",
    )
    database_url: str = Field(
        default="sqlite+aiosqlite:///./idempotency.db",
        description="SQLAlchemy async URL for the durable store",
    )

    model_config = {"frozen": True}

    @field_validator("enabled_methods", mode="before")
    @classmethod
    def validate_enabled_methods(cls, v: Any) -> list[str]:
        """Validate and normalize enabled HTTP methods.

        Args:
            v: List of HTTP method strings or comma-separated string.

        Returns:
            List of uppercase, validated HTTP methods.

        Raises:
            ValueError: If any method is not a valid HTTP method, or the list
                is empty.
        """
        if isinstance(v, str):
            # Handle comma-separated string (from environment variables)
            v = [method.strip() for method in v.split(",") if method.strip()]

        if not isinstance(v, list):
            raise ValueError("enabled_methods must be a list or comma-separated string")

        methods = [method.upper() for method in v]
        if not methods:
            raise ValueError("enabled_methods must contain at least one method")

        invalid_methods = set(methods) - VALID_HTTP_METHODS
        if invalid_methods:
            raise ValueError(
                f"Invalid HTTP methods: {', '.join(sorted(invalid_methods))}. "
                f"Valid methods are: {', '.join(sorted(VALID_HTTP_METHODS))}"
            )

        return methods

    @field_validator("default_ttl_hours")
    @classmethod
    def validate_default_ttl_hours(cls, v: int) -> int:
        """Validate TTL is within acceptable range.

        Raises:
            ValueError: If TTL is not between 1 and 168 hours (7 days).
        """
        if not (1 <= v <= MAX_TTL_HOURS):
            raise ValueError(
                f"default_ttl_hours must be between 1 and {MAX_TTL_HOURS} (7 days), got {v}"
            )
        return v

    @field_validator("key_prefix")
    @classmethod
    def validate_key_prefix(cls, v: str) -> str:
        """Strip a trailing separator so cache keys never contain '::'."""
        stripped = v.rstrip(":")
        if not stripped:
            raise ValueError("key_prefix must contain at least one non-':' character")
        return stripped

    @property
    def ttl_seconds(self) -> int:
        """Validity window in seconds."""
        return self.default_ttl_hours * 3600

    def is_protected_method(self, method: str) -> bool:
        """Whether requests with this method fall under the create-once guarantee."""
        return method.upper() in self.enabled_methods

    @classmethod
    def from_env(cls, prefix: str = "IDEMPOTENCY_") -> "IdempotencyConfig":
        """Create configuration from environment variables.

        Variable names are uppercase field names with the prefix, for example
        IDEMPOTENCY_HEADER_NAME or IDEMPOTENCY_DATABASE_URL. Missing variables
        use the model defaults.

        Args:
            prefix: Prefix for environment variable names. Default is "IDEMPOTENCY_".

        Returns:
            IdempotencyConfig instance populated from environment variables.
        """
        config_dict: dict[str, Any] = {}

        # Map of field names to their types for proper conversion
        field_types = {
            "enabled_methods": list,
            "header_name": str,
            "key_prefix": str,
            "default_ttl_hours": int,
            "max_key_length": int,
            "max_admission_attempts": int,
            "replay_message": str,
            "expose_internal_errors": bool,
            "redis_url": str,
            "database_url": str,
        }

        for field_name, field_type in field_types.items():
            env_var = f"{prefix}{field_name.upper()}"
            env_value = os.environ.get(env_var)

            if env_value is None:
                continue

            if field_type is int:
                config_dict[field_name] = int(env_value)
            elif field_type is bool:
                config_dict[field_name] = env_value.strip().lower() in {"1", "true", "yes", "on"}
            else:
                # Lists stay comma-separated strings; the validator splits them
                config_dict[field_name] = env_value

        return cls(**config_dict)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> "IdempotencyConfig":
        """Create configuration from a dictionary.

        Raises:
            ValidationError: If the dictionary contains invalid values.
        """
        return cls(**config_dict)
