"""Runtime configuration model for modproxy.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import DEFAULT_REGISTRY_MAX_ATTEMPTS, DEFAULT_STORAGE_ROOT
from core.errors import ProxyConfigError


@dataclass(frozen=True)
class ProxyConfig:
    """Validated runtime configuration.

    Attributes:
        storage_root: Local root directory used by the file storage backend.
        storage_uri: Optional ``s3://bucket/prefix`` selecting the S3 backend.
        s3_region: Optional default AWS region for S3 operations.
        s3_profile: Optional AWS profile for boto3 session initialization.
        registry_max_attempts: Version list write attempts before giving up.
    """

    storage_root: Path
    storage_uri: str | None
    s3_region: str | None
    s3_profile: str | None
    registry_max_attempts: int

    @classmethod
    def from_env(cls) -> "ProxyConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            ProxyConfigError: If environment values are invalid.
        """
        storage_root_value = os.getenv("MODPROXY_STORAGE_ROOT", str(DEFAULT_STORAGE_ROOT))
        storage_uri = os.getenv("MODPROXY_STORAGE_URI") or None
        s3_region = os.getenv("MODPROXY_S3_REGION")
        s3_profile = os.getenv("MODPROXY_S3_PROFILE")
        attempts_value = os.getenv(
            "MODPROXY_REGISTRY_ATTEMPTS", str(DEFAULT_REGISTRY_MAX_ATTEMPTS)
        )
        return cls(
            storage_root=Path(storage_root_value).expanduser().resolve(),
            storage_uri=_validate_storage_uri(storage_uri),
            s3_region=s3_region,
            s3_profile=s3_profile,
            registry_max_attempts=_parse_registry_attempts(attempts_value),
        )


def _validate_storage_uri(raw_value: str | None) -> str | None:
    """Validate the optional storage URI scheme.

    Args:
        raw_value: Raw string from environment.

    Returns:
        The URI unchanged, or None when unset.

    Raises:
        ProxyConfigError: If the URI uses an unsupported scheme.
    """
    if raw_value is None:
        return None
    if not raw_value.startswith("s3://"):
        raise ProxyConfigError(
            f"Invalid MODPROXY_STORAGE_URI value '{raw_value}': expected s3://bucket/prefix. "
            "Unset it to use MODPROXY_STORAGE_ROOT instead."
        )
    return raw_value


def _parse_registry_attempts(raw_value: str) -> int:
    """Parse the registry attempt count environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Parsed positive attempt count.

    Raises:
        ProxyConfigError: If value is not a positive integer.
    """
    try:
        attempts = int(raw_value)
    except ValueError as error:
        raise ProxyConfigError(
            "Invalid MODPROXY_REGISTRY_ATTEMPTS value: "
            f"expected integer, got '{raw_value}'. "
            "Set MODPROXY_REGISTRY_ATTEMPTS to a numeric value."
        ) from error
    if attempts < 1:
        raise ProxyConfigError(
            f"Invalid MODPROXY_REGISTRY_ATTEMPTS value {attempts}: must be at least 1."
        )
    return attempts
