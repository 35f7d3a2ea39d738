"""Blob storage contract and key helpers.

This module defines the asynchronous storage protocol consumed by the
publisher. Backends are interchangeable as long as they honor it.
"""

from __future__ import annotations

from typing import Protocol

from core.constants import KEY_SEPARATOR
from core.errors import InvalidPathError


class BlobStorage(Protocol):
    """Asynchronous key/value byte store addressed by ``/``-separated keys."""

    async def save(self, key: str, content: bytes) -> None:
        """Store bytes under key, replacing any previous value."""
        ...

    async def read(self, key: str) -> bytes:
        """Return bytes stored under key or raise NotFoundError."""
        ...

    async def exists(self, key: str) -> bool:
        """Return whether key holds a value."""
        ...

    async def list_keys(self, prefix: str) -> set[str]:
        """Return every stored key under prefix."""
        ...


def join_key(*parts: str) -> str:
    """Join key segments with the storage separator.

    Args:
        parts: Key segments; empty segments are skipped.

    Returns:
        Joined key.
    """
    return KEY_SEPARATOR.join(part.strip(KEY_SEPARATOR) for part in parts if part)


def validate_key(key: str) -> str:
    """Validate that a key is relative and free of traversal segments.

    Args:
        key: Storage key.

    Returns:
        The key unchanged.

    Raises:
        InvalidPathError: If key is empty, absolute, or has bad segments.
    """
    if not key or key.startswith(KEY_SEPARATOR) or "\\" in key:
        raise InvalidPathError(
            f"Invalid storage key '{key}': expected a non-empty relative key using '/'."
        )
    for segment in key.split(KEY_SEPARATOR):
        if segment in {"", ".", ".."}:
            raise InvalidPathError(
                f"Invalid storage key '{key}': empty, '.' and '..' segments are not allowed."
            )
    return key


def key_prefix(prefix: str) -> str:
    """Normalize a listing prefix to end with the separator.

    Args:
        prefix: Listing prefix, possibly empty.

    Returns:
        Empty string for the root, otherwise ``prefix/``.
    """
    stripped = prefix.strip(KEY_SEPARATOR)
    if not stripped:
        return ""
    validate_key(stripped)
    return stripped + KEY_SEPARATOR
