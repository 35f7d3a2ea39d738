"""In-memory storage backend.

Every operation yields to the event loop once, so concurrent callers
interleave the same way they would against a remote store.
"""

from __future__ import annotations

import asyncio

from core.errors import NotFoundError
from storage.base import key_prefix, validate_key


class MemoryStorage:
    """Dict-backed blob storage for embedding and tests."""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self._blobs: dict[str, bytes] = {}
        for key, content in (initial or {}).items():
            self._blobs[validate_key(key)] = bytes(content)
        self.write_count = 0

    async def save(self, key: str, content: bytes) -> None:
        validate_key(key)
        await asyncio.sleep(0)
        self._blobs[key] = bytes(content)
        self.write_count += 1

    async def read(self, key: str) -> bytes:
        validate_key(key)
        await asyncio.sleep(0)
        try:
            return self._blobs[key]
        except KeyError as error:
            raise NotFoundError(f"Storage key '{key}' not found in memory storage.") from error

    async def exists(self, key: str) -> bool:
        validate_key(key)
        await asyncio.sleep(0)
        return key in self._blobs

    async def list_keys(self, prefix: str) -> set[str]:
        normalized = key_prefix(prefix)
        await asyncio.sleep(0)
        return {key for key in self._blobs if key.startswith(normalized)}
