"""Local directory storage backend.

This module maps storage keys onto files below a root directory.
Blocking file I/O runs in worker threads so the event loop stays free.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
import tempfile

from core.errors import NotFoundError, StorageIOError
from storage.base import key_prefix, validate_key


class FileStorage:
    """Filesystem-backed blob storage rooted at one directory."""

    def __init__(self, root: Path) -> None:
        self._root = root.expanduser().resolve()

    @property
    def root(self) -> Path:
        return self._root

    async def save(self, key: str, content: bytes) -> None:
        """Write bytes atomically under key.

        Args:
            key: Storage key.
            content: Bytes to store.

        Raises:
            StorageIOError: If the file cannot be written.
        """
        target = self._path_for(key)
        await asyncio.to_thread(_write_atomically, target, content)

    async def read(self, key: str) -> bytes:
        """Read bytes stored under key.

        Args:
            key: Storage key.

        Returns:
            Stored bytes.

        Raises:
            NotFoundError: If key is absent.
            StorageIOError: If the file cannot be read.
        """
        target = self._path_for(key)
        try:
            return await asyncio.to_thread(target.read_bytes)
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as error:
            raise NotFoundError(
                f"Storage key '{key}' not found under {self._root}."
            ) from error
        except OSError as error:
            raise StorageIOError(
                f"Failed to read storage key '{key}' at {target}: {error}."
            ) from error

    async def exists(self, key: str) -> bool:
        target = self._path_for(key)
        return await asyncio.to_thread(target.is_file)

    async def list_keys(self, prefix: str) -> set[str]:
        """List keys below prefix.

        Args:
            prefix: Key prefix treated as a directory; empty for all keys.

        Returns:
            Full keys of every stored file under prefix.

        Raises:
            StorageIOError: If the directory cannot be walked.
        """
        normalized = key_prefix(prefix)
        base_dir = self._root / normalized if normalized else self._root
        try:
            return await asyncio.to_thread(_walk_keys, self._root, base_dir)
        except OSError as error:
            raise StorageIOError(
                f"Failed to list storage prefix '{prefix}' under {self._root}: {error}."
            ) from error

    def _path_for(self, key: str) -> Path:
        return self._root / validate_key(key)


def _write_atomically(target: Path, content: bytes) -> None:
    """Write content next to target then rename it into place."""
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        descriptor, temp_name = tempfile.mkstemp(dir=target.parent, prefix=".tmp-")
        try:
            with os.fdopen(descriptor, "wb") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(temp_name, target)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise
    except OSError as error:
        raise StorageIOError(f"Failed to write storage file {target}: {error}.") from error


def _walk_keys(root: Path, base_dir: Path) -> set[str]:
    """Collect relative keys of regular files below base_dir."""
    if not base_dir.is_dir():
        return set()
    keys: set[str] = set()
    for file_path in base_dir.rglob("*"):
        if file_path.is_file() and not file_path.name.startswith(".tmp-"):
            keys.add(file_path.relative_to(root).as_posix())
    return keys
