"""Per-module version list persistence.

This module maintains ``<escaped-module>/@v/list``: one version per line,
publish order, no duplicates. Read-modify-write cycles for one module run
under that module's lock; writers in other processes are detected by
reading the list back after each write.
"""

from __future__ import annotations

from core.constants import DEFAULT_REGISTRY_MAX_ATTEMPTS, VERSION_LIST_FILE_NAME, VERSIONS_DIR_NAME
from core.errors import ConcurrentModificationError, NotFoundError
from core.logging_config import get_logger
from proxy.keyed_lock import KeyedLock
from proxy.path_escaping import escape_path, resolve_coordinates
from storage.base import BlobStorage, join_key

_LOGGER = get_logger(__name__)


class VersionRegistry:
    """Append-only registry of published versions per module."""

    def __init__(
        self,
        storage: BlobStorage,
        locks: KeyedLock | None = None,
        max_attempts: int = DEFAULT_REGISTRY_MAX_ATTEMPTS,
    ) -> None:
        self._storage = storage
        self._locks = locks or KeyedLock()
        self._max_attempts = max(1, max_attempts)

    async def append(self, module_path: str, version: str) -> tuple[str, ...]:
        """Register a version for a module.

        Args:
            module_path: Module path.
            version: Version to register; canonicalized before storing.

        Returns:
            Version list after the append, in publish order.

        Raises:
            InvalidPathError: If module path or version is malformed.
            ConcurrentModificationError: If every write attempt was overwritten.
            StorageIOError: If storage access fails.
        """
        coordinates = resolve_coordinates(module_path, version)
        list_key = version_list_key(coordinates.escaped_path)
        async with self._locks.hold(coordinates.escaped_path):
            for attempt in range(1, self._max_attempts + 1):
                current = await self._read_list(list_key)
                if coordinates.version in current:
                    return current
                updated = current + (coordinates.version,)
                await self._storage.save(list_key, render_version_list(updated))
                confirmed = await self._read_list(list_key)
                if coordinates.version in confirmed:
                    _LOGGER.info(
                        "version_registered",
                        module_path=coordinates.module_path,
                        version=coordinates.version,
                        version_count=len(confirmed),
                    )
                    return confirmed
                _LOGGER.warning(
                    "registry_write_conflict",
                    module_path=coordinates.module_path,
                    version=coordinates.version,
                    attempt=attempt,
                )
        raise ConcurrentModificationError(
            f"Could not register {coordinates.module_path} {coordinates.version}: the version "
            f"list was overwritten by another writer {self._max_attempts} times. "
            "Retry the publish."
        )

    async def versions(self, module_path: str) -> tuple[str, ...]:
        """Return the published versions of a module in publish order.

        Raises:
            InvalidPathError: If module path is malformed.
        """
        return await self._read_list(version_list_key(escape_path(module_path)))

    async def _read_list(self, list_key: str) -> tuple[str, ...]:
        try:
            content = await self._storage.read(list_key)
        except NotFoundError:
            return ()
        return parse_version_list(content)


def version_list_key(escaped_path: str) -> str:
    """Return the storage key of a module's version list."""
    return join_key(escaped_path, VERSIONS_DIR_NAME, VERSION_LIST_FILE_NAME)


def parse_version_list(content: bytes) -> tuple[str, ...]:
    """Parse list bytes, keeping the first occurrence of each version."""
    seen: dict[str, None] = {}
    for line in content.decode("utf-8").splitlines():
        version = line.strip()
        if version:
            seen.setdefault(version, None)
    return tuple(seen)


def render_version_list(versions: tuple[str, ...]) -> bytes:
    """Render versions as newline-terminated lines."""
    return "".join(f"{version}\n" for version in versions).encode("utf-8")
