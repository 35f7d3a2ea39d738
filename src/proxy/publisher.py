"""Module version publishing engine.

This module turns a module source tree already held in blob storage into
the proxy artifacts for one version, then registers the version. The
version is added to ``@v/list`` only after its ``.info``, ``.mod`` and
``.zip`` are stored, so consumers never see a listed version without them.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Callable

from core.constants import INFO_EXTENSION, MOD_EXTENSION, VERSIONS_DIR_NAME, ZIP_EXTENSION
from core.errors import ImmutableVersionError, NotFoundError
from core.logging_config import get_logger
from core.types import ModuleArchive, ModuleCoordinates, PublishResult, VersionInfo
from proxy.keyed_lock import KeyedLock
from proxy.module_archive import build_module_archive
from proxy.path_escaping import resolve_coordinates
from proxy.version_metadata import (
    build_checksum_record,
    build_version_info,
    parse_version_info,
    version_info_to_bytes,
)
from proxy.version_registry import VersionRegistry
from storage.base import BlobStorage, join_key

_LOGGER = get_logger(__name__)


class ModulePublisher:
    """Publishes module versions into proxy layout on a blob storage."""

    def __init__(
        self,
        storage: BlobStorage,
        registry: VersionRegistry | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize publisher.

        Args:
            storage: Storage holding module sources and receiving artifacts.
            registry: Version registry; one over the same storage by default.
            clock: UTC time source for new info records.
        """
        self._storage = storage
        self._registry = registry or VersionRegistry(storage)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._inflight: set[asyncio.Task[PublishResult]] = set()
        self._version_locks = KeyedLock()

    @property
    def registry(self) -> VersionRegistry:
        return self._registry

    async def update(self, module_path: str, version: str) -> PublishResult:
        """Publish one module version and wait for it to finish.

        Cancelling the caller does not cancel the publish itself; its
        storage writes and registration still run to completion.

        Args:
            module_path: Module path, e.g. ``example.com/foo/bar``.
            version: Version, with or without the ``v`` prefix.

        Returns:
            Publish result with info, checksums and the version list.

        Raises:
            InvalidPathError: If module path or version is malformed.
            EmptyModuleError: If the module tree has no files.
            NotFoundError: If the module tree has no manifest.
            ImmutableVersionError: If the version exists with other content.
            ConcurrentModificationError: If registration kept losing races.
            StorageIOError: If storage access fails.
        """
        return await asyncio.shield(self.submit(module_path, version))

    def submit(self, module_path: str, version: str) -> asyncio.Task[PublishResult]:
        """Start publishing in a background task and return it.

        Must be called from a running event loop. Validation happens before
        the task is created, so malformed input raises here.

        Raises:
            InvalidPathError: If module path or version is malformed.
        """
        coordinates = resolve_coordinates(module_path, version)
        task = asyncio.get_running_loop().create_task(self._publish(coordinates))
        self._inflight.add(task)
        task.add_done_callback(self._finish_task)
        return task

    async def drain(self) -> None:
        """Wait until every started publish has finished."""
        while self._inflight:
            await asyncio.gather(*tuple(self._inflight), return_exceptions=True)

    async def _publish(self, coordinates: ModuleCoordinates) -> PublishResult:
        archive = await build_module_archive(self._storage, coordinates)
        checksum = build_checksum_record(
            coordinates.module_path, coordinates.version, archive.manifest, archive.entries
        )
        version_key = f"{coordinates.escaped_path}@{coordinates.escaped_version}"
        async with self._version_locks.hold(version_key):
            info, artifacts_written = await self._store_artifacts(coordinates, archive)
        versions = await self._registry.append(coordinates.module_path, coordinates.version)
        _LOGGER.info(
            "module_published",
            module_path=coordinates.module_path,
            version=coordinates.version,
            artifacts_written=artifacts_written,
            archive_hash=checksum.archive_hash,
        )
        return PublishResult(
            coordinates=coordinates,
            info=info,
            checksum=checksum,
            versions=versions,
            artifacts_written=artifacts_written,
        )

    async def _store_artifacts(
        self,
        coordinates: ModuleCoordinates,
        archive: ModuleArchive,
    ) -> tuple[VersionInfo, bool]:
        """Write missing artifacts, refusing to change existing ones.

        Callers hold the version lock, so a concurrent publish of the same
        version reads the artifacts written here instead of racing them.
        """
        info_key = artifact_key(coordinates, INFO_EXTENSION)
        mod_key = artifact_key(coordinates, MOD_EXTENSION)
        zip_key = artifact_key(coordinates, ZIP_EXTENSION)
        stored_info, stored_mod, stored_zip = await asyncio.gather(
            self._read_optional(info_key),
            self._read_optional(mod_key),
            self._read_optional(zip_key),
        )
        immutable_checks = (
            (mod_key, stored_mod, archive.manifest),
            (zip_key, stored_zip, archive.data),
        )
        for key, stored, rebuilt in immutable_checks:
            if stored is not None and stored != rebuilt:
                raise ImmutableVersionError(
                    f"{coordinates.module_path} {coordinates.version} is already published and "
                    f"'{key}' differs from the current source tree. "
                    "Publish the changed source under a new version."
                )
        if stored_info is not None:
            info = parse_version_info(stored_info)
        else:
            info = build_version_info(coordinates.version, self._clock())
        pending = [
            (key, content)
            for key, stored, content in (
                (mod_key, stored_mod, archive.manifest),
                (zip_key, stored_zip, archive.data),
                (info_key, stored_info, version_info_to_bytes(info)),
            )
            if stored is None
        ]
        if not pending:
            _LOGGER.info(
                "republish_skipped",
                module_path=coordinates.module_path,
                version=coordinates.version,
            )
            return info, False
        await asyncio.gather(*(self._storage.save(key, content) for key, content in pending))
        return info, True

    async def _read_optional(self, key: str) -> bytes | None:
        try:
            return await self._storage.read(key)
        except NotFoundError:
            return None

    def _finish_task(self, task: asyncio.Task[PublishResult]) -> None:
        self._inflight.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            _LOGGER.error("publish_failed", error=str(error), error_type=type(error).__name__)


def artifact_key(coordinates: ModuleCoordinates, extension: str) -> str:
    """Return the storage key of one version artifact."""
    return join_key(
        coordinates.escaped_path,
        VERSIONS_DIR_NAME,
        f"{coordinates.escaped_version}{extension}",
    )
