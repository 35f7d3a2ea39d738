"""Python SDK for module proxy operations.

This module exposes blocking, config-driven APIs for staging module
sources, publishing versions, and inspecting published versions.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from core.config import ProxyConfig
from core.constants import INFO_EXTENSION, MOD_EXTENSION, ZIP_EXTENSION
from core.errors import NotFoundError
from core.logging_config import get_logger
from core.types import ChecksumRecord, PublishResult
from proxy.path_escaping import module_source_path, resolve_coordinates
from proxy.publisher import ModulePublisher, artifact_key
from proxy.semver import sort_versions
from proxy.version_metadata import checksum_from_artifacts, parse_version_info
from proxy.version_registry import VersionRegistry
from storage.base import BlobStorage, join_key
from storage.factory import create_storage

_LOGGER = get_logger(__name__)


class ModuleProxyClient:
    """Primary SDK entry point for publishing workflows."""

    def __init__(
        self,
        config: ProxyConfig | None = None,
        storage: BlobStorage | None = None,
    ) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
            storage: Optional storage overriding the configured backend.
        """
        self._config = config or ProxyConfig.from_env()
        self._storage = storage or create_storage(self._config)
        registry = VersionRegistry(
            self._storage, max_attempts=self._config.registry_max_attempts
        )
        self._publisher = ModulePublisher(self._storage, registry=registry)

    @property
    def publisher(self) -> ModulePublisher:
        return self._publisher

    def publish(
        self,
        module_path: str,
        version: str,
        source_dir: Path | None = None,
    ) -> PublishResult:
        """Publish a module version, optionally staging a local source tree first.

        Args:
            module_path: Module path.
            version: Version, with or without the ``v`` prefix.
            source_dir: Optional local directory copied into the module tree.

        Returns:
            Publish result.
        """
        return asyncio.run(self._publish(module_path, version, source_dir))

    def stage_source(self, module_path: str, source_dir: Path) -> int:
        """Copy a local directory into the module's storage location.

        Returns:
            Number of files staged.
        """
        return asyncio.run(stage_source_tree(self._storage, module_path, source_dir))

    def versions(self, module_path: str, sort: bool = False) -> list[str]:
        """List published versions in publish order or semver order."""
        published = asyncio.run(self._publisher.registry.versions(module_path))
        return sort_versions(published) if sort else list(published)

    def checksum(self, module_path: str, version: str) -> ChecksumRecord:
        """Recompute checksums from a version's stored artifacts.

        Raises:
            NotFoundError: If the version has not been published.
        """
        return asyncio.run(self._checksum(module_path, version))

    async def _publish(
        self,
        module_path: str,
        version: str,
        source_dir: Path | None,
    ) -> PublishResult:
        resolve_coordinates(module_path, version)
        if source_dir is not None:
            await stage_source_tree(self._storage, module_path, source_dir)
        return await self._publisher.update(module_path, version)

    async def _checksum(self, module_path: str, version: str) -> ChecksumRecord:
        coordinates = resolve_coordinates(module_path, version)
        info_bytes, manifest, archive_data = await asyncio.gather(
            self._storage.read(artifact_key(coordinates, INFO_EXTENSION)),
            self._storage.read(artifact_key(coordinates, MOD_EXTENSION)),
            self._storage.read(artifact_key(coordinates, ZIP_EXTENSION)),
        )
        info = parse_version_info(info_bytes)
        return checksum_from_artifacts(
            coordinates.module_path, info.version, manifest, archive_data
        )


async def stage_source_tree(storage: BlobStorage, module_path: str, source_dir: Path) -> int:
    """Upload every file of a local directory under the module's source prefix.

    Staging only adds and overwrites keys. Files deleted locally since an
    earlier staging stay in storage and are archived by later publishes.

    Args:
        storage: Target storage.
        module_path: Module path whose tree receives the files.
        source_dir: Local source directory.

    Returns:
        Number of files staged.

    Raises:
        InvalidPathError: If module path is malformed.
        NotFoundError: If the source directory does not exist.
        StorageIOError: If an upload fails.
    """
    source_path = module_source_path(module_path)
    root = source_dir.expanduser().resolve()
    if not root.is_dir():
        raise NotFoundError(
            f"Source directory {root} does not exist. Point --source-dir at the module root."
        )
    files = sorted(path for path in root.rglob("*") if path.is_file())
    contents = await asyncio.gather(*(asyncio.to_thread(path.read_bytes) for path in files))
    await asyncio.gather(
        *(
            storage.save(join_key(source_path, path.relative_to(root).as_posix()), content)
            for path, content in zip(files, contents)
        )
    )
    _LOGGER.info(
        "source_staged",
        module_path=module_path,
        source_dir=str(root),
        file_count=len(files),
    )
    return len(files)
