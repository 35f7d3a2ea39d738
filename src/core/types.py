"""Shared typed models.

This module defines immutable data models used by the storage,
publishing, SDK, and CLI layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ModuleCoordinates:
    """Validated module path and version with their storage-safe forms.

    Attributes:
        module_path: Module path as given, e.g. ``example.com/foo/bar``.
        version: Canonical version, e.g. ``v0.0.124``.
        escaped_path: Case-escaped module path used as a key prefix.
        escaped_version: Case-escaped version used in artifact names.
        source_path: Key prefix of the module source tree: the escaped
            path without its leading host element.
    """

    module_path: str
    version: str
    escaped_path: str
    escaped_version: str
    source_path: str

    @property
    def archive_root(self) -> str:
        """Top-level directory name inside the module archive."""
        return f"{self.module_path}@{self.version}"


@dataclass(frozen=True)
class VersionInfo:
    """Version info record served as ``<version>.info``.

    Attributes:
        version: Canonical version string.
        time: UTC publish timestamp.
    """

    version: str
    time: datetime


@dataclass(frozen=True)
class ArchiveEntry:
    """One file stored in a module archive."""

    name: str
    content: bytes


@dataclass(frozen=True)
class ModuleArchive:
    """Built module archive and the inputs it was built from.

    Attributes:
        data: Zip archive bytes.
        manifest: Raw ``go.mod`` bytes at the module root.
        entries: Archived files in archive order, names include the root.
    """

    data: bytes
    manifest: bytes
    entries: tuple[ArchiveEntry, ...]


@dataclass(frozen=True)
class ChecksumRecord:
    """Content hashes letting consumers verify a published version.

    Attributes:
        module_path: Module path the hashes belong to.
        version: Canonical version.
        archive_hash: ``h1:`` hash over the archive file contents.
        manifest_hash: ``h1:`` hash over the ``go.mod`` manifest.
    """

    module_path: str
    version: str
    archive_hash: str
    manifest_hash: str

    def go_sum_lines(self) -> tuple[str, str]:
        """Render the two ``go.sum`` lines for this version."""
        return (
            f"{self.module_path} {self.version} {self.archive_hash}",
            f"{self.module_path} {self.version}/go.mod {self.manifest_hash}",
        )


@dataclass(frozen=True)
class PublishResult:
    """Outcome of one successful publish.

    Attributes:
        coordinates: Validated module coordinates.
        info: Version info record as stored.
        checksum: Hashes of the stored manifest and archive.
        versions: Version list after registration, in publish order.
        artifacts_written: False when identical artifacts already existed.
    """

    coordinates: ModuleCoordinates
    info: VersionInfo
    checksum: ChecksumRecord
    versions: tuple[str, ...]
    artifacts_written: bool
