"""Deterministic module archive builder.

This module reads a module source tree from blob storage and packs it
into a zip whose entries live under ``<module>@<version>/``.
Entry order, timestamps, and permissions are fixed so the same tree
always produces the same bytes, which keeps checksums stable.
"""

from __future__ import annotations

import asyncio
import io
import posixpath
from typing import Iterable
import zipfile

from core.constants import (
    ARCHIVE_ENTRY_MODE,
    ARCHIVE_ENTRY_TIMESTAMP,
    KEY_SEPARATOR,
    MANIFEST_FILE_NAME,
    VCS_DIR_NAMES,
    VERSIONS_DIR_NAME,
)
from core.errors import EmptyModuleError, ModProxyError, NotFoundError
from core.logging_config import get_logger
from core.types import ArchiveEntry, ModuleArchive, ModuleCoordinates
from storage.base import BlobStorage, join_key, key_prefix

_LOGGER = get_logger(__name__)


async def build_module_archive(
    storage: BlobStorage,
    coordinates: ModuleCoordinates,
) -> ModuleArchive:
    """Build the archive for one module version.

    The source tree is read from ``coordinates.source_path``.

    Args:
        storage: Blob storage holding the module source tree.
        coordinates: Validated module coordinates.

    Returns:
        Archive bytes together with manifest and entry payloads.

    Raises:
        EmptyModuleError: If the module tree has no archivable files.
        NotFoundError: If the tree has no ``go.mod`` at its root.
        StorageIOError: If reading the tree fails.
    """
    source_prefix = key_prefix(coordinates.source_path)
    stored_keys = await storage.list_keys(coordinates.source_path)
    relative_paths = select_module_files(
        key.removeprefix(source_prefix) for key in stored_keys
    )
    if not relative_paths:
        raise EmptyModuleError(
            f"Module {coordinates.module_path} has no files under '{source_prefix}'. "
            "Upload the module source tree before publishing."
        )
    if MANIFEST_FILE_NAME not in relative_paths:
        raise NotFoundError(
            f"Module {coordinates.module_path} has no {MANIFEST_FILE_NAME} at '{source_prefix}'. "
            f"Add a {MANIFEST_FILE_NAME} to the module root before publishing."
        )
    contents = await asyncio.gather(
        *(storage.read(join_key(coordinates.source_path, path)) for path in relative_paths)
    )
    entries = tuple(
        ArchiveEntry(name=f"{coordinates.archive_root}/{path}", content=content)
        for path, content in zip(relative_paths, contents)
    )
    manifest = contents[relative_paths.index(MANIFEST_FILE_NAME)]
    data = write_zip(entries)
    _LOGGER.info(
        "archive_built",
        module_path=coordinates.module_path,
        version=coordinates.version,
        file_count=len(entries),
        archive_bytes=len(data),
    )
    return ModuleArchive(data=data, manifest=manifest, entries=entries)


def select_module_files(relative_paths: Iterable[str]) -> list[str]:
    """Filter a module tree down to the files that ship in its archive.

    Drops the proxy's own ``@v`` directory, version-control directories,
    and nested modules (subdirectories with their own ``go.mod``).

    Args:
        relative_paths: File paths relative to the module root.

    Returns:
        Sorted archivable paths.
    """
    candidates = [path for path in relative_paths if path and not _is_excluded(path)]
    nested_roots = {
        posixpath.dirname(path)
        for path in candidates
        if posixpath.basename(path) == MANIFEST_FILE_NAME and posixpath.dirname(path)
    }
    return sorted(
        path for path in candidates if not _inside_any(path, nested_roots)
    )


def write_zip(entries: tuple[ArchiveEntry, ...]) -> bytes:
    """Write entries into a zip with fixed metadata."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
        for entry in entries:
            info = zipfile.ZipInfo(filename=entry.name, date_time=ARCHIVE_ENTRY_TIMESTAMP)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = (0o100000 | ARCHIVE_ENTRY_MODE) << 16
            info.create_system = 3
            archive.writestr(info, entry.content)
    return buffer.getvalue()


def read_zip_entries(data: bytes) -> tuple[ArchiveEntry, ...]:
    """Read file entries back out of archive bytes.

    Raises:
        ModProxyError: If data is not a valid zip archive.
    """
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            return tuple(
                ArchiveEntry(name=info.filename, content=archive.read(info))
                for info in archive.infolist()
                if not info.is_dir()
            )
    except zipfile.BadZipFile as error:
        raise ModProxyError(
            f"Stored module archive is not a valid zip: {error}. Republish the version."
        ) from error


def _is_excluded(path: str) -> bool:
    segments = path.split(KEY_SEPARATOR)
    return any(
        segment == VERSIONS_DIR_NAME or segment in VCS_DIR_NAMES for segment in segments[:-1]
    )


def _inside_any(path: str, roots: set[str]) -> bool:
    return any(path.startswith(root + KEY_SEPARATOR) for root in roots)
