"""Version info documents and content checksums.

The ``.info`` document is the JSON object build tools read for a
version's canonical name and publish time. Checksums use the ``h1:``
directory hash so they match what a consumer records in ``go.sum``.
"""

from __future__ import annotations

import base64
import hashlib
import json
from datetime import datetime, timezone
from typing import Iterable

from core.constants import CHECKSUM_PREFIX, MANIFEST_FILE_NAME
from core.errors import ModProxyError
from core.types import ArchiveEntry, ChecksumRecord, VersionInfo
from proxy.module_archive import read_zip_entries


def build_version_info(version: str, timestamp: datetime | None = None) -> VersionInfo:
    """Create the info record for a version.

    Args:
        version: Canonical version.
        timestamp: Publish time; current UTC time when omitted.

    Returns:
        Info record with a UTC timestamp truncated to whole seconds.
    """
    moment = timestamp or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return VersionInfo(
        version=version,
        time=moment.astimezone(timezone.utc).replace(microsecond=0),
    )


def version_info_to_bytes(info: VersionInfo) -> bytes:
    """Serialize an info record as the ``.info`` JSON document."""
    payload = {"Version": info.version, "Time": info.time.strftime("%Y-%m-%dT%H:%M:%SZ")}
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


def parse_version_info(content: bytes) -> VersionInfo:
    """Parse a stored ``.info`` document.

    Args:
        content: Raw document bytes.

    Returns:
        Parsed info record.

    Raises:
        ModProxyError: If the document is not a valid info object.
    """
    try:
        payload = json.loads(content.decode("utf-8"))
        version = payload["Version"]
        time_value = str(payload["Time"]).replace("Z", "+00:00")
        moment = datetime.fromisoformat(time_value)
    except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError, ValueError) as error:
        raise ModProxyError(
            f"Failed to parse version info document: {error}. "
            "Republish the version to regenerate it."
        ) from error
    return VersionInfo(version=str(version), time=moment.astimezone(timezone.utc))


def build_checksum_record(
    module_path: str,
    version: str,
    manifest: bytes,
    archive_entries: Iterable[ArchiveEntry],
) -> ChecksumRecord:
    """Hash a version's manifest and archive contents.

    Args:
        module_path: Module path.
        version: Canonical version.
        manifest: Raw ``go.mod`` bytes.
        archive_entries: Files packed in the archive, with root-prefixed names.

    Returns:
        Checksum record for the version.
    """
    return ChecksumRecord(
        module_path=module_path,
        version=version,
        archive_hash=directory_hash(
            (entry.name, entry.content) for entry in archive_entries
        ),
        manifest_hash=directory_hash([(MANIFEST_FILE_NAME, manifest)]),
    )


def checksum_from_artifacts(
    module_path: str,
    version: str,
    manifest: bytes,
    archive_data: bytes,
) -> ChecksumRecord:
    """Hash stored ``.mod`` and ``.zip`` artifact bytes.

    Raises:
        ModProxyError: If the archive bytes are not a readable zip.
    """
    return build_checksum_record(module_path, version, manifest, read_zip_entries(archive_data))


def directory_hash(files: Iterable[tuple[str, bytes]]) -> str:
    """Compute the ``h1:`` hash of a set of named files.

    Args:
        files: ``(name, content)`` pairs; names must not contain newlines.

    Returns:
        ``h1:`` followed by the base64 SHA-256 of the file summary.

    Raises:
        ModProxyError: If a file name contains a newline.
    """
    summary = hashlib.sha256()
    for name, content in sorted(files, key=lambda item: item[0]):
        if "\n" in name:
            raise ModProxyError(f"Cannot hash file name containing a newline: {name!r}.")
        file_digest = hashlib.sha256(content).hexdigest()
        summary.update(f"{file_digest}  {name}\n".encode("utf-8"))
    return CHECKSUM_PREFIX + base64.b64encode(summary.digest()).decode("ascii")
