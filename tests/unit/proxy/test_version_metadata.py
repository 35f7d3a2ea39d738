"""Unit tests for version info documents and checksums."""

from __future__ import annotations

import base64
from datetime import datetime, timedelta, timezone
import hashlib
import json

import pytest

from core.errors import ModProxyError
from core.types import ArchiveEntry
from proxy.module_archive import write_zip
from proxy.version_metadata import (
    build_checksum_record,
    build_version_info,
    checksum_from_artifacts,
    directory_hash,
    parse_version_info,
    version_info_to_bytes,
)


def test_version_info_document_uses_go_field_names() -> None:
    """The .info document should expose Version and Time."""
    info = build_version_info("v0.0.124", datetime(2020, 1, 2, 3, 4, 5, 678, tzinfo=timezone.utc))

    payload = json.loads(version_info_to_bytes(info))

    assert payload == {"Version": "v0.0.124", "Time": "2020-01-02T03:04:05Z"}


def test_version_info_normalizes_timezone() -> None:
    """Non-UTC timestamps should be stored in UTC."""
    local = datetime(2020, 1, 2, 5, 0, 0, tzinfo=timezone(timedelta(hours=2)))

    info = build_version_info("v1.0.0", local)

    assert info.time == datetime(2020, 1, 2, 3, 0, 0, tzinfo=timezone.utc)


def test_parse_version_info_reads_serialized_document() -> None:
    """Parsing should return the record that was serialized."""
    info = build_version_info("v1.0.0", datetime(2021, 6, 1, tzinfo=timezone.utc))

    parsed = parse_version_info(version_info_to_bytes(info))

    assert parsed == info


def test_parse_version_info_rejects_invalid_document() -> None:
    """Broken .info payloads should raise ModProxyError."""
    with pytest.raises(ModProxyError):
        parse_version_info(b'{"Version": "v1.0.0"}')


def test_directory_hash_matches_h1_algorithm() -> None:
    """Hash should be base64 SHA-256 over sorted '<sha256>  <name>' lines."""
    files = [("b.txt", b"bravo"), ("a.txt", b"alpha")]
    summary = "".join(
        f"{hashlib.sha256(content).hexdigest()}  {name}\n"
        for name, content in sorted(files)
    )
    expected = "h1:" + base64.b64encode(hashlib.sha256(summary.encode()).digest()).decode()

    assert directory_hash(files) == expected


def test_checksum_record_renders_go_sum_lines() -> None:
    """Checksum records should render module and go.mod lines."""
    entries = (ArchiveEntry(name="example.com/m@v1.0.0/go.mod", content=b"module example.com/m\n"),)

    record = build_checksum_record("example.com/m", "v1.0.0", b"module example.com/m\n", entries)

    zip_line, mod_line = record.go_sum_lines()
    assert zip_line.startswith("example.com/m v1.0.0 h1:")
    assert mod_line.startswith("example.com/m v1.0.0/go.mod h1:")


def test_checksum_from_artifacts_matches_entry_hash() -> None:
    """Hashing stored zip bytes should equal hashing the source entries."""
    entries = (
        ArchiveEntry(name="example.com/m@v1.0.0/go.mod", content=b"module example.com/m\n"),
        ArchiveEntry(name="example.com/m@v1.0.0/m.go", content=b"package m\n"),
    )
    manifest = entries[0].content

    from_entries = build_checksum_record("example.com/m", "v1.0.0", manifest, entries)
    from_zip = checksum_from_artifacts("example.com/m", "v1.0.0", manifest, write_zip(entries))

    assert from_zip == from_entries
