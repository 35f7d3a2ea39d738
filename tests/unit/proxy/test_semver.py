"""Unit tests for semantic version rules."""

from __future__ import annotations

import pytest

from core.errors import InvalidPathError
from proxy.semver import canonical_version, sort_versions


def test_canonical_version_adds_prefix() -> None:
    """Bare MAJOR.MINOR.PATCH should gain a leading v."""
    assert canonical_version("0.0.123") == "v0.0.123"


def test_canonical_version_keeps_incompatible_suffix() -> None:
    """Prerelease and +incompatible suffixes should be preserved."""
    assert canonical_version("v2.3.4-beta.1+incompatible") == "v2.3.4-beta.1+incompatible"


@pytest.mark.parametrize("version", ["v1.0.0+meta", "v2.0.0+build.7", "v1.2.3+incompatible"])
def test_canonical_version_rejects_other_build_metadata(version: str) -> None:
    """Only +incompatible on major 2 or later should be accepted as a build suffix."""
    with pytest.raises(InvalidPathError):
        canonical_version(version)


@pytest.mark.parametrize("version", ["", "v1", "v1.2", "v01.2.3", "v1.2.3-01", "v1.2.3/x"])
def test_canonical_version_rejects_malformed(version: str) -> None:
    """Malformed versions should raise InvalidPathError."""
    with pytest.raises(InvalidPathError):
        canonical_version(version)


def test_sort_versions_orders_by_semver_precedence() -> None:
    """Sorting should follow semver precedence, not string order."""
    versions = ["v0.0.124", "v0.0.9", "v1.0.0", "v1.0.0-rc.1", "v1.0.0-alpha", "v0.10.0"]

    ordered = sort_versions(versions)

    assert ordered == ["v0.0.9", "v0.0.124", "v0.10.0", "v1.0.0-alpha", "v1.0.0-rc.1", "v1.0.0"]
