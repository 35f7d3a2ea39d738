"""Unit tests for module path and version escaping."""

from __future__ import annotations

import pytest

from core.errors import InvalidPathError
from proxy.path_escaping import (
    escape_path,
    escape_version,
    module_source_path,
    resolve_coordinates,
    unescape_path,
    unescape_version,
)


def test_escape_path_replaces_uppercase_with_marker() -> None:
    """Uppercase letters should become '!' plus lowercase."""
    escaped = escape_path("github.com/Azure/azure-SDK")

    assert escaped == "github.com/!azure/azure-!s!d!k"


def test_escape_path_leaves_lowercase_path_unchanged() -> None:
    """Lowercase paths should pass through untouched."""
    escaped = escape_path("example.com/foo/bar")

    assert escaped == "example.com/foo/bar"


def test_escape_path_doubles_literal_marker() -> None:
    """A literal '!' should not collide with an escaped uppercase letter."""
    assert escape_path("example.com/!a") != escape_path("example.com/A")


@pytest.mark.parametrize(
    "module_path",
    [
        "github.com/Azure/azure-sdk-for-go",
        "example.com/ABC/x!Y",
        "golang.org/x/Tools~v2",
    ],
)
def test_unescape_path_reverses_escape(module_path: str) -> None:
    """Escaping then unescaping should reproduce the original path."""
    assert unescape_path(escape_path(module_path)) == module_path


def test_escape_is_injective_for_case_variants() -> None:
    """Paths differing only in case should map to distinct keys."""
    variants = ["example.com/foo", "example.com/Foo", "example.com/FOO", "example.com/fOo"]

    escaped = {escape_path(variant) for variant in variants}

    assert len(escaped) == len(variants)


@pytest.mark.parametrize(
    "module_path",
    ["", "/example.com/foo", "example.com/foo/", "example.com//foo", "example.com/../x",
     "example.com/foo bar", "example.com/foo@v1", "example.com/foo."],
)
def test_escape_path_rejects_malformed_paths(module_path: str) -> None:
    """Malformed module paths should raise InvalidPathError."""
    with pytest.raises(InvalidPathError):
        escape_path(module_path)


@pytest.mark.parametrize("escaped", ["example.com/Foo", "example.com/!1", "example.com/foo!"])
def test_unescape_path_rejects_invalid_keys(escaped: str) -> None:
    """Unescaped uppercase or dangling markers should be rejected."""
    with pytest.raises(InvalidPathError):
        unescape_path(escaped)


def test_escape_version_roundtrips_prerelease_case() -> None:
    """Versions with uppercase prerelease tags should escape reversibly."""
    escaped = escape_version("v1.0.0-RC1")

    assert escaped == "v1.0.0-!r!c1" and unescape_version(escaped) == "v1.0.0-RC1"


def test_resolve_coordinates_canonicalizes_version() -> None:
    """Versions without the v prefix should be canonicalized."""
    coordinates = resolve_coordinates("example.com/foo/bar", "0.0.124")

    assert coordinates.version == "v0.0.124"
    assert coordinates.archive_root == "example.com/foo/bar@v0.0.124"


def test_resolve_coordinates_rejects_bad_version() -> None:
    """Non-semver versions should raise InvalidPathError."""
    with pytest.raises(InvalidPathError):
        resolve_coordinates("example.com/foo/bar", "latest")


@pytest.mark.parametrize(
    ("module_path", "expected"),
    [
        ("example.com/foo/bar", "foo/bar"),
        ("github.com/Azure/sdk", "!azure/sdk"),
        ("localmodule", "localmodule"),
    ],
)
def test_module_source_path_drops_host_element(module_path: str, expected: str) -> None:
    """Sources should be located under the escaped path without its host."""
    assert module_source_path(module_path) == expected
    assert resolve_coordinates(module_path, "v1.0.0").source_path == expected
