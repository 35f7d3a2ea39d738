"""Case-escaping of module paths and versions for storage keys.

Case-insensitive file systems and object stores cannot tell ``Foo`` from
``foo``, so every uppercase letter is stored as ``!`` plus its lowercase
form. A literal ``!`` is stored as ``!!`` so the mapping stays injective.
"""

from __future__ import annotations

import string

from core.constants import ESCAPE_MARKER, KEY_SEPARATOR
from core.errors import InvalidPathError
from core.types import ModuleCoordinates
from proxy.semver import canonical_version

_PATH_CHARACTERS = frozenset(string.ascii_letters + string.digits + "-._~!/")
_VERSION_CHARACTERS = frozenset(string.ascii_letters + string.digits + "-._~!+")


def escape_path(module_path: str) -> str:
    """Escape a module path into a storage-safe key prefix.

    Args:
        module_path: Module path such as ``github.com/Azure/sdk``.

    Returns:
        Escaped path such as ``github.com/!azure/sdk``.

    Raises:
        InvalidPathError: If the module path is malformed.
    """
    check_module_path(module_path)
    return _escape(module_path)


def escape_version(version: str) -> str:
    """Escape a version string for use in an artifact file name.

    Raises:
        InvalidPathError: If the version has disallowed characters.
    """
    _check_characters(version, _VERSION_CHARACTERS, "module version")
    return _escape(version)


def unescape_path(escaped_path: str) -> str:
    """Reverse ``escape_path``.

    Raises:
        InvalidPathError: If the key is not a valid escaped module path.
    """
    module_path = _unescape(escaped_path, "module path")
    check_module_path(module_path)
    return module_path


def unescape_version(escaped_version: str) -> str:
    """Reverse ``escape_version``.

    Raises:
        InvalidPathError: If the key is not a valid escaped version.
    """
    version = _unescape(escaped_version, "module version")
    _check_characters(version, _VERSION_CHARACTERS, "module version")
    return version


def module_source_path(module_path: str) -> str:
    """Return the storage prefix holding a module's source tree.

    Sources live under the module path without its host element, so
    ``example.com/foo/bar`` is read from ``foo/bar/`` while its artifacts
    go to ``example.com/foo/bar/@v/``. A single-element path is its own
    source prefix.

    Raises:
        InvalidPathError: If the module path is malformed.
    """
    escaped_path = escape_path(module_path)
    return escaped_path.split(KEY_SEPARATOR, 1)[-1]


def check_module_path(module_path: str) -> None:
    """Validate module path syntax.

    Args:
        module_path: Slash-separated module path.

    Raises:
        InvalidPathError: If the path is empty, has bad characters, or bad elements.
    """
    _check_characters(module_path, _PATH_CHARACTERS, "module path")
    if module_path.startswith(KEY_SEPARATOR) or module_path.endswith(KEY_SEPARATOR):
        raise InvalidPathError(
            f"Invalid module path '{module_path}': leading or trailing slash. "
            "Use a path like example.com/foo/bar."
        )
    for element in module_path.split(KEY_SEPARATOR):
        if element in {"", ".", ".."}:
            raise InvalidPathError(
                f"Invalid module path '{module_path}': empty, '.' or '..' path element."
            )
        if element.endswith("."):
            raise InvalidPathError(
                f"Invalid module path '{module_path}': element '{element}' ends with a dot."
            )


def resolve_coordinates(module_path: str, version: str) -> ModuleCoordinates:
    """Validate and escape a module path/version pair.

    Args:
        module_path: Module path.
        version: Version, with or without the ``v`` prefix.

    Returns:
        Validated coordinates with escaped forms.

    Raises:
        InvalidPathError: If either value is malformed.
    """
    escaped_path = escape_path(module_path)
    canonical = canonical_version(version)
    return ModuleCoordinates(
        module_path=module_path,
        version=canonical,
        escaped_path=escaped_path,
        escaped_version=escape_version(canonical),
        source_path=module_source_path(module_path),
    )


def _check_characters(value: str, allowed: frozenset[str], kind: str) -> None:
    if not value:
        raise InvalidPathError(f"Invalid {kind}: value is empty.")
    for character in value:
        if character not in allowed:
            raise InvalidPathError(
                f"Invalid {kind} '{value}': disallowed character {character!r}."
            )


def _escape(value: str) -> str:
    escaped: list[str] = []
    for character in value:
        if character == ESCAPE_MARKER:
            escaped.append(ESCAPE_MARKER * 2)
        elif "A" <= character <= "Z":
            escaped.append(ESCAPE_MARKER + character.lower())
        else:
            escaped.append(character)
    return "".join(escaped)


def _unescape(escaped: str, kind: str) -> str:
    if not escaped:
        raise InvalidPathError(f"Invalid escaped {kind}: value is empty.")
    decoded: list[str] = []
    pending_marker = False
    for character in escaped:
        if pending_marker:
            if character == ESCAPE_MARKER:
                decoded.append(ESCAPE_MARKER)
            elif "a" <= character <= "z":
                decoded.append(character.upper())
            else:
                raise InvalidPathError(
                    f"Invalid escaped {kind} '{escaped}': '!' followed by {character!r}."
                )
            pending_marker = False
        elif character == ESCAPE_MARKER:
            pending_marker = True
        elif "A" <= character <= "Z":
            raise InvalidPathError(
                f"Invalid escaped {kind} '{escaped}': unescaped uppercase {character!r}."
            )
        else:
            decoded.append(character)
    if pending_marker:
        raise InvalidPathError(f"Invalid escaped {kind} '{escaped}': trailing '!'.")
    return "".join(decoded)
