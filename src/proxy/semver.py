"""Semantic version validation and ordering.

Module versions are canonical semver strings with a leading ``v``. The
only build suffix kept is ``+incompatible`` on major version 2 or later;
other build metadata never appears in a version a build tool requests.
Ordering here is for presentation; the version list keeps publish order.
"""

from __future__ import annotations

import re
from typing import Iterable

from core.errors import InvalidPathError

_SEMVER_PATTERN = re.compile(
    r"^v(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)
_INCOMPATIBLE_BUILD = "incompatible"


def canonical_version(version: str) -> str:
    """Return the canonical ``v``-prefixed form of a version.

    Args:
        version: Version such as ``0.0.123`` or ``v0.0.123``.

    Returns:
        Canonical version string.

    Raises:
        InvalidPathError: If version is not valid semver.
    """
    candidate = version.strip()
    if candidate and not candidate.startswith("v"):
        candidate = f"v{candidate}"
    match = _SEMVER_PATTERN.match(candidate)
    if match is None:
        raise InvalidPathError(
            f"Invalid module version '{version}': expected semantic version like v1.2.3. "
            "Pass MAJOR.MINOR.PATCH with optional -prerelease suffix."
        )
    build = match.group("build")
    if build is not None and (build != _INCOMPATIBLE_BUILD or match.group("major") in {"0", "1"}):
        raise InvalidPathError(
            f"Invalid module version '{version}': build metadata '+{build}' is not allowed. "
            "Only +incompatible is accepted, and only for major version 2 or later."
        )
    prerelease = match.group("prerelease")
    if prerelease:
        for identifier in prerelease.split("."):
            if identifier.isdigit() and len(identifier) > 1 and identifier.startswith("0"):
                raise InvalidPathError(
                    f"Invalid module version '{version}': numeric prerelease "
                    f"identifier '{identifier}' has a leading zero."
                )
    return candidate


def version_sort_key(version: str) -> tuple[object, ...]:
    """Build a semver precedence key for a canonical version."""
    match = _SEMVER_PATTERN.match(version)
    if match is None:
        raise InvalidPathError(f"Cannot order non-semver version '{version}'.")
    core = (int(match.group("major")), int(match.group("minor")), int(match.group("patch")))
    prerelease = match.group("prerelease")
    if not prerelease:
        return core + (1, ())
    identifiers = tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part) for part in prerelease.split(".")
    )
    return core + (0, identifiers)


def sort_versions(versions: Iterable[str]) -> list[str]:
    """Sort versions by semver precedence, lowest first."""
    return sorted(versions, key=version_sort_key)
