"""Core constants used across modproxy modules.

This module centralizes proxy layout names and archive policy values.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_STORAGE_ROOT = Path(".modproxy")
DEFAULT_REGISTRY_MAX_ATTEMPTS = 3
VERSIONS_DIR_NAME = "@v"
VERSION_LIST_FILE_NAME = "list"
INFO_EXTENSION = ".info"
MOD_EXTENSION = ".mod"
ZIP_EXTENSION = ".zip"
MANIFEST_FILE_NAME = "go.mod"
ESCAPE_MARKER = "!"
KEY_SEPARATOR = "/"
VCS_DIR_NAMES = (".git", ".hg", ".svn", ".bzr")
ARCHIVE_ENTRY_TIMESTAMP = (1980, 1, 1, 0, 0, 0)
ARCHIVE_ENTRY_MODE = 0o644
CHECKSUM_PREFIX = "h1:"
