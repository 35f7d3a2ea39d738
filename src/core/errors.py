"""modproxy exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class ModProxyError(Exception):
    """Base exception for all modproxy failures."""


class ProxyConfigError(ModProxyError):
    """Raised for invalid runtime configuration."""


class ProxyDependencyError(ModProxyError):
    """Raised when an optional runtime dependency is missing."""


class InvalidPathError(ModProxyError):
    """Raised for malformed module paths, versions, or storage keys."""


class EmptyModuleError(ModProxyError):
    """Raised when a module tree has no files to archive."""


class ImmutableVersionError(ModProxyError):
    """Raised when republishing a version would change its artifacts."""


class ConcurrentModificationError(ModProxyError):
    """Raised when a version list update keeps losing to another writer."""


class StorageError(ModProxyError):
    """Raised for blob storage failures."""


class NotFoundError(StorageError):
    """Raised when a storage key does not exist."""


class StorageIOError(StorageError):
    """Raised when a storage backend fails to read or write."""
