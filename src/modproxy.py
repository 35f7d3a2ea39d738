"""Public SDK surface for modproxy.

This module provides a stable import path for publishing users.
It re-exports the client, engine, storage backends, and typed models.
"""

from __future__ import annotations

from core.config import ProxyConfig
from core.errors import (
    ConcurrentModificationError,
    EmptyModuleError,
    ImmutableVersionError,
    InvalidPathError,
    ModProxyError,
    NotFoundError,
    StorageIOError,
)
from core.types import ChecksumRecord, PublishResult, VersionInfo
from proxy.client import ModuleProxyClient, stage_source_tree
from proxy.path_escaping import (
    escape_path,
    escape_version,
    module_source_path,
    unescape_path,
    unescape_version,
)
from proxy.publisher import ModulePublisher
from proxy.semver import sort_versions
from proxy.version_registry import VersionRegistry
from storage.base import BlobStorage
from storage.file_storage import FileStorage
from storage.memory_storage import MemoryStorage
from storage.s3_storage import S3Storage

__all__ = [
    "BlobStorage",
    "ChecksumRecord",
    "ConcurrentModificationError",
    "EmptyModuleError",
    "FileStorage",
    "ImmutableVersionError",
    "InvalidPathError",
    "MemoryStorage",
    "ModProxyError",
    "ModulePublisher",
    "ModuleProxyClient",
    "NotFoundError",
    "ProxyConfig",
    "PublishResult",
    "S3Storage",
    "StorageIOError",
    "VersionInfo",
    "VersionRegistry",
    "escape_path",
    "escape_version",
    "module_source_path",
    "sort_versions",
    "stage_source_tree",
    "unescape_path",
    "unescape_version",
]
