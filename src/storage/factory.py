"""Storage backend selection from runtime configuration."""

from __future__ import annotations

from core.config import ProxyConfig
from core.s3_uri import parse_s3_uri
from storage.base import BlobStorage
from storage.file_storage import FileStorage
from storage.s3_storage import S3Storage, create_s3_client


def create_storage(config: ProxyConfig) -> BlobStorage:
    """Create the configured storage backend.

    Args:
        config: Runtime configuration.

    Returns:
        S3 storage when ``storage_uri`` is set, else file storage.

    Raises:
        ProxyConfigError: If the storage URI is invalid.
        ProxyDependencyError: If S3 is selected and boto3 is missing.
    """
    if config.storage_uri:
        location = parse_s3_uri(config.storage_uri)
        return S3Storage(create_s3_client(config), location)
    return FileStorage(config.storage_root)
