"""S3 storage backend.

This module stores proxy keys as objects under a bucket prefix.
boto3 calls are blocking, so each one runs in a worker thread.
"""

from __future__ import annotations

import asyncio
from typing import Any

from core.config import ProxyConfig
from core.errors import NotFoundError, ProxyDependencyError, StorageIOError
from core.s3_uri import S3Location
from storage.base import join_key, key_prefix, validate_key

_MISSING_KEY_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


class S3Storage:
    """Blob storage over one S3 bucket prefix."""

    def __init__(self, s3_client: Any, location: S3Location) -> None:
        self._client = s3_client
        self._bucket = location.bucket
        self._prefix = location.prefix.strip("/")

    async def save(self, key: str, content: bytes) -> None:
        """Upload bytes under key.

        Raises:
            StorageIOError: If the upload fails.
        """
        object_key = self._object_key(key)
        try:
            await asyncio.to_thread(
                self._client.put_object, Bucket=self._bucket, Key=object_key, Body=content
            )
        except Exception as error:
            raise StorageIOError(
                f"Failed to write s3://{self._bucket}/{object_key}: {error}. "
                "Check AWS credentials and retry."
            ) from error

    async def read(self, key: str) -> bytes:
        """Download bytes stored under key.

        Raises:
            NotFoundError: If the object does not exist.
            StorageIOError: If the download fails.
        """
        object_key = self._object_key(key)
        try:
            return await asyncio.to_thread(self._get_object_body, object_key)
        except Exception as error:
            if _is_missing_key_error(error):
                raise NotFoundError(
                    f"Storage key '{key}' not found at s3://{self._bucket}/{object_key}."
                ) from error
            raise StorageIOError(
                f"Failed to read s3://{self._bucket}/{object_key}: {error}. "
                "Check AWS credentials and retry."
            ) from error

    async def exists(self, key: str) -> bool:
        object_key = self._object_key(key)
        try:
            await asyncio.to_thread(
                self._client.head_object, Bucket=self._bucket, Key=object_key
            )
        except Exception as error:
            if _is_missing_key_error(error):
                return False
            raise StorageIOError(
                f"Failed to stat s3://{self._bucket}/{object_key}: {error}."
            ) from error
        return True

    async def list_keys(self, prefix: str) -> set[str]:
        """List keys under prefix, relative to the configured bucket prefix.

        Raises:
            StorageIOError: If listing fails.
        """
        listing_prefix = key_prefix(join_key(self._prefix, prefix))
        try:
            object_keys = await asyncio.to_thread(self._list_object_keys, listing_prefix)
        except Exception as error:
            raise StorageIOError(
                f"Failed to list s3://{self._bucket}/{listing_prefix}: {error}."
            ) from error
        strip_prefix = key_prefix(self._prefix)
        return {object_key.removeprefix(strip_prefix) for object_key in object_keys}

    def _object_key(self, key: str) -> str:
        return join_key(self._prefix, validate_key(key))

    def _get_object_body(self, object_key: str) -> bytes:
        response = self._client.get_object(Bucket=self._bucket, Key=object_key)
        return response["Body"].read()

    def _list_object_keys(self, listing_prefix: str) -> list[str]:
        paginator = self._client.get_paginator("list_objects_v2")
        pages = paginator.paginate(Bucket=self._bucket, Prefix=listing_prefix)
        keys: list[str] = []
        for page in pages:
            for obj in page.get("Contents", []):
                keys.append(obj["Key"])
        return keys


def create_s3_client(config: ProxyConfig) -> Any:
    """Create a boto3 S3 client.

    Args:
        config: Runtime config containing optional profile/region.

    Returns:
        Boto3 S3 client.

    Raises:
        ProxyDependencyError: If boto3 is missing.
    """
    try:
        import boto3
    except ImportError as error:
        raise ProxyDependencyError(
            "S3 storage requires boto3, but it is not installed. "
            "Install the 's3' extra to publish to s3:// destinations."
        ) from error
    session_kwargs: dict[str, str] = {}
    if config.s3_profile:
        session_kwargs["profile_name"] = config.s3_profile
    if config.s3_region:
        session_kwargs["region_name"] = config.s3_region
    session = boto3.session.Session(**session_kwargs)
    return session.client("s3")


def _is_missing_key_error(error: Exception) -> bool:
    """Return whether a botocore error reports an absent object."""
    response = getattr(error, "response", None)
    if not isinstance(response, dict):
        return False
    code = response.get("Error", {}).get("Code")
    return str(code) in _MISSING_KEY_CODES
