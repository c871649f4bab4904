"""
Blob storage interface for nodeset files.

Nodeset packages are opaque blobs addressed by name. The catalog core only
sees the abstract [FileStorage][uacloudlib.storage.base.FileStorage];
[create_file_storage][uacloudlib.storage.base.create_file_storage] is the
single place that picks a backend from
[StorageConfig][uacloudlib.storage.base.StorageConfig].

Implementations never raise from ``find``/``upload``/``download``: failures
are logged and reported as None or ``""``.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from enum import StrEnum
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, Field, model_validator


class StorageKind(StrEnum):
    """Available blob storage backends."""

    LOCAL = "local"
    AWS = "aws"


class StorageConfig(BaseModel):
    """Blob storage settings.

    For the ``aws`` backend, the bucket and key prefix come either from an
    ``s3://bucket/prefix`` connection string or from the explicit ``bucket``
    and ``prefix`` fields. Unset ``connection_string``, ``region`` and
    ``role_arn`` fall back to the ``BLOB_STORAGE_CONNECTION_STRING``,
    ``AWS_REGION`` and ``AWS_ROLE_ARN`` environment variables.
    """

    kind: StorageKind = Field(default=StorageKind.LOCAL, description="Storage backend")
    root: str = Field(default="nodesets", min_length=1, description="Local storage directory")
    connection_string: str | None = Field(default=None, description="s3://bucket/prefix URI")
    bucket: str | None = Field(default=None, description="S3 bucket name")
    prefix: str = Field(default="", description="Key prefix prepended to every blob name")
    region: str | None = Field(default=None, description="AWS region name")
    role_arn: str | None = Field(default=None, description="IAM role assumed through STS")
    endpoint_url: str | None = Field(default=None, description="Custom S3 endpoint")
    session_duration: int = Field(
        default=1200, ge=900, le=43_200, description="Assumed-role session length (seconds)"
    )

    @model_validator(mode="before")
    @classmethod
    def resolve_environment(cls, data: Any) -> Any:
        """Fill unset AWS settings from the environment."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key, env_var in (
            ("connection_string", "BLOB_STORAGE_CONNECTION_STRING"),
            ("region", "AWS_REGION"),
            ("role_arn", "AWS_ROLE_ARN"),
        ):
            if not data.get(key):
                value = os.getenv(env_var)
                if value:
                    data[key] = value
        return data

    @model_validator(mode="after")
    def resolve_bucket(self) -> StorageConfig:
        """Split an ``s3://`` connection string into bucket and prefix."""
        if self.connection_string and not self.bucket:
            parsed = urlparse(self.connection_string)
            if parsed.scheme != "s3" or not parsed.netloc:
                if self.kind == StorageKind.AWS:
                    raise ValueError(
                        f"connection_string must be an s3://bucket/prefix URI, "
                        f"got {self.connection_string!r}"
                    )
                return self
            self.bucket = parsed.netloc
            if not self.prefix:
                self.prefix = parsed.path.lstrip("/")
        if self.kind == StorageKind.AWS and not self.bucket:
            raise ValueError("aws storage requires a bucket or an s3:// connection_string")
        return self


class FileStorage(ABC):
    """Abstract blob store addressed by file name."""

    @abstractmethod
    async def find(self, name: str) -> str | None:
        """Return ``name`` if the blob exists, None otherwise or on error."""

    @abstractmethod
    async def upload(self, name: str, content: str) -> str:
        """Store ``content`` under ``name``; return the stored name or ``""`` on error."""

    @abstractmethod
    async def download(self, name: str) -> str:
        """Return the blob content, or ``""`` when missing or on error."""


def create_file_storage(config: StorageConfig | None = None) -> FileStorage:
    """Instantiate the backend selected by ``config.kind``."""
    config = config or StorageConfig()
    if config.kind == StorageKind.AWS:
        from .aws import AwsFileStorage  # noqa: PLC0415

        return AwsFileStorage(config)

    from .local import LocalFileStorage  # noqa: PLC0415

    return LocalFileStorage(config)


__all__ = ["FileStorage", "StorageConfig", "StorageKind", "create_file_storage"]
