"""
Amazon S3 blob storage.

Objects live at ``{prefix}{name}`` in the configured bucket. When a role ARN
is configured, every operation first assumes that role through STS and uses
the short-lived session credentials; otherwise boto3's default credential
chain applies.

boto3 is synchronous, so each operation runs in a worker thread via
``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from uacloudlib.core.logger import Logger

from .base import FileStorage


if TYPE_CHECKING:
    from .base import StorageConfig


_ROLE_SESSION_NAME = "S3AccessRole"
_NOT_FOUND_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


class AwsFileStorage(FileStorage):
    """Stores nodeset blobs as S3 objects."""

    def __init__(self, config: StorageConfig) -> None:
        if not config.bucket:
            raise ValueError("AwsFileStorage requires a bucket")
        self._config = config
        self._bucket = config.bucket
        self._prefix = config.prefix
        self._logger = Logger("storage.aws")

    def _key(self, name: str) -> str:
        return f"{self._prefix}{name}" if self._prefix else name

    def _session(self) -> boto3.Session:
        """Build a session, assuming the configured role when there is one."""
        if not self._config.role_arn:
            return boto3.Session(region_name=self._config.region)

        sts = boto3.Session(region_name=self._config.region).client("sts")
        response = sts.assume_role(
            RoleArn=self._config.role_arn,
            RoleSessionName=_ROLE_SESSION_NAME,
            DurationSeconds=self._config.session_duration,
        )
        credentials = response["Credentials"]
        return boto3.Session(
            aws_access_key_id=credentials["AccessKeyId"],
            aws_secret_access_key=credentials["SecretAccessKey"],
            aws_session_token=credentials["SessionToken"],
            region_name=self._config.region,
        )

    def _client(self) -> Any:
        return self._session().client(
            "s3",
            region_name=self._config.region,
            endpoint_url=self._config.endpoint_url,
            config=BotoConfig(retries={"max_attempts": 5, "mode": "standard"}),
        )

    # -------------------------------------------------------------------------
    # Blocking operations (run in a worker thread)
    # -------------------------------------------------------------------------

    def _find_sync(self, name: str) -> str | None:
        try:
            self._client().head_object(Bucket=self._bucket, Key=self._key(name))
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in _NOT_FOUND_CODES:
                return None
            raise
        return name

    def _upload_sync(self, name: str, content: str) -> str:
        response = self._client().put_object(
            Bucket=self._bucket, Key=self._key(name), Body=content.encode("utf-8")
        )
        status = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        if status != 200:  # noqa: PLR2004
            self._logger.error("blob_upload_rejected", name=name, status=status)
            return ""
        return name

    def _download_sync(self, name: str) -> str:
        response = self._client().get_object(Bucket=self._bucket, Key=self._key(name))
        body: bytes = response["Body"].read()
        return body.decode("utf-8")

    # -------------------------------------------------------------------------
    # FileStorage
    # -------------------------------------------------------------------------

    async def find(self, name: str) -> str | None:
        try:
            return await asyncio.to_thread(self._find_sync, name)
        except (BotoCoreError, ClientError) as e:
            self._logger.error("blob_find_failed", name=name, bucket=self._bucket, error=str(e))
            return None

    async def upload(self, name: str, content: str) -> str:
        try:
            return await asyncio.to_thread(self._upload_sync, name, content)
        except (BotoCoreError, ClientError) as e:
            self._logger.error(
                "blob_upload_failed", name=name, bucket=self._bucket, error=str(e)
            )
            return ""

    async def download(self, name: str) -> str:
        try:
            return await asyncio.to_thread(self._download_sync, name)
        except (BotoCoreError, ClientError, UnicodeDecodeError) as e:
            self._logger.error(
                "blob_download_failed", name=name, bucket=self._bucket, error=str(e)
            )
            return ""

    def __repr__(self) -> str:
        return f"AwsFileStorage(bucket={self._bucket}, prefix={self._prefix!r})"
