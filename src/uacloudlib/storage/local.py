"""Local filesystem blob storage.

Blobs are plain UTF-8 files under ``StorageConfig.root``; the prefix, when
set, is prepended to every file name. Blocking file I/O runs in a worker
thread via ``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

from uacloudlib.core.exceptions import StorageError
from uacloudlib.core.logger import Logger

from .base import FileStorage


if TYPE_CHECKING:
    from .base import StorageConfig


class LocalFileStorage(FileStorage):
    """Stores nodeset blobs as files in a local directory."""

    def __init__(self, config: StorageConfig) -> None:
        self._root = Path(config.root)
        self._prefix = config.prefix
        self._logger = Logger("storage.local")

    def _path(self, name: str) -> Path:
        if not name:
            raise StorageError("blob name must not be empty")
        root = self._root.resolve()
        path = (root / f"{self._prefix}{name}").resolve()
        if not path.is_relative_to(root):
            raise StorageError(f"blob name escapes the storage root: {name!r}")
        return path

    async def find(self, name: str) -> str | None:
        try:
            path = self._path(name)
            exists = await asyncio.to_thread(path.is_file)
        except (StorageError, OSError) as e:
            self._logger.error("blob_find_failed", name=name, error=str(e))
            return None
        return name if exists else None

    async def upload(self, name: str, content: str) -> str:
        try:
            path = self._path(name)
            await asyncio.to_thread(self._write, path, content)
        except (StorageError, OSError) as e:
            self._logger.error("blob_upload_failed", name=name, error=str(e))
            return ""
        self._logger.info("blob_uploaded", name=name, size=len(content))
        return name

    async def download(self, name: str) -> str:
        try:
            path = self._path(name)
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (StorageError, OSError, UnicodeDecodeError) as e:
            self._logger.error("blob_download_failed", name=name, error=str(e))
            return ""

    @staticmethod
    def _write(path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    def __repr__(self) -> str:
        return f"LocalFileStorage(root={self._root})"
