"""Blob storage backends for nodeset files.

Attributes:
    FileStorage: Abstract async blob store
        ([find][uacloudlib.storage.base.FileStorage.find],
        [upload][uacloudlib.storage.base.FileStorage.upload],
        [download][uacloudlib.storage.base.FileStorage.download]).
    StorageConfig: Backend selection and settings.
    create_file_storage: Builds the backend named by ``StorageConfig.kind``.
"""

from .base import FileStorage, StorageConfig, StorageKind, create_file_storage


__all__ = ["FileStorage", "StorageConfig", "StorageKind", "create_file_storage"]
