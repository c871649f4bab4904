r"""UA Cloud Library -- metadata catalog for OPC UA nodeset packages.

Nodesets are opaque blobs in object storage; structured facts about each one
live in PostgreSQL as flat attribute rows plus four type-kind tables. The
catalog rebuilds typed aggregates from those rows on every query and offers
filtering, keyword search, pagination and ordering over them.

Imports flow strictly downward:

```text
              catalog          Query engine and public facade
             /       \
          core      storage    Database access, blob storage backends
             \       /
              models           Pure frozen dataclasses (zero I/O)
```

Note:
    Top-level imports (``from uacloudlib import NodesetCatalog``) use lazy
    loading and resolve on first access.
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("uacloudlib")

__all__ = [
    "AttributeStore",
    "CatalogConfig",
    "Category",
    "FileStorage",
    "Logger",
    "NamespaceDescriptor",
    "NodesetCatalog",
    "NodesetSearchResult",
    "NodesetSummary",
    "Organisation",
    "Pool",
    "PoolConfig",
    "StorageConfig",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "AttributeStore": ("uacloudlib.core", "AttributeStore"),
    "Logger": ("uacloudlib.core", "Logger"),
    "Pool": ("uacloudlib.core", "Pool"),
    "PoolConfig": ("uacloudlib.core", "PoolConfig"),
    "Category": ("uacloudlib.models", "Category"),
    "NamespaceDescriptor": ("uacloudlib.models", "NamespaceDescriptor"),
    "NodesetSearchResult": ("uacloudlib.models", "NodesetSearchResult"),
    "NodesetSummary": ("uacloudlib.models", "NodesetSummary"),
    "Organisation": ("uacloudlib.models", "Organisation"),
    "CatalogConfig": ("uacloudlib.catalog", "CatalogConfig"),
    "NodesetCatalog": ("uacloudlib.catalog", "NodesetCatalog"),
    "FileStorage": ("uacloudlib.storage", "FileStorage"),
    "StorageConfig": ("uacloudlib.storage", "StorageConfig"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value
        return value
    raise AttributeError(f"module 'uacloudlib' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
