"""Configuration models for the catalog facade.

Examples:
    ```yaml
    pool:
      database:
        host: postgres
        database: uacloudlib
    store:
      timeouts:
        query: 30.0
    storage:
      kind: aws
      connection_string: s3://nodesets/prod/
    query:
      build_concurrency: 8
      default_limit: 100
    ```
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from uacloudlib.core.pool import PoolConfig
from uacloudlib.core.store import StoreConfig
from uacloudlib.storage.base import StorageConfig


class QueryConfig(BaseModel):
    """Limits applied to catalog queries."""

    build_concurrency: int = Field(
        default=8, ge=1, le=64, description="Aggregates built concurrently per page"
    )
    default_limit: int = Field(
        default=100, ge=0, le=100_000, description="Page size when a caller passes no limit"
    )


class CatalogConfig(BaseModel):
    """Aggregate configuration for [NodesetCatalog][uacloudlib.catalog.service.NodesetCatalog]."""

    pool: PoolConfig = Field(default_factory=PoolConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    query: QueryConfig = Field(default_factory=QueryConfig)


__all__ = ["CatalogConfig", "QueryConfig"]
