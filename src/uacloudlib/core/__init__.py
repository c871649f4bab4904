"""Core layer: database access, configuration loading, logging and errors.

Depends only on ``uacloudlib.models`` and is depended upon by
``uacloudlib.catalog``.

Attributes:
    Pool: Async PostgreSQL connection pool with retry/backoff and lazy
        reconnection. See [Pool][uacloudlib.core.pool.Pool].
    AttributeStore: Database facade over the attribute and type-kind tables.
        The catalog uses [AttributeStore][uacloudlib.core.store.AttributeStore],
        never [Pool][uacloudlib.core.pool.Pool] directly.
    Logger: Structured logger supporting key=value and JSON output modes.
        See [Logger][uacloudlib.core.logger.Logger].
    YAML: Safe YAML loading with ``yaml.safe_load()``.
        See [load_yaml()][uacloudlib.core.yaml.load_yaml].

Examples:
    ```python
    from uacloudlib.core import AttributeStore, Pool

    store = AttributeStore(pool=Pool.from_yaml("config/pool.yaml"))
    async with store:
        await store.get_all(7)
    ```
"""

from .exceptions import (
    CloudLibError,
    ConfigurationError,
    ConnectionPoolError,
    DatabaseError,
    FilterExpressionError,
    QueryError,
    StorageError,
)
from .logger import Logger, StructuredFormatter, format_kv_pairs
from .pool import (
    DatabaseConfig,
    Pool,
    PoolConfig,
    PoolLimitsConfig,
    PoolRetryConfig,
    PoolTimeoutsConfig,
    ServerSettingsConfig,
)
from .store import AttributeStore, StoreConfig, StoreTimeoutsConfig
from .yaml import load_yaml


__all__ = [
    "AttributeStore",
    "CloudLibError",
    "ConfigurationError",
    "ConnectionPoolError",
    "DatabaseConfig",
    "DatabaseError",
    "FilterExpressionError",
    "Logger",
    "Pool",
    "PoolConfig",
    "PoolLimitsConfig",
    "PoolRetryConfig",
    "PoolTimeoutsConfig",
    "QueryError",
    "ServerSettingsConfig",
    "StorageError",
    "StoreConfig",
    "StoreTimeoutsConfig",
    "StructuredFormatter",
    "format_kv_pairs",
    "load_yaml",
]
