"""
Attribute store: the database facade of the catalog.

Wraps a [Pool][uacloudlib.core.pool.Pool] and exposes two families of
operations over the ``metadata`` table and the four type-kind tables:

* **Contract operations** (``get``, ``get_all``, ``put``, ``add_type``,
  ``delete_all``) never raise. Failures are logged and degrade to ``""``,
  ``{}`` or ``False``.
* **Strict operations** (``fetch_attributes``, ``fetch_namespace_uri`` and
  the generic ``fetch``/``fetchrow``/``fetchval``/``execute`` facade) raise
  [DatabaseError][uacloudlib.core.exceptions.DatabaseError] subclasses, so
  the catalog engine can drop a single record when its fetch fails.

Catalog-specific read queries live in ``uacloudlib.catalog.queries``, not
here.

Examples:
    ```python
    store = AttributeStore.from_yaml("config/catalog.yaml")

    async with store:
        await store.put(7, "nodesettitle", "Machine Tools")
        attributes = await store.get_all(7)
    ```
"""

from __future__ import annotations

from contextlib import asynccontextmanager, contextmanager
from typing import TYPE_CHECKING, Any

import asyncpg
from pydantic import BaseModel, Field, field_validator

from uacloudlib.models import METADATA_TABLE, AttributeRow, TypeKind, TypeRow

from .exceptions import ConnectionPoolError, DatabaseError, QueryError
from .logger import Logger
from .pool import Pool, PoolConfig
from .yaml import load_yaml


if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator


_MIN_TIMEOUT_SECONDS = 0.1


# ---------------------------------------------------------------------------
# Configuration Models
# ---------------------------------------------------------------------------


class StoreTimeoutsConfig(BaseModel):
    """Timeout settings for store operations (in seconds).

    Each timeout can be None for no limit or a float >= 0.1 seconds.
    """

    query: float | None = Field(default=30.0, description="Read timeout (seconds, None=infinite)")
    write: float | None = Field(default=30.0, description="Write timeout (seconds, None=infinite)")

    @field_validator("query", "write", mode="after")
    @classmethod
    def validate_timeout(cls, v: float | None) -> float | None:
        """Validate timeout: None (infinite) or >= 0.1 seconds."""
        if v is not None and v < _MIN_TIMEOUT_SECONDS:
            raise ValueError(
                f"Timeout must be None (infinite) or >= {_MIN_TIMEOUT_SECONDS} seconds"
            )
        return v


class StoreConfig(BaseModel):
    """Configuration for the attribute store."""

    timeouts: StoreTimeoutsConfig = Field(default_factory=StoreTimeoutsConfig)


# ---------------------------------------------------------------------------
# Error translation
# ---------------------------------------------------------------------------


@contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    """Map driver-level exceptions onto the ``DatabaseError`` hierarchy."""
    try:
        yield
    except DatabaseError:
        raise
    except asyncpg.PostgresError as e:
        raise QueryError(f"{operation} failed: {e}") from e
    except (asyncpg.InterfaceError, OSError, TimeoutError) as e:
        raise ConnectionPoolError(f"{operation} failed: {e}") from e


# ---------------------------------------------------------------------------
# AttributeStore Class
# ---------------------------------------------------------------------------


class AttributeStore:
    """Database facade over the attribute and type-kind tables.

    One instance may be shared by concurrent callers: each operation borrows
    its own pooled connection.

    Note:
        The pool is opened lazily by the first operation and reopened if it
        was closed, so entering the async context manager is optional.
    """

    def __init__(
        self,
        pool: Pool | None = None,
        config: StoreConfig | None = None,
    ) -> None:
        self._pool = pool or Pool()
        self._config = config or StoreConfig()
        self._logger = Logger("store")

    @property
    def config(self) -> StoreConfig:
        """The store configuration (read-only)."""
        return self._config

    @property
    def pool_config(self) -> PoolConfig:
        """Read-only access to the underlying pool configuration."""
        return self._pool.config

    @classmethod
    def from_yaml(cls, config_path: str) -> AttributeStore:
        """Create a store from a YAML file with ``pool`` and ``store`` keys."""
        return cls.from_dict(load_yaml(config_path))

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> AttributeStore:
        """Create a store from a dictionary with optional ``pool`` and ``store`` keys."""
        pool = Pool.from_dict(config_dict["pool"]) if "pool" in config_dict else None
        store_dict = config_dict.get("store")
        config = StoreConfig(**store_dict) if store_dict else None
        return cls(pool=pool, config=config)

    # -------------------------------------------------------------------------
    # Query Facade (strict)
    # -------------------------------------------------------------------------

    async def fetch(
        self,
        query: str,
        *args: Any,
        timeout: float | None = None,  # noqa: ASYNC109
    ) -> list[asyncpg.Record]:
        """Execute a query and return all rows.

        Raises:
            QueryError: The query itself failed.
            ConnectionPoolError: The database could not be reached.
        """
        t = timeout if timeout is not None else self._config.timeouts.query
        with _translate_errors("fetch"):
            return await self._pool.fetch(query, *args, timeout=t)

    async def fetchrow(
        self,
        query: str,
        *args: Any,
        timeout: float | None = None,  # noqa: ASYNC109
    ) -> asyncpg.Record | None:
        """Execute a query and return the first row, or None."""
        t = timeout if timeout is not None else self._config.timeouts.query
        with _translate_errors("fetchrow"):
            return await self._pool.fetchrow(query, *args, timeout=t)

    async def fetchval(
        self,
        query: str,
        *args: Any,
        timeout: float | None = None,  # noqa: ASYNC109
    ) -> Any:
        """Execute a query and return the first column of the first row."""
        t = timeout if timeout is not None else self._config.timeouts.query
        with _translate_errors("fetchval"):
            return await self._pool.fetchval(query, *args, timeout=t)

    async def execute(
        self,
        query: str,
        *args: Any,
        timeout: float | None = None,  # noqa: ASYNC109
    ) -> str:
        """Execute a statement and return its command status tag."""
        t = timeout if timeout is not None else self._config.timeouts.write
        with _translate_errors("execute"):
            return await self._pool.execute(query, *args, timeout=t)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection[asyncpg.Record]]:
        """Yield a connection inside a transaction; rolls back on error.

        Example:
            async with store.transaction() as conn:
                await conn.execute("UPDATE metadata ...")
                await conn.execute("INSERT INTO metadata ...")
        """
        with _translate_errors("transaction"):
            async with self._pool.transaction() as conn:
                yield conn

    # -------------------------------------------------------------------------
    # Strict Operations
    # -------------------------------------------------------------------------

    async def fetch_attributes(self, nodeset_id: int) -> dict[str, str]:
        """Return every attribute of a nodeset; later rows win on duplicate names.

        Raises:
            DatabaseError: If the rows could not be read.
        """
        rows = await self.fetch(
            f"SELECT metadata_name, metadata_value FROM {METADATA_TABLE} "  # noqa: S608
            "WHERE nodeset_id = $1 ORDER BY metadata_id",
            nodeset_id,
        )
        return {row["metadata_name"]: row["metadata_value"] or "" for row in rows}

    async def fetch_namespace_uri(self, nodeset_id: int) -> str | None:
        """Return the namespace of the first type-kind row of a nodeset.

        Tables are searched in [TypeKind][uacloudlib.models.constants.TypeKind]
        declaration order; within a table the lowest row id wins.

        Raises:
            DatabaseError: If the lookup failed.
        """
        branches = " UNION ALL ".join(
            f"SELECT {priority} AS priority, {kind.id_column} AS row_id, "  # noqa: S608
            f"{kind.namespace_column} AS namespace FROM {kind.table} WHERE nodeset_id = $1"
            for priority, kind in enumerate(TypeKind)
        )
        value = await self.fetchval(
            f"SELECT namespace FROM ({branches}) AS candidates "  # noqa: S608
            "ORDER BY priority, row_id LIMIT 1",
            nodeset_id,
        )
        return value if value else None

    # -------------------------------------------------------------------------
    # Contract Operations (fail-soft)
    # -------------------------------------------------------------------------

    async def get(self, nodeset_id: int, name: str) -> str:
        """Return the latest value of one attribute, or ``""`` when absent or on error."""
        try:
            value = await self.fetchval(
                f"SELECT metadata_value FROM {METADATA_TABLE} "  # noqa: S608
                "WHERE nodeset_id = $1 AND metadata_name = $2 "
                "ORDER BY metadata_id DESC LIMIT 1",
                nodeset_id,
                name,
            )
        except DatabaseError as e:
            self._logger.error(
                "attribute_get_failed", nodeset_id=nodeset_id, name=name, error=str(e)
            )
            return ""
        return value or ""

    async def get_all(self, nodeset_id: int) -> dict[str, str]:
        """Return every attribute of a nodeset, or ``{}`` on error."""
        try:
            return await self.fetch_attributes(nodeset_id)
        except DatabaseError as e:
            self._logger.error("attribute_fetch_failed", nodeset_id=nodeset_id, error=str(e))
            return {}

    async def put(self, nodeset_id: int, name: str, value: str) -> bool:
        """Set an attribute: update existing rows by name, insert when none matched.

        Both statements run in one transaction.

        Returns:
            True on success, False on validation or database failure.
        """
        try:
            params = AttributeRow(nodeset_id, name, value).to_db_params()
        except (TypeError, ValueError) as e:
            self._logger.warning("attribute_put_rejected", nodeset_id=nodeset_id, error=str(e))
            return False

        timeout = self._config.timeouts.write
        try:
            async with self.transaction() as conn:
                status = await conn.execute(
                    f"UPDATE {METADATA_TABLE} SET metadata_value = $3 "  # noqa: S608
                    "WHERE nodeset_id = $1 AND metadata_name = $2",
                    *params,
                    timeout=timeout,
                )
                if status == "UPDATE 0":
                    await conn.execute(
                        f"INSERT INTO {METADATA_TABLE} "  # noqa: S608
                        "(nodeset_id, metadata_name, metadata_value) VALUES ($1, $2, $3)",
                        *params,
                        timeout=timeout,
                    )
        except DatabaseError as e:
            self._logger.error(
                "attribute_put_failed", nodeset_id=nodeset_id, name=name, error=str(e)
            )
            return False
        return True

    async def add_type(
        self,
        nodeset_id: int,
        kind: TypeKind | str,
        browse_name: str,
        display_name: str,
        namespace: str,
    ) -> bool:
        """Insert one row into the type-kind table named by ``kind``."""
        try:
            row = TypeRow(nodeset_id, TypeKind(kind), browse_name, display_name, namespace)
        except (TypeError, ValueError) as e:
            self._logger.warning("type_add_rejected", nodeset_id=nodeset_id, error=str(e))
            return False

        kind = row.kind
        try:
            await self.execute(
                f"INSERT INTO {kind.table} "  # noqa: S608
                f"(nodeset_id, {kind.browse_name_column}, {kind.value_column}, "
                f"{kind.namespace_column}) VALUES ($1, $2, $3, $4)",
                row.nodeset_id,
                row.browse_name,
                row.value,
                row.namespace,
            )
        except DatabaseError as e:
            self._logger.error(
                "type_add_failed", nodeset_id=nodeset_id, kind=str(kind), error=str(e)
            )
            return False
        return True

    async def delete_all(self, nodeset_id: int) -> bool:
        """Delete a nodeset's rows from the attribute and all type-kind tables.

        Every table is attempted even after a failure; partial deletes are
        not rolled back.

        Returns:
            True only if every delete succeeded.
        """
        ok = True
        for table in (METADATA_TABLE, *(kind.table for kind in TypeKind)):
            try:
                status = await self.execute(
                    f"DELETE FROM {table} WHERE nodeset_id = $1",  # noqa: S608
                    nodeset_id,
                )
            except DatabaseError as e:
                self._logger.error(
                    "nodeset_delete_failed", nodeset_id=nodeset_id, table=table, error=str(e)
                )
                ok = False
                continue
            self._logger.debug(
                "nodeset_rows_deleted", nodeset_id=nodeset_id, table=table, status=status
            )
        return ok

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def connect(self) -> None:
        await self._pool.connect()

    async def close(self) -> None:
        await self._pool.close()

    async def __aenter__(self) -> AttributeStore:
        await self._pool.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any | None,
    ) -> None:
        await self._pool.close()

    def __repr__(self) -> str:
        db = self._pool.config.database
        return f"AttributeStore(host={db.host}, database={db.database})"
