"""
Pytest configuration and shared fixtures for UA Cloud Library tests.

Provides:
- Mock fixtures for asyncpg, Pool and AttributeStore
- An in-memory attribute store answering the catalog query shapes
- Sample nodeset data and configuration dictionaries
"""

from __future__ import annotations

import logging
import re
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from uacloudlib.core.exceptions import ConnectionPoolError, QueryError
from uacloudlib.core.pool import DatabaseConfig, Pool, PoolConfig
from uacloudlib.core.store import AttributeStore
from uacloudlib.models import METADATA_TABLE, TypeKind


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)


@pytest.fixture(autouse=True)
def environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Provide the database password and clear the storage fallbacks."""
    monkeypatch.setenv("POSTGRESQL_PASSWORD", "test_password")
    for var in ("BLOB_STORAGE_CONNECTION_STRING", "AWS_REGION", "AWS_ROLE_ARN"):
        monkeypatch.delenv(var, raising=False)


# ============================================================================
# Mock Fixtures
# ============================================================================


@pytest.fixture
def mock_connection() -> MagicMock:
    """Create a mock asyncpg connection."""
    conn = MagicMock()
    conn.fetch = AsyncMock(return_value=[])
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetchval = AsyncMock(return_value=1)
    conn.execute = AsyncMock(return_value="UPDATE 1")

    mock_transaction = MagicMock()
    mock_transaction.__aenter__ = AsyncMock(return_value=conn)
    mock_transaction.__aexit__ = AsyncMock(return_value=None)
    conn.transaction = MagicMock(return_value=mock_transaction)

    return conn


@pytest.fixture
def mock_asyncpg_pool(mock_connection: MagicMock) -> MagicMock:
    """Create a mock asyncpg pool."""
    pool = MagicMock()
    pool.close = AsyncMock()
    pool.is_closing = MagicMock(return_value=False)

    mock_acquire = MagicMock()
    mock_acquire.__aenter__ = AsyncMock(return_value=mock_connection)
    mock_acquire.__aexit__ = AsyncMock(return_value=None)
    pool.acquire = MagicMock(return_value=mock_acquire)

    return pool


@pytest.fixture
def mock_pool(mock_asyncpg_pool: MagicMock, mock_connection: MagicMock) -> Pool:
    """Create a Pool with mocked internals."""
    config = PoolConfig(
        database=DatabaseConfig(
            host="localhost",
            port=5432,
            database="test_db",
            user="test_user",
            password="test_password",
        ),
        retry={"max_attempts": 2, "initial_delay": 0.0, "max_delay": 0.0},
    )
    pool = Pool(config=config)
    pool._pool = mock_asyncpg_pool
    pool._is_connected = True
    pool._mock_connection = mock_connection  # type: ignore[attr-defined]
    return pool


@pytest.fixture
def mock_store(mock_pool: Pool) -> AttributeStore:
    """Create an AttributeStore over the mocked pool."""
    return AttributeStore(pool=mock_pool)


# ============================================================================
# In-memory attribute store
# ============================================================================


_TABLE = re.compile(r"FROM (\w+)")


class FakeAttributeStore:
    """Dict-backed stand-in for AttributeStore.

    Implements the contract and strict operations directly, and answers the
    SQL issued by ``uacloudlib.catalog.queries`` through ``fetch``.

    Attributes:
        fail_all: When set, every database access raises ConnectionPoolError.
        fail_ids: Nodeset ids whose attribute fetch raises QueryError.
        fail_tables: Tables whose scans and deletes raise QueryError.
    """

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {
            METADATA_TABLE: [],
            **{kind.table: [] for kind in TypeKind},
        }
        self._next_id = 1
        self.fail_all = False
        self.fail_ids: set[int] = set()
        self.fail_tables: set[str] = set()

    # -- helpers -------------------------------------------------------------

    def _check(self, table: str | None = None) -> None:
        if self.fail_all:
            raise ConnectionPoolError("database unavailable")
        if table is not None and table in self.fail_tables:
            raise QueryError(f"scan of {table} failed")

    def _row_id(self) -> int:
        value = self._next_id
        self._next_id += 1
        return value

    def add(self, nodeset_id: int, **attributes: str) -> None:
        """Insert metadata rows directly, one per keyword argument."""
        for name, value in attributes.items():
            self.tables[METADATA_TABLE].append(
                {
                    "metadata_id": self._row_id(),
                    "nodeset_id": nodeset_id,
                    "metadata_name": name,
                    "metadata_value": value,
                }
            )

    def add_type_row(
        self, nodeset_id: int, kind: TypeKind, namespace: str, value: str = "Type"
    ) -> None:
        self.tables[kind.table].append(
            {
                kind.id_column: self._row_id(),
                "nodeset_id": nodeset_id,
                kind.browse_name_column: value,
                kind.value_column: value,
                kind.namespace_column: namespace,
            }
        )

    @staticmethod
    def _ids(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        seen: dict[int, None] = {}
        for row in rows:
            seen.setdefault(row["nodeset_id"], None)
        return [{"nodeset_id": nodeset_id} for nodeset_id in seen]

    @staticmethod
    def _value_column(table: str) -> str:
        return "metadata_value" if table == METADATA_TABLE else TypeKind(table).value_column

    # -- query facade --------------------------------------------------------

    async def fetch(self, query: str, *args: Any, timeout: float | None = None) -> list[Any]:
        match = _TABLE.search(query)
        table = match.group(1) if match else METADATA_TABLE
        self._check(table)
        rows = self.tables[table]

        if "AS browse_name" in query:
            kind = TypeKind(table)
            return [
                {
                    "nodeset_id": row["nodeset_id"],
                    "browse_name": row[kind.browse_name_column],
                    "value": row[kind.value_column],
                    "namespace": row[kind.namespace_column],
                }
                for row in rows
            ]
        if "AS namespace, nodeset_id" in query:
            kind = TypeKind(table)
            pairs: dict[tuple[str, int], None] = {}
            for row in rows:
                pairs.setdefault((row[kind.namespace_column], row["nodeset_id"]), None)
            return [{"namespace": ns, "nodeset_id": nid} for ns, nid in pairs]
        if "metadata_name = $1 AND" in query:
            name, value = args
            if "lower(" in query:
                matches = [r for r in rows if value.lower() in r["metadata_value"].lower()]
            elif "strpos(" in query:
                matches = [r for r in rows if value in r["metadata_value"]]
            else:
                matches = [r for r in rows if r["metadata_value"] == value]
            return self._ids([r for r in matches if r["metadata_name"] == name])
        if "~ $1" in query:
            try:
                pattern = re.compile(args[0])
            except re.error as e:
                raise QueryError(f"invalid regular expression: {e}") from e
            column = self._value_column(table)
            return self._ids([r for r in rows if pattern.search(r[column].lower())])
        if "metadata_name = $1 ORDER BY" in query:
            return [
                {"metadata_value": r["metadata_value"], "nodeset_id": r["nodeset_id"]}
                for r in rows
                if r["metadata_name"] == args[0]
            ]
        if "nodeset_id, metadata_name, metadata_value" in query:
            return list(rows)
        if "GROUP BY nodeset_id" in query:
            return self._ids(rows)
        raise AssertionError(f"unexpected query: {query}")

    # -- strict operations ---------------------------------------------------

    async def fetch_attributes(self, nodeset_id: int) -> dict[str, str]:
        self._check()
        if nodeset_id in self.fail_ids:
            raise QueryError(f"attribute fetch failed for {nodeset_id}")
        return {
            row["metadata_name"]: row["metadata_value"]
            for row in self.tables[METADATA_TABLE]
            if row["nodeset_id"] == nodeset_id
        }

    async def fetch_namespace_uri(self, nodeset_id: int) -> str | None:
        self._check()
        for kind in TypeKind:
            rows = [r for r in self.tables[kind.table] if r["nodeset_id"] == nodeset_id]
            if rows:
                return rows[0][kind.namespace_column] or None
        return None

    # -- contract operations -------------------------------------------------

    async def get(self, nodeset_id: int, name: str) -> str:
        if self.fail_all:
            return ""
        values = [
            row["metadata_value"]
            for row in self.tables[METADATA_TABLE]
            if row["nodeset_id"] == nodeset_id and row["metadata_name"] == name
        ]
        return values[-1] if values else ""

    async def get_all(self, nodeset_id: int) -> dict[str, str]:
        try:
            return await self.fetch_attributes(nodeset_id)
        except (ConnectionPoolError, QueryError):
            return {}

    async def put(self, nodeset_id: int, name: str, value: str) -> bool:
        if self.fail_all:
            return False
        updated = False
        for row in self.tables[METADATA_TABLE]:
            if row["nodeset_id"] == nodeset_id and row["metadata_name"] == name:
                row["metadata_value"] = value
                updated = True
        if not updated:
            self.add(nodeset_id, **{name: value})
        return True

    async def add_type(
        self,
        nodeset_id: int,
        kind: TypeKind | str,
        browse_name: str,
        display_name: str,
        namespace: str,
    ) -> bool:
        if self.fail_all:
            return False
        self.add_type_row(nodeset_id, TypeKind(kind), namespace, display_name)
        return True

    async def delete_all(self, nodeset_id: int) -> bool:
        ok = True
        for table, rows in self.tables.items():
            if self.fail_all or table in self.fail_tables:
                ok = False
                continue
            rows[:] = [row for row in rows if row["nodeset_id"] != nodeset_id]
        return ok

    async def connect(self) -> None:
        return None

    async def close(self) -> None:
        return None


@pytest.fixture
def fake_store() -> FakeAttributeStore:
    """An empty in-memory attribute store."""
    return FakeAttributeStore()


@pytest.fixture
def catalog_store(fake_store: FakeAttributeStore) -> FakeAttributeStore:
    """In-memory store holding three sample nodesets (ids 1, 2 and 3)."""
    fake_store.add(
        1,
        nodesettitle="Machine Tools",
        license="MIT",
        version="1.01.0",
        nodesetcreationtime="2022-03-01T10:00:00Z",
        addressspacename="Manufacturing",
        addressspacedescription="Discrete manufacturing",
        orgname="VDW",
        orgcontact="info@vdw.de",
        keywords="machine,tool,cnc",
        numdownloads="12",
    )
    fake_store.add_type_row(1, TypeKind.OBJECT_TYPE, "http://opcfoundation.org/UA/MachineTool/")
    fake_store.add(
        2,
        nodesettitle="Robotics",
        license="ApacheLicense20",
        version="1.0.0",
        nodesetcreationtime="2021-05-20T00:00:00Z",
        addressspacename="Manufacturing",
        addressspacedescription="Discrete manufacturing",
        orgname="VDMA",
        orgcontact="robotics@vdma.org",
        numdownloads="40",
    )
    fake_store.add_type_row(2, TypeKind.DATA_TYPE, "http://opcfoundation.org/UA/Robotics/")
    fake_store.add(
        3,
        nodesettitle="Packaging",
        license="Custom",
        version="2.0",
        addressspacename="Packaging",
        orgname="OMAC",
        orgcontact="omac@example.org",
        numdownloads="not-a-number",
    )
    return fake_store


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def pool_config_dict() -> dict[str, Any]:
    """Sample pool configuration dictionary."""
    return {
        "database": {
            "host": "localhost",
            "port": 5432,
            "database": "test_db",
            "user": "test_user",
        },
        "limits": {
            "min_size": 2,
            "max_size": 10,
            "max_inactive_connection_lifetime": 60.0,
        },
        "timeouts": {"acquisition": 5.0},
        "retry": {
            "max_attempts": 2,
            "initial_delay": 0.5,
            "max_delay": 2.0,
            "exponential_backoff": True,
        },
        "server_settings": {"application_name": "test_app", "timezone": "UTC"},
    }
