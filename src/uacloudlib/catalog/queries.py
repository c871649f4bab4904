"""Catalog read queries.

All SQL used by the catalog engine is centralized here. Each function
accepts an [AttributeStore][uacloudlib.core.store.AttributeStore] and returns
typed results. Functions are strict: store failures propagate as
[DatabaseError][uacloudlib.core.exceptions.DatabaseError] subclasses and the
caller decides how to degrade.

Id lists are returned deduplicated in first-insertion order
(``GROUP BY nodeset_id ORDER BY MIN(row id)``) so results are stable across
calls.

The functions are grouped into three categories:

- **Candidate ids**: ``fetch_all_nodeset_ids``, ``fetch_ids_for_clause``,
  ``fetch_ids_in_table``
- **Pair listings**: ``fetch_namespaces_and_nodesets``,
  ``fetch_names_and_nodesets``
- **Raw rows**: ``fetch_attribute_rows``, ``fetch_type_rows``

Warning:
    All queries use ``timeouts.query`` from
    [StoreConfig][uacloudlib.core.store.StoreConfig]. The PostgreSQL
    ``statement_timeout`` acts as a server-side safety net.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from uacloudlib.models import (
    METADATA_TABLE,
    AttributeName,
    AttributeRow,
    Comparator,
    TypeKind,
    TypeRow,
)


if TYPE_CHECKING:
    from uacloudlib.core.store import AttributeStore

    from .filters import Clause

logger = logging.getLogger(__name__)

WILDCARD = "*"


# Match predicate per comparator; $1 is the attribute name, $2 the value.
_CLAUSE_PREDICATES: dict[Comparator, str] = {
    Comparator.EQUALS: "metadata_value = $2",
    Comparator.CONTAINS: "strpos(metadata_value, $2) > 0",
    Comparator.LIKE: "strpos(lower(metadata_value), lower($2)) > 0",
}


def _columns(table: str) -> tuple[str, str]:
    """Return the ``(row id, value)`` column names of a searchable table."""
    if table == METADATA_TABLE:
        return "metadata_id", "metadata_value"
    kind = TypeKind(table)
    return kind.id_column, kind.value_column


# =============================================================================
# Candidate ids
# =============================================================================


async def fetch_all_nodeset_ids(store: AttributeStore) -> list[int]:
    """Return every distinct nodeset id present in the attribute table."""
    rows = await store.fetch(
        f"SELECT nodeset_id FROM {METADATA_TABLE} "  # noqa: S608
        "GROUP BY nodeset_id ORDER BY MIN(metadata_id)"
    )
    return [row["nodeset_id"] for row in rows]


async def fetch_ids_for_clause(store: AttributeStore, clause: Clause) -> list[int]:
    """Return the distinct ids of nodesets with an attribute matching one clause."""
    predicate = _CLAUSE_PREDICATES[clause.comparator]
    rows = await store.fetch(
        f"SELECT nodeset_id FROM {METADATA_TABLE} "  # noqa: S608
        f"WHERE metadata_name = $1 AND {predicate} "
        "GROUP BY nodeset_id ORDER BY MIN(metadata_id)",
        clause.field,
        str(clause.value),
    )
    return [row["nodeset_id"] for row in rows]


async def fetch_ids_in_table(store: AttributeStore, table: str, keyword: str) -> list[int]:
    """Return the distinct ids of one table whose value matches a keyword.

    ``"*"`` matches every row. Any other keyword is lower-cased and used as
    a POSIX regular expression against the lower-cased value column; an
    invalid pattern raises [QueryError][uacloudlib.core.exceptions.QueryError].

    Args:
        store: The attribute store.
        table: ``metadata`` or one of the [TypeKind][uacloudlib.models.constants.TypeKind]
            table names.
        keyword: Search keyword or ``"*"``.
    """
    id_column, value_column = _columns(table)
    if keyword == WILDCARD:
        rows = await store.fetch(
            f"SELECT nodeset_id FROM {table} "  # noqa: S608
            f"GROUP BY nodeset_id ORDER BY MIN({id_column})"
        )
    else:
        rows = await store.fetch(
            f"SELECT nodeset_id FROM {table} "  # noqa: S608
            f"WHERE LOWER({value_column}) ~ $1 "
            f"GROUP BY nodeset_id ORDER BY MIN({id_column})",
            keyword.lower(),
        )
    return [row["nodeset_id"] for row in rows]


# =============================================================================
# Pair listings
# =============================================================================


async def fetch_namespaces_and_nodesets(store: AttributeStore) -> list[tuple[str, int]]:
    """Return distinct ``(namespace, nodeset_id)`` pairs from the object type table."""
    kind = TypeKind.OBJECT_TYPE
    rows = await store.fetch(
        f"SELECT {kind.namespace_column} AS namespace, nodeset_id "  # noqa: S608
        f"FROM {kind.table} GROUP BY {kind.namespace_column}, nodeset_id "
        f"ORDER BY MIN({kind.id_column})"
    )
    return [(row["namespace"], row["nodeset_id"]) for row in rows]


async def fetch_names_and_nodesets(store: AttributeStore) -> list[tuple[str, int]]:
    """Return ``(address space name, nodeset_id)`` pairs in insertion order."""
    rows = await store.fetch(
        f"SELECT metadata_value, nodeset_id FROM {METADATA_TABLE} "  # noqa: S608
        "WHERE metadata_name = $1 ORDER BY metadata_id",
        AttributeName.ADDRESS_SPACE_NAME.value,
    )
    return [(row["metadata_value"], row["nodeset_id"]) for row in rows]


# =============================================================================
# Raw rows
# =============================================================================


async def fetch_attribute_rows(store: AttributeStore) -> list[AttributeRow]:
    """Return every attribute row. Rows that fail validation are skipped."""
    rows = await store.fetch(
        f"SELECT nodeset_id, metadata_name, metadata_value FROM {METADATA_TABLE} "  # noqa: S608
        "ORDER BY metadata_id"
    )
    result: list[AttributeRow] = []
    for row in rows:
        try:
            result.append(
                AttributeRow(row["nodeset_id"], row["metadata_name"], row["metadata_value"] or "")
            )
        except (ValueError, TypeError) as e:
            logger.warning(
                "Skipping invalid attribute row for nodeset %s: %s", row["nodeset_id"], e
            )
    return result


async def fetch_type_rows(store: AttributeStore, kind: TypeKind) -> list[TypeRow]:
    """Return every row of one type-kind table. Rows that fail validation are skipped."""
    rows = await store.fetch(
        f"SELECT nodeset_id, {kind.browse_name_column} AS browse_name, "  # noqa: S608
        f"{kind.value_column} AS value, {kind.namespace_column} AS namespace "
        f"FROM {kind.table} ORDER BY {kind.id_column}"
    )
    result: list[TypeRow] = []
    for row in rows:
        try:
            result.append(
                TypeRow(
                    row["nodeset_id"],
                    kind,
                    row["browse_name"] or "",
                    row["value"] or "",
                    row["namespace"] or "",
                )
            )
        except (ValueError, TypeError) as e:
            logger.warning(
                "Skipping invalid %s row for nodeset %s: %s", kind, row["nodeset_id"], e
            )
    return result


__all__ = [
    "WILDCARD",
    "fetch_all_nodeset_ids",
    "fetch_attribute_rows",
    "fetch_ids_for_clause",
    "fetch_ids_in_table",
    "fetch_names_and_nodesets",
    "fetch_namespaces_and_nodesets",
    "fetch_type_rows",
]
