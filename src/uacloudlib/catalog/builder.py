"""
Aggregate builder: typed catalog aggregates from flat attribute rows.

The ``build_*`` functions are pure: they take a nodeset's attribute mapping
(and namespace URI where needed) and never raise. Malformed values leave the
target field at its default.

[AggregateBuilder][uacloudlib.catalog.builder.AggregateBuilder] adds the I/O:
one attribute fetch per nodeset plus, for summaries and namespace
descriptors, one namespace-URI lookup. A failing fetch yields a
[Skip][uacloudlib.catalog.paging.Skip] so the caller can drop that record.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from uacloudlib.core.exceptions import DatabaseError
from uacloudlib.core.logger import Logger
from uacloudlib.models import (
    Category,
    NamespaceDescriptor,
    NodesetSummary,
    Organisation,
)

from .paging import Skip
from .parsing import (
    CATEGORY_FIELDS,
    CONTRIBUTOR_FIELDS,
    NAMESPACE_FIELDS,
    SUMMARY_FIELDS,
    optional_url,
    parse_fields,
    split_targets,
    top_level,
)


if TYPE_CHECKING:
    from collections.abc import Mapping

    from uacloudlib.core.store import AttributeStore


# ---------------------------------------------------------------------------
# Pure builders
# ---------------------------------------------------------------------------


def build_summary(
    nodeset_id: int, attributes: Mapping[str, str], namespace_uri: str | None = None
) -> NodesetSummary:
    """Build a nodeset summary; the identifier is always ``nodeset_id``."""
    parsed = parse_fields(attributes, SUMMARY_FIELDS)
    return NodesetSummary(
        identifier=nodeset_id,
        namespace_uri=optional_url(namespace_uri),
        **split_targets(parsed, "nodeset"),
    )


def build_category(attributes: Mapping[str, str]) -> Category:
    return Category(**split_targets(parse_fields(attributes, CATEGORY_FIELDS), "category"))


def build_organisation(attributes: Mapping[str, str]) -> Organisation:
    return Organisation(
        **split_targets(parse_fields(attributes, CONTRIBUTOR_FIELDS), "contributor")
    )


def build_namespace(
    nodeset_id: int, attributes: Mapping[str, str], namespace_uri: str | None = None
) -> NamespaceDescriptor:
    """Build the full namespace descriptor of a nodeset.

    Args:
        nodeset_id: The nodeset the attributes belong to.
        attributes: ``metadata_name -> metadata_value`` for that nodeset.
        namespace_uri: Raw namespace string from the type-kind tables. An
            absent or invalid URI leaves ``nodeset.namespace_uri`` unset.
    """
    parsed = parse_fields(attributes, NAMESPACE_FIELDS)
    return NamespaceDescriptor(
        nodeset=NodesetSummary(
            identifier=nodeset_id,
            namespace_uri=optional_url(namespace_uri),
            **split_targets(parsed, "nodeset"),
        ),
        category=Category(**split_targets(parsed, "category")),
        contributor=Organisation(**split_targets(parsed, "contributor")),
        **top_level(parsed),
    )


# ---------------------------------------------------------------------------
# Store-backed builder
# ---------------------------------------------------------------------------


class AggregateBuilder:
    """Fetches a nodeset's rows and builds one aggregate from them.

    Every method returns either the aggregate or a
    [Skip][uacloudlib.catalog.paging.Skip] naming the failed fetch.
    """

    def __init__(self, store: AttributeStore) -> None:
        self._store = store
        self._logger = Logger("builder")

    async def _attributes(self, nodeset_id: int) -> dict[str, str] | Skip:
        try:
            return await self._store.fetch_attributes(nodeset_id)
        except DatabaseError as e:
            self._logger.warning("attribute_fetch_failed", nodeset_id=nodeset_id, error=str(e))
            return Skip(nodeset_id, f"attribute fetch failed: {e}")

    async def _namespace(self, nodeset_id: int) -> str | None | Skip:
        try:
            return await self._store.fetch_namespace_uri(nodeset_id)
        except DatabaseError as e:
            self._logger.warning("namespace_fetch_failed", nodeset_id=nodeset_id, error=str(e))
            return Skip(nodeset_id, f"namespace lookup failed: {e}")

    async def summary(self, nodeset_id: int) -> NodesetSummary | Skip:
        attributes = await self._attributes(nodeset_id)
        if isinstance(attributes, Skip):
            return attributes
        namespace_uri = await self._namespace(nodeset_id)
        if isinstance(namespace_uri, Skip):
            return namespace_uri
        return build_summary(nodeset_id, attributes, namespace_uri)

    async def namespace(self, nodeset_id: int) -> NamespaceDescriptor | Skip:
        attributes = await self._attributes(nodeset_id)
        if isinstance(attributes, Skip):
            return attributes
        namespace_uri = await self._namespace(nodeset_id)
        if isinstance(namespace_uri, Skip):
            return namespace_uri
        return build_namespace(nodeset_id, attributes, namespace_uri)

    async def category(self, nodeset_id: int) -> Category | Skip:
        attributes = await self._attributes(nodeset_id)
        if isinstance(attributes, Skip):
            return attributes
        return build_category(attributes)

    async def organisation(self, nodeset_id: int) -> Organisation | Skip:
        attributes = await self._attributes(nodeset_id)
        if isinstance(attributes, Skip):
            return attributes
        return build_organisation(attributes)


__all__ = [
    "AggregateBuilder",
    "build_category",
    "build_namespace",
    "build_organisation",
    "build_summary",
]
