"""Pure frozen dataclasses with zero I/O for catalog rows and aggregates.

The models layer has no dependencies on any other ``uacloudlib`` package,
only the Python standard library. Row models validate in ``__post_init__``
so invalid instances never escape the constructor.

Attributes:
    AttributeRow: One ``metadata`` table row.
    TypeRow: One row of a type-kind table.
    NodesetSummary: Identity, namespace URI, dates and version of a nodeset.
    NamespaceDescriptor: Full public description of a nodeset.
    Category: Address-space category (value equality).
    Organisation: Contributing organisation (value equality).
    NodesetSearchResult: Enriched keyword search hit.
"""

from .attribute import AttributeDbParams, AttributeRow, TypeRow
from .constants import METADATA_TABLE, AttributeName, Comparator, License, TypeKind
from .nodeset import (
    Category,
    NamespaceDescriptor,
    NodesetSearchResult,
    NodesetSummary,
    Organisation,
)


__all__ = [
    "METADATA_TABLE",
    "AttributeDbParams",
    "AttributeName",
    "AttributeRow",
    "Category",
    "Comparator",
    "License",
    "NamespaceDescriptor",
    "NodesetSearchResult",
    "NodesetSummary",
    "Organisation",
    "TypeKind",
    "TypeRow",
]
