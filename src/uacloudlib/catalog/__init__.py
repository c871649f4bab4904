"""Metadata query and aggregation engine.

Attributes:
    NodesetCatalog: Public facade; never raises, degrades to empty results.
    CatalogConfig: Pool, store, storage and query settings.
    AggregateBuilder: Builds aggregates from a nodeset's attribute rows.
    FilterEvaluator: Resolves ``where`` expressions to candidate ids.
    KeywordSearch: Regex keyword search across all five tables.
"""

from .builder import (
    AggregateBuilder,
    build_category,
    build_namespace,
    build_organisation,
    build_summary,
)
from .configs import CatalogConfig, QueryConfig
from .filters import Clause, FilterEvaluator, parse_where
from .ordering import order_by
from .paging import Skip, collect, page_window
from .search import KeywordSearch
from .service import NodesetCatalog


__all__ = [
    "AggregateBuilder",
    "CatalogConfig",
    "Clause",
    "FilterEvaluator",
    "KeywordSearch",
    "NodesetCatalog",
    "QueryConfig",
    "Skip",
    "build_category",
    "build_namespace",
    "build_organisation",
    "build_summary",
    "collect",
    "order_by",
    "page_window",
    "parse_where",
]
