"""
Public catalog facade over the attribute store and blob storage.

[NodesetCatalog][uacloudlib.catalog.service.NodesetCatalog] wires the
[FilterEvaluator][uacloudlib.catalog.filters.FilterEvaluator],
[AggregateBuilder][uacloudlib.catalog.builder.AggregateBuilder],
[KeywordSearch][uacloudlib.catalog.search.KeywordSearch] and the paging and
ordering helpers into the operations callers use.

No public operation raises. Store and storage failures degrade to empty or
default results and are logged.

Examples:
    ```python
    catalog = NodesetCatalog.from_yaml("config/catalog.yaml")

    async with catalog:
        page = await catalog.namespaces(
            limit=10, offset=0, where='[{"license": {"equals": "MIT"}}]', order_by="title"
        )
    ```
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from uacloudlib.core.exceptions import DatabaseError
from uacloudlib.core.logger import Logger
from uacloudlib.core.pool import Pool
from uacloudlib.core.store import AttributeStore
from uacloudlib.core.yaml import load_yaml
from uacloudlib.models import Category, NamespaceDescriptor, Organisation, TypeKind
from uacloudlib.storage.base import create_file_storage

from .builder import AggregateBuilder
from .configs import CatalogConfig
from .filters import FilterEvaluator
from .ordering import order_by as sort_page
from .paging import Skip, collect, page_window
from .queries import (
    fetch_all_nodeset_ids,
    fetch_attribute_rows,
    fetch_names_and_nodesets,
    fetch_namespaces_and_nodesets,
    fetch_type_rows,
)
from .search import KeywordSearch


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from uacloudlib.models import AttributeRow, NodesetSearchResult, NodesetSummary, TypeRow
    from uacloudlib.storage.base import FileStorage


T = TypeVar("T")


class NodesetCatalog:
    """Query engine for nodeset metadata.

    Every aggregate is rebuilt from the attribute rows on each call; nothing
    is cached between queries.
    """

    def __init__(
        self,
        store: AttributeStore,
        storage: FileStorage | None = None,
        config: CatalogConfig | None = None,
    ) -> None:
        self._config = config or CatalogConfig()
        self._store = store
        self._storage = storage or create_file_storage(self._config.storage)
        self._builder = AggregateBuilder(store)
        self._filters = FilterEvaluator(store)
        self._search = KeywordSearch(store, concurrency=self._config.query.build_concurrency)
        self._logger = Logger("catalog")

    @classmethod
    def from_yaml(cls, config_path: str) -> NodesetCatalog:
        """Create a catalog from a YAML file matching ``CatalogConfig``."""
        return cls.from_dict(load_yaml(config_path))

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> NodesetCatalog:
        """Create a catalog, its store and its storage backend from a dictionary."""
        config = CatalogConfig(**config_dict)
        store = AttributeStore(pool=Pool(config.pool), config=config.store)
        return cls(store=store, config=config)

    @property
    def config(self) -> CatalogConfig:
        """The catalog configuration (read-only)."""
        return self._config

    @property
    def store(self) -> AttributeStore:
        return self._store

    @property
    def storage(self) -> FileStorage:
        return self._storage

    # -------------------------------------------------------------------------
    # Aggregate queries
    # -------------------------------------------------------------------------

    async def namespaces(
        self,
        limit: int | None = None,
        offset: int = 0,
        where: str | None = None,
        order_by: str | None = None,
    ) -> list[NamespaceDescriptor]:
        """Return one page of namespace descriptors.

        The candidate ids selected by ``where`` are paginated first; only the
        page is built and then ordered.

        Args:
            limit: Page size; ``query.default_limit`` when None.
            offset: Index of the first candidate in the page.
            where: Serialized filter expression; None selects every nodeset.
            order_by: Order key (see
                [NAMESPACE_KEYS][uacloudlib.catalog.ordering.NAMESPACE_KEYS]).

        Returns:
            The built page. Negative bounds or an offset beyond the candidate
            count give an empty list; nodesets whose rows could not be read
            are left out.
        """
        limit = self._config.query.default_limit if limit is None else limit
        ids = await self._filters.resolve(where)
        window = page_window(len(ids), offset, limit)
        if window is None:
            self._logger.debug(
                "page_out_of_range", candidates=len(ids), offset=offset, limit=limit
            )
            return []

        page = [ids[i] for i in window]
        built = await collect(page, self._builder.namespace, self._config.query.build_concurrency)
        self._logger.debug("namespaces_built", requested=len(page), built=len(built))
        return sort_page(built, order_by, NamespaceDescriptor)

    async def nodesets(self) -> list[NodesetSummary]:
        """Return the summary of every nodeset in the attribute table, unpaged."""
        try:
            ids = await fetch_all_nodeset_ids(self._store)
        except DatabaseError as e:
            self._logger.error("nodeset_listing_failed", error=str(e))
            return []
        return await collect(ids, self._builder.summary, self._config.query.build_concurrency)

    async def categories(
        self,
        limit: int | None = None,
        where: str | None = None,
        order_by: str | None = None,
    ) -> list[Category]:
        """Return up to ``limit`` distinct categories of the nodesets selected by ``where``."""
        distinct = await self._distinct(limit, where, self._builder.category)
        return sort_page(distinct, order_by, Category)

    async def organisations(
        self,
        limit: int | None = None,
        where: str | None = None,
        order_by: str | None = None,
    ) -> list[Organisation]:
        """Return up to ``limit`` distinct contributing organisations."""
        distinct = await self._distinct(limit, where, self._builder.organisation)
        return sort_page(distinct, order_by, Organisation)

    async def _distinct(
        self,
        limit: int | None,
        where: str | None,
        build: Callable[[int], Awaitable[T | Skip]],
    ) -> list[T]:
        """Build candidates in order until ``limit`` distinct values are collected."""
        limit = self._config.query.default_limit if limit is None else limit
        if limit <= 0:
            return []

        seen: dict[T, None] = {}
        for nodeset_id in await self._filters.resolve(where):
            outcome = await build(nodeset_id)
            if isinstance(outcome, Skip):
                self._logger.warning(
                    "aggregate_skipped", nodeset_id=outcome.nodeset_id, reason=outcome.reason
                )
                continue
            seen.setdefault(outcome, None)
            if len(seen) == limit:
                break
        return list(seen)

    async def find_nodesets(self, keywords: Sequence[str]) -> list[NodesetSearchResult]:
        """Keyword search across all tables; ``"*"`` matches everything."""
        return await self._search.find(keywords)

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    async def namespaces_and_nodesets(self) -> list[tuple[str, int]]:
        """Return distinct ``(namespace, nodeset_id)`` pairs from the object types."""
        try:
            return await fetch_namespaces_and_nodesets(self._store)
        except DatabaseError as e:
            self._logger.error("namespace_listing_failed", error=str(e))
            return []

    async def names_and_nodesets(self) -> list[tuple[str, int]]:
        """Return ``(address space name, nodeset_id)`` pairs."""
        try:
            return await fetch_names_and_nodesets(self._store)
        except DatabaseError as e:
            self._logger.error("name_listing_failed", error=str(e))
            return []

    async def list_attributes(self) -> list[AttributeRow]:
        try:
            return await fetch_attribute_rows(self._store)
        except DatabaseError as e:
            self._logger.error("attribute_listing_failed", error=str(e))
            return []

    async def list_types(self, kind: TypeKind | str) -> list[TypeRow]:
        try:
            type_kind = TypeKind(kind)
        except ValueError:
            self._logger.warning("type_kind_unknown", kind=kind)
            return []
        try:
            return await fetch_type_rows(self._store, type_kind)
        except DatabaseError as e:
            self._logger.error("type_listing_failed", kind=str(type_kind), error=str(e))
            return []

    # -------------------------------------------------------------------------
    # Nodeset files
    # -------------------------------------------------------------------------

    async def delete_nodeset(self, nodeset_id: int) -> bool:
        """Delete every stored row of a nodeset; True only if all tables succeeded."""
        ok = await self._store.delete_all(nodeset_id)
        self._logger.info("nodeset_deleted", nodeset_id=nodeset_id, complete=ok)
        return ok

    async def download_nodeset(self, nodeset_id: int) -> str:
        """Return the blob stored under the nodeset id, or ``""`` if missing."""
        name = await self._storage.find(str(nodeset_id))
        if name is None:
            self._logger.warning("nodeset_file_missing", nodeset_id=nodeset_id)
            return ""
        return await self._storage.download(name)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def close(self) -> None:
        await self._store.close()

    async def __aenter__(self) -> NodesetCatalog:
        await self._store.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any | None,
    ) -> None:
        await self._store.close()


__all__ = ["NodesetCatalog"]
