"""
Keyword search across the attribute and type-kind tables.

Every keyword is matched against the value column of ``metadata`` and then
of each type-kind table in [TypeKind][uacloudlib.models.constants.TypeKind]
order. Matching ids are unioned in first-seen order and enriched with the
display facts of a [NodesetSearchResult][uacloudlib.models.nodeset.NodesetSearchResult].

A failing scan (store down, invalid regular expression) contributes no ids;
a failing enrichment step leaves only that field at its default.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from uacloudlib.core.exceptions import DatabaseError
from uacloudlib.core.logger import Logger
from uacloudlib.models import METADATA_TABLE, AttributeName, NodesetSearchResult, TypeKind

from .paging import collect
from .parsing import optional_datetime
from .queries import fetch_ids_in_table


if TYPE_CHECKING:
    from collections.abc import Sequence

    from uacloudlib.core.store import AttributeStore


SEARCH_TABLES: tuple[str, ...] = (METADATA_TABLE, *(kind.table for kind in TypeKind))


class KeywordSearch:
    """Finds nodesets whose stored values match any of a list of keywords."""

    def __init__(self, store: AttributeStore, *, concurrency: int = 8) -> None:
        self._store = store
        self._concurrency = concurrency
        self._logger = Logger("search")

    async def find(self, keywords: Sequence[str]) -> list[NodesetSearchResult]:
        """Search all tables for ``keywords`` and return enriched hits.

        ``"*"`` matches every id of a table. An empty keyword list returns an
        empty result.
        """
        if not keywords:
            return []
        ids = await self.matching_ids(keywords)
        self._logger.debug("search_matched", keywords=",".join(keywords), matches=len(ids))
        return await collect(ids, self._enrich, self._concurrency)

    async def matching_ids(self, keywords: Sequence[str]) -> list[int]:
        """Return the deduplicated ids matched by any keyword in any table."""
        seen: dict[int, None] = {}
        for table in SEARCH_TABLES:
            for keyword in keywords:
                try:
                    ids = await fetch_ids_in_table(self._store, table, keyword)
                except DatabaseError as e:
                    self._logger.warning(
                        "search_scan_failed", table=table, keyword=keyword, error=str(e)
                    )
                    continue
                for nodeset_id in ids:
                    seen.setdefault(nodeset_id, None)
        return list(seen)

    async def _enrich(self, nodeset_id: int) -> NodesetSearchResult:
        published = optional_datetime(
            await self._store.get(nodeset_id, AttributeName.NODESET_CREATION_TIME)
        )
        try:
            namespace_uri = await self._store.fetch_namespace_uri(nodeset_id)
        except DatabaseError as e:
            self._logger.warning("namespace_fetch_failed", nodeset_id=nodeset_id, error=str(e))
            namespace_uri = None

        return NodesetSearchResult(
            identifier=nodeset_id,
            title=await self._store.get(nodeset_id, AttributeName.NODESET_TITLE),
            contributor=await self._store.get(nodeset_id, AttributeName.ORG_NAME),
            license=await self._store.get(nodeset_id, AttributeName.LICENSE),
            version=await self._store.get(nodeset_id, AttributeName.VERSION),
            publication_date=published,
            namespace_uri=namespace_uri,
        )


__all__ = ["SEARCH_TABLES", "KeywordSearch"]
