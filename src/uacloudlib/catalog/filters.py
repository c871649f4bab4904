"""
Filter evaluator: resolves a ``where`` expression to candidate nodeset ids.

The serialized form is a JSON array of single-entry objects::

    [{"license": {"equals": "MIT"}}, {"nodesettitle": {"like": "robot"}}]

Each entry is a [Clause][uacloudlib.catalog.filters.Clause]. Clauses combine
with OR: the ids matched by every clause are unioned and deduplicated in
first-seen order.

[parse_where][uacloudlib.catalog.filters.parse_where] is strict and raises
[FilterExpressionError][uacloudlib.core.exceptions.FilterExpressionError];
[FilterEvaluator.resolve][uacloudlib.catalog.filters.FilterEvaluator.resolve]
never raises and degrades to an empty id list.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from uacloudlib.core.exceptions import DatabaseError, FilterExpressionError
from uacloudlib.core.logger import Logger
from uacloudlib.models import AttributeName, Comparator

from .queries import fetch_all_nodeset_ids, fetch_ids_for_clause


if TYPE_CHECKING:
    from uacloudlib.core.store import AttributeStore


# Public query field names mapped onto stored attribute names.
FIELD_ALIASES: dict[str, str] = {
    "publicationDate": AttributeName.NODESET_CREATION_TIME.value,
    "lastModified": AttributeName.NODESET_MODIFIED_TIME.value,
}


@dataclass(frozen=True, slots=True)
class Clause:
    """One ``{field: {comparator: value}}`` filter term.

    Attributes:
        field: Stored attribute name, after alias resolution.
        comparator: How the attribute value is matched.
        value: Scalar compared against the attribute value as text.
    """

    field: str
    comparator: Comparator
    value: str | int | float


def _parse_clause(index: int, entry: Any) -> Clause:
    if not isinstance(entry, dict) or len(entry) != 1:
        raise FilterExpressionError(f"clause {index} must be an object with exactly one field")
    ((field, condition),) = entry.items()
    if not isinstance(field, str) or not field:
        raise FilterExpressionError(f"clause {index} has an empty field name")
    if not isinstance(condition, dict) or len(condition) != 1:
        raise FilterExpressionError(
            f"clause {index} condition must be an object with exactly one comparator"
        )
    ((comparator, value),) = condition.items()
    try:
        parsed_comparator = Comparator(comparator)
    except ValueError:
        raise FilterExpressionError(
            f"clause {index} has unknown comparator {comparator!r}"
        ) from None
    if isinstance(value, bool) or not isinstance(value, str | int | float):
        raise FilterExpressionError(f"clause {index} value must be a string or number")
    return Clause(FIELD_ALIASES.get(field, field), parsed_comparator, value)


def parse_where(text: str) -> tuple[Clause, ...]:
    """Parse a serialized ``where`` expression.

    Args:
        text: JSON array of ``{field: {comparator: value}}`` objects.

    Returns:
        The clauses in expression order, aliases resolved.

    Raises:
        FilterExpressionError: If the text is not valid JSON, not a non-empty
            array, or any clause is malformed or uses an unknown comparator.
    """
    # ValueError also covers integer literals past the digit limit.
    try:
        data = json.loads(text)
    except (ValueError, TypeError, RecursionError) as e:
        raise FilterExpressionError(f"where expression is not valid JSON: {e}") from e
    if not isinstance(data, list) or not data:
        raise FilterExpressionError("where expression must be a non-empty JSON array")
    return tuple(_parse_clause(i, entry) for i, entry in enumerate(data))


class FilterEvaluator:
    """Resolves ``where`` expressions against the attribute store.

    Examples:
        ```python
        evaluator = FilterEvaluator(store)
        ids = await evaluator.resolve('[{"license": {"equals": "MIT"}}]')
        ```
    """

    def __init__(self, store: AttributeStore) -> None:
        self._store = store
        self._logger = Logger("filters")

    async def resolve(self, where: str | None) -> list[int]:
        """Return the candidate ids selected by ``where``.

        An absent or blank expression selects every distinct id in the
        attribute table. A malformed expression or a store failure selects
        nothing.
        """
        try:
            if where is None or not where.strip():
                return await fetch_all_nodeset_ids(self._store)
            clauses = parse_where(where)
            return await self._union(clauses)
        except FilterExpressionError as e:
            self._logger.warning("where_malformed", where=where, error=str(e))
            return []
        except DatabaseError as e:
            self._logger.error("where_evaluation_failed", where=where, error=str(e))
            return []

    async def _union(self, clauses: tuple[Clause, ...]) -> list[int]:
        seen: dict[int, None] = {}
        for clause in clauses:
            for nodeset_id in await fetch_ids_for_clause(self._store, clause):
                seen.setdefault(nodeset_id, None)
        return list(seen)


__all__ = ["FIELD_ALIASES", "Clause", "FilterEvaluator", "parse_where"]
