"""
Multi-key ordering of built aggregates.

Each aggregate kind has a table of public order keys and a fixed tie-break
sequence. [order_by][uacloudlib.catalog.ordering.order_by] sorts descending by
the requested key, then by the tie-break keys; unset values sort last.

Ordering applies to an already paginated page, never to the full candidate
set.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from uacloudlib.core.logger import Logger
from uacloudlib.models import Category, NamespaceDescriptor, Organisation


if TYPE_CHECKING:
    from collections.abc import Callable, Sequence


T = TypeVar("T")

_logger = Logger("ordering")


NAMESPACE_KEYS: dict[str, Callable[[NamespaceDescriptor], Any]] = {
    "title": lambda n: n.title,
    "version": lambda n: n.nodeset.version,
    "publicationDate": lambda n: n.nodeset.publication_date,
    "lastModified": lambda n: n.nodeset.last_modified,
    "license": lambda n: str(n.license),
    "numberOfDownloads": lambda n: n.number_of_downloads,
    "identifier": lambda n: n.nodeset.identifier,
    "contributor": lambda n: n.contributor.name,
    "category": lambda n: n.category.name,
}

CATEGORY_KEYS: dict[str, Callable[[Category], Any]] = {
    "name": lambda c: c.name,
    "description": lambda c: c.description,
    "iconUrl": lambda c: c.icon_url,
}

ORGANISATION_KEYS: dict[str, Callable[[Organisation], Any]] = {
    "name": lambda o: o.name,
    "description": lambda o: o.description,
    "contactEmail": lambda o: o.contact_email,
    "website": lambda o: o.website,
    "logoUrl": lambda o: o.logo_url,
}

# aggregate type -> (key table, tie-break keys)
_ORDERINGS: dict[type, tuple[dict[str, Callable[[Any], Any]], tuple[str, ...]]] = {
    NamespaceDescriptor: (NAMESPACE_KEYS, ("title", "identifier")),
    Category: (CATEGORY_KEYS, ("name", "description")),
    Organisation: (ORGANISATION_KEYS, ("name", "contactEmail")),
}


def _sortable(value: Any) -> tuple[bool, Any]:
    return (value is not None, value)


def order_keys(kind: type) -> tuple[str, ...]:
    """Return the public order keys accepted for an aggregate type."""
    keys, _ = _ORDERINGS[kind]
    return tuple(keys)


def order_by(items: Sequence[T], key: str | None, kind: type[T]) -> list[T]:
    """Sort a page of aggregates descending by ``key``.

    Args:
        items: The built page.
        key: Public order key name. None or blank keeps page order.
        kind: Aggregate type of ``items``; selects the key table.

    Returns:
        A new sorted list. An unknown key returns the items in page order and
        logs a warning.
    """
    if not key or not key.strip():
        return list(items)

    keys, tie_break = _ORDERINGS[kind]
    primary = keys.get(key.strip())
    if primary is None:
        _logger.warning("order_key_unknown", key=key, kind=kind.__name__)
        return list(items)

    accessors = [primary, *(keys[name] for name in tie_break if name != key.strip())]
    return sorted(
        items,
        key=lambda item: tuple(_sortable(accessor(item)) for accessor in accessors),
        reverse=True,
    )


__all__ = ["CATEGORY_KEYS", "NAMESPACE_KEYS", "ORGANISATION_KEYS", "order_by", "order_keys"]
