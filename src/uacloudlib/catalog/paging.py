"""
Pagination window and bounded concurrent aggregate construction.

[page_window][uacloudlib.catalog.paging.page_window] validates an
``offset``/``limit`` pair against the candidate count;
[collect][uacloudlib.catalog.paging.collect] builds one aggregate per id with
at most ``concurrency`` builds in flight, keeps input order, and drops every
id whose build produced a [Skip][uacloudlib.catalog.paging.Skip].
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from uacloudlib.core.logger import Logger


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence


T = TypeVar("T")

_logger = Logger("paging")


@dataclass(frozen=True, slots=True)
class Skip:
    """A nodeset left out of a result, with the reason it was dropped."""

    nodeset_id: int
    reason: str


def page_window(count: int, offset: int, limit: int) -> range | None:
    """Return the index range of the requested page, or None for an empty result.

    Negative bounds and ``offset > count`` yield None. A window overrunning
    the end is clamped to ``count``.

    Examples:
        ```python
        page_window(10, 0, 0)   # range(0, 0)
        page_window(10, 8, 5)   # range(8, 10)
        page_window(10, 11, 1)  # None
        ```
    """
    if offset < 0 or limit < 0 or offset > count:
        return None
    if offset + limit > count:
        limit = count - offset
    return range(offset, offset + limit)


async def collect(
    ids: Sequence[int],
    build: Callable[[int], Awaitable[T | Skip]],
    concurrency: int,
) -> list[T]:
    """Build an aggregate for every id, keeping input order and dropping skips.

    Args:
        ids: Nodeset ids, in result order.
        build: Coroutine function returning the aggregate or a ``Skip``.
        concurrency: Maximum number of builds running at once (>= 1).

    Returns:
        The successfully built aggregates, in the order of ``ids``.
    """
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def _guarded(nodeset_id: int) -> T | Skip:
        async with semaphore:
            try:
                return await build(nodeset_id)
            except Exception as e:  # per-record error boundary
                return Skip(nodeset_id, f"{type(e).__name__}: {e}")

    outcomes = await asyncio.gather(*(_guarded(nodeset_id) for nodeset_id in ids))

    results: list[T] = []
    for outcome in outcomes:
        if isinstance(outcome, Skip):
            _logger.warning(
                "aggregate_skipped", nodeset_id=outcome.nodeset_id, reason=outcome.reason
            )
            continue
        results.append(outcome)
    return results


__all__ = ["Skip", "collect", "page_window"]
