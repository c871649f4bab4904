"""Unit tests for catalog.paging (page_window, collect)."""

import asyncio

import pytest

from uacloudlib.catalog.paging import Skip, collect, page_window


class TestPageWindow:
    """Offset/limit validation against the candidate count."""

    @pytest.mark.parametrize(
        ("count", "offset", "limit", "expected"),
        [
            (10, 0, 3, range(0, 3)),
            (10, 8, 5, range(8, 10)),
            (10, 0, 0, range(0, 0)),
            (10, 10, 5, range(10, 10)),
            (0, 0, 100, range(0, 0)),
        ],
    )
    def test_windows(self, count, offset, limit, expected):
        assert page_window(count, offset, limit) == expected

    @pytest.mark.parametrize(
        ("count", "offset", "limit"), [(10, 11, 1), (10, -1, 5), (10, 0, -1), (0, 1, 1)]
    )
    def test_empty_result(self, count, offset, limit):
        assert page_window(count, offset, limit) is None


class TestCollect:
    """Bounded concurrent construction."""

    async def test_keeps_input_order(self):
        async def build(nodeset_id):
            await asyncio.sleep(0.001 * (5 - nodeset_id))
            return nodeset_id * 10

        assert await collect([1, 2, 3, 4], build, concurrency=4) == [10, 20, 30, 40]

    async def test_drops_skips(self):
        async def build(nodeset_id):
            return Skip(nodeset_id, "gone") if nodeset_id % 2 else nodeset_id

        assert await collect([1, 2, 3, 4], build, concurrency=2) == [2, 4]

    async def test_unexpected_exception_is_dropped(self):
        async def build(nodeset_id):
            if nodeset_id == 2:
                raise RuntimeError("boom")
            return nodeset_id

        assert await collect([1, 2, 3], build, concurrency=1) == [1, 3]

    async def test_concurrency_bound(self):
        running = 0
        peak = 0

        async def build(nodeset_id):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.001)
            running -= 1
            return nodeset_id

        await collect(list(range(20)), build, concurrency=3)
        assert peak == 3

    async def test_empty(self):
        async def build(nodeset_id):
            raise AssertionError("not called")

        assert await collect([], build, concurrency=4) == []
