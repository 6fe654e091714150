"""Tests for the offset pagination driver."""

import pytest

from banklink.utils.paginate import paginate


class PagedSource:
    """Serves ``total`` integers in offset pages and records requests."""

    def __init__(self, total: int):
        self.items = list(range(total))
        self.requests: list[tuple[int, int]] = []

    async def __call__(self, offset: int, count: int) -> list[int]:
        self.requests.append((offset, count))
        return self.items[offset : offset + count]


class TestPaginate:
    @pytest.mark.unit
    async def test_collects_every_page_in_order(self) -> None:
        source = PagedSource(5)
        assert await paginate(source, page_size=2, delay=0) == [0, 1, 2, 3, 4]
        assert source.requests == [(0, 2), (2, 2), (4, 2)]

    @pytest.mark.unit
    async def test_exact_multiple_needs_one_empty_page(self) -> None:
        source = PagedSource(4)
        assert await paginate(source, page_size=2, delay=0) == [0, 1, 2, 3]
        assert len(source.requests) == 3

    @pytest.mark.unit
    async def test_max_pages_caps_requests(self) -> None:
        source = PagedSource(100)
        items = await paginate(source, page_size=10, delay=0, max_pages=2)
        assert len(items) == 20
        assert len(source.requests) == 2
