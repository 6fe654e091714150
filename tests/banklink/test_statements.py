"""Tests for the statement PDF cache."""

import pytest

from banklink.statements import (
    StatementPdfCache,
    statement_cache_key,
    statement_filename,
)
from banklink.storage import InMemoryObjectStore


class CountingFetch:
    def __init__(self, data: bytes = b"%PDF-1.7"):
        self.data = data
        self.calls = 0

    async def __call__(self) -> bytes:
        self.calls += 1
        return self.data


IDS = {"team_id": "t1", "user_id": "u1", "account_id": "a1", "statement_id": "s1"}


class TestStatementPdfCache:
    @pytest.mark.unit
    def test_key_and_filename(self) -> None:
        key = statement_cache_key("t1", "u1", "a1", "s1")
        assert key == "statements/t1/u1/a1/s1.pdf"
        assert statement_filename("s1") == "statement_s1.pdf"

    @pytest.mark.unit
    @pytest.mark.parametrize("statement_id", ["../../etc/passwd", "a/b", "..", "a\\b"])
    def test_ids_cannot_escape_their_segment(self, statement_id: str) -> None:
        key = statement_cache_key("t1", "u1", "a1", statement_id)
        filename = statement_filename(statement_id)

        assert key.count("/") == 4
        assert all(part not in (".", "..") for part in key.split("/"))
        assert "/" not in filename and "\\" not in filename

    @pytest.mark.unit
    def test_escaped_ids_stay_distinct(self) -> None:
        assert statement_filename("a/b") != statement_filename("a%2Fb")
        assert statement_cache_key("t1", "u1", "a/b", "s1") != statement_cache_key(
            "t1", "u1", "a", "b/s1"
        )

    @pytest.mark.unit
    async def test_miss_fetches_and_stores(self) -> None:
        store = InMemoryObjectStore()
        fetch = CountingFetch()

        pdf = await StatementPdfCache(store).get_or_fetch(fetch, **IDS)

        assert pdf.pdf == b"%PDF-1.7"
        assert pdf.filename == "statement_s1.pdf"
        assert fetch.calls == 1
        assert "statements/t1/u1/a1/s1.pdf" in store

    @pytest.mark.unit
    async def test_second_call_served_from_store(self) -> None:
        cache = StatementPdfCache(InMemoryObjectStore())
        fetch = CountingFetch()

        first = await cache.get_or_fetch(fetch, **IDS)
        second = await cache.get_or_fetch(fetch, **IDS)

        assert first == second
        assert fetch.calls == 1

    @pytest.mark.unit
    async def test_keys_are_scoped_per_user(self) -> None:
        cache = StatementPdfCache(InMemoryObjectStore())
        fetch = CountingFetch()

        await cache.get_or_fetch(fetch, **IDS)
        await cache.get_or_fetch(fetch, **{**IDS, "user_id": "u2"})

        assert fetch.calls == 2
