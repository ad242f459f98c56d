from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

import pytest

from widetable_py import INF_MAX, INF_MIN, Table, ValidationError
from widetable_py.table import SKIP_SCAN_END_COLUMN, SKIP_SCAN_START_COLUMN
from widetable_py.testkit import FakeTablestoreClient, InMemoryTablestoreClient, range_response

KEYS = [{"name": "uid", "type": "INTEGER"}, {"name": "ts", "type": "INTEGER"}]
KEY_NAMES = ["uid", "ts"]
OPEN_START = [{"uid": INF_MIN}, {"ts": INF_MIN}]
OPEN_END = [{"uid": INF_MAX}, {"ts": INF_MAX}]


def _rows(start: int, stop: int) -> list[dict[str, Any]]:
    return [{"uid": 1, "ts": ts, "v": f"r{ts}"} for ts in range(start, stop)]


def test_first_page_is_a_single_scan() -> None:
    def check(params: Mapping[str, Any]) -> None:
        assert params["inclusiveStartPrimaryKey"] == OPEN_START
        assert params["exclusiveEndPrimaryKey"] == OPEN_END
        assert params["limit"] == 10
        assert "startColumn" not in params

    client = FakeTablestoreClient()
    client.expect(
        "get_range", check, response=range_response(_rows(0, 10), KEY_NAMES, next_key={"uid": 1, "ts": 10})
    )
    table = Table("events", client=client, primary_keys=KEYS)

    assert asyncio.run(table.select()) == _rows(0, 10)
    assert len(client.calls) == 1


def test_later_pages_skip_with_a_key_only_scan() -> None:
    def skip(params: Mapping[str, Any]) -> None:
        assert params["inclusiveStartPrimaryKey"] == OPEN_START
        assert params["limit"] == 20
        assert params["startColumn"] == SKIP_SCAN_START_COLUMN == "_"
        assert params["endColumn"] == SKIP_SCAN_END_COLUMN == "__"

    def fetch(params: Mapping[str, Any]) -> None:
        assert params["inclusiveStartPrimaryKey"] == [{"uid": 1}, {"ts": 20}]
        assert params["exclusiveEndPrimaryKey"] == OPEN_END
        assert params["limit"] == 10
        assert params["startColumn"] == "v"

    client = FakeTablestoreClient()
    client.expect("get_range", skip, response=range_response([], KEY_NAMES, next_key={"uid": 1, "ts": 20}))
    client.expect("get_range", fetch, response=range_response(_rows(20, 25), KEY_NAMES))
    table = Table("events", client=client, primary_keys=KEYS)

    assert asyncio.run(table.select(limit=10, page=3, start_column="v")) == _rows(20, 25)
    client.assert_no_pending()


def test_page_past_the_end_returns_empty_after_one_scan() -> None:
    client = FakeTablestoreClient()
    client.expect("get_range", response=range_response([], KEY_NAMES))
    table = Table("events", client=client, primary_keys=KEYS)

    assert asyncio.run(table.select(limit=10, page=3)) == []
    assert len(client.calls) == 1


def test_where_prefix_sets_the_scan_start() -> None:
    client = FakeTablestoreClient()
    client.expect(
        "get_range",
        {
            "inclusiveStartPrimaryKey": [{"uid": 5}, {"ts": INF_MIN}],
            "exclusiveEndPrimaryKey": OPEN_END,
            "limit": 3,
        },
        response={"rows": []},
    )
    table = Table("events", client=client, primary_keys=KEYS)

    assert asyncio.run(table.select({"uid": "5"}, limit=3, page=0)) == []
    client.assert_no_pending()


@pytest.mark.parametrize(("kwargs", "match"), [({"limit": 0}, "limit"), ({"page": "2"}, "page")])
def test_select_rejects_bad_arguments(kwargs: dict[str, Any], match: str) -> None:
    client = FakeTablestoreClient()
    table = Table("events", client=client, primary_keys=KEYS)
    with pytest.raises(ValidationError, match=match):
        asyncio.run(table.select(**kwargs))
    assert client.calls == []


def test_select_pages_through_the_in_memory_backend() -> None:
    client = InMemoryTablestoreClient({"events": KEYS})
    table = Table("events", client=client)

    async def scenario() -> None:
        await table.batch_put(_rows(0, 25))

        assert await table.select(limit=10) == _rows(0, 10)
        assert await table.select(limit=10, page=2) == _rows(10, 20)
        assert await table.select(limit=10, page=3) == _rows(20, 25)
        assert await table.select(limit=10, page=4) == []
        assert await table.select({"uid": 1, "ts": 22}, limit=10) == _rows(22, 25)

    asyncio.run(scenario())


def test_select_on_exact_multiple_of_the_page_size() -> None:
    client = InMemoryTablestoreClient({"events": KEYS})
    table = Table("events", client=client)

    async def scenario() -> None:
        await table.batch_put(_rows(0, 20))
        assert await table.select(limit=10, page=2) == _rows(10, 20)
        assert await table.select(limit=10, page=3) == []

    asyncio.run(scenario())
