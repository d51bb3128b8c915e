"""Tests for logexplorer/pagination.py"""

import asyncio

import pytest

from logexplorer.errors import MalformedQuery, TransportError
from logexplorer.pagination import PageQuery, PaginationManager
from logexplorer.query_mode import CustomQuery, SearchBar
from logexplorer.time_range import ResolvedRange

from tests.fakes import NOW, SECOND, FakeLogApi, log_row

RANGE = ResolvedRange(start=NOW - 3600 * SECOND, end=NOW)


def _rows(*seconds_ago):
    return [log_row(f"event -{s}s", timestamp=NOW - s * SECOND) for s in seconds_ago]


@pytest.fixture
def api():
    return FakeLogApi()


@pytest.fixture
def pager(api):
    return PaginationManager(api.fetch_rows)


def _assert_pages_ordered(result_set):
    """Newest-first inside pages, no overlap between consecutive pages."""
    stamps = [e.timestamp for e in result_set]
    assert stamps == sorted(stamps, reverse=True)
    non_empty = [p for p in result_set.pages if not p.is_empty]
    for newer, older in zip(non_empty, non_empty[1:]):
        assert older.max_timestamp < newer.min_timestamp


@pytest.mark.asyncio
async def test_reset_loads_first_page_newest_first(pager, api):
    api.rows_once(_rows(30, 10, 20))
    assert await pager.reset(PageQuery(SearchBar(""), RANGE)) is True

    assert [e.event_message for e in pager.result_set] == ["event -10s", "event -20s", "event -30s"]
    assert pager.next_cursor == NOW - 30 * SECOND
    assert pager.epoch == 1


@pytest.mark.asyncio
async def test_empty_first_page_keeps_range_end_as_cursor(pager, api):
    await pager.reset(PageQuery(SearchBar(""), RANGE))
    assert pager.next_cursor == NOW
    assert len(pager.result_set) == 0


@pytest.mark.asyncio
async def test_load_older_appends_pages_without_overlap(pager, api):
    api.rows_once(_rows(10, 20))
    await pager.reset(PageQuery(SearchBar(""), RANGE))
    api.rows_once(_rows(20, 30, 40))  # boundary row repeated by the backend
    api.rows_once(_rows(50))

    await pager.load_older()
    await pager.load_older()

    assert [p["timestamp_end"] for p in api.row_calls[1:]] == [
        str(NOW - 20 * SECOND),
        str(NOW - 40 * SECOND),
    ]
    assert len(pager.result_set.pages) == 3
    assert len(pager.result_set) == 5
    _assert_pages_ordered(pager.result_set)


@pytest.mark.asyncio
async def test_load_older_on_exhausted_range_is_idempotent(pager, api):
    api.rows_once(_rows(10))
    await pager.reset(PageQuery(SearchBar(""), RANGE))

    for _ in range(3):
        assert await pager.load_older() is True

    assert len(pager.result_set) == 1
    assert pager.next_cursor == NOW - 10 * SECOND
    assert len({p["timestamp_end"] for p in api.row_calls[1:]}) == 1


@pytest.mark.asyncio
async def test_custom_query_has_no_older_pages(pager, api):
    api.rows_once([{"my_count": 1}])
    await pager.reset(PageQuery(CustomQuery("select count(*) as my_count"), RANGE))

    assert not pager.result_set.chronological
    assert pager.next_cursor is None
    assert await pager.load_older() is False
    assert len(api.row_calls) == 1


@pytest.mark.asyncio
async def test_malformed_query_sends_nothing_but_starts_epoch(pager, api):
    with pytest.raises(MalformedQuery):
        await pager.reset(PageQuery(CustomQuery(""), RANGE))
    assert pager.epoch == 1
    assert not pager.is_resetting
    assert api.row_calls == []


@pytest.mark.asyncio
async def test_malformed_query_drops_in_flight_first_page(pager, api):
    held = asyncio.get_running_loop().create_future()
    api.rows_once(held)
    first = asyncio.create_task(pager.reset(PageQuery(SearchBar("slow"), RANGE)))
    await asyncio.sleep(0)

    with pytest.raises(MalformedQuery):
        await pager.reset(PageQuery(CustomQuery("  "), RANGE))
    held.set_result(_rows(5))

    assert await first is False
    assert pager.query is None
    assert len(pager.result_set) == 0


@pytest.mark.asyncio
async def test_failed_reset_keeps_previous_pages(pager, api):
    api.rows_once(_rows(10))
    await pager.reset(PageQuery(SearchBar(""), RANGE))
    api.rows_once(TransportError("boom"))

    with pytest.raises(TransportError):
        await pager.reset(PageQuery(SearchBar("x"), RANGE))

    assert len(pager.result_set) == 1
    assert not pager.is_resetting
    assert pager.query.mode == SearchBar("")


@pytest.mark.asyncio
async def test_stale_first_page_is_dropped(pager, api):
    held = asyncio.get_running_loop().create_future()
    api.rows_once(held)
    api.rows_once(_rows(5))

    first = asyncio.create_task(pager.reset(PageQuery(SearchBar("old"), RANGE)))
    await asyncio.sleep(0)
    assert pager.is_resetting
    assert await pager.reset(PageQuery(SearchBar("new"), RANGE)) is True
    held.set_result(_rows(1, 2, 3))

    assert await first is False
    assert [e.event_message for e in pager.result_set] == ["event -5s"]


@pytest.mark.asyncio
async def test_stale_failure_is_dropped_silently(pager, api):
    held = asyncio.get_running_loop().create_future()
    api.rows_once(held)
    first = asyncio.create_task(pager.reset(PageQuery(SearchBar("old"), RANGE)))
    await asyncio.sleep(0)
    await pager.reset(PageQuery(SearchBar("new"), RANGE))
    held.set_result(TransportError("late failure"))

    assert await first is False


@pytest.mark.asyncio
async def test_concurrent_load_older_is_not_duplicated(pager, api):
    api.rows_once(_rows(10))
    await pager.reset(PageQuery(SearchBar(""), RANGE))
    held = asyncio.get_running_loop().create_future()
    api.rows_once(held)

    older = asyncio.create_task(pager.load_older())
    await asyncio.sleep(0)
    assert pager.is_loading_older
    assert await pager.load_older() is False
    held.set_result(_rows(20))

    assert await older is True
    assert len(pager.result_set.pages) == 2
    assert not pager.is_loading_older
