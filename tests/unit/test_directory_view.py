from __future__ import annotations

from unittest.mock import AsyncMock

import anyio
import pytest

from app.models.employee import EmployeePage
from app.services.directory_view import DirectoryView


def _rows(view: DirectoryView) -> list[tuple[str, int]]:
    return [(node.id, depth) for node, depth in view.visible_rows()]


@pytest.fixture
def source(sample_records):
    store = AsyncMock()
    store.list_employees.return_value = EmployeePage(data=sample_records, total=4, total_pages=1, page=1)
    return store


@pytest.mark.anyio
async def test_refresh_builds_forest(source):
    view = DirectoryView(source, page_size=5)

    assert await view.refresh() is True

    assert [node.id for node in view.forest] == ["A"]
    assert view.total == 4
    assert view.total_pages == 1
    source.list_employees.assert_awaited_once_with(page=1, page_size=5, search=None)


@pytest.mark.anyio
async def test_collapsed_view_shows_roots_only(source):
    view = DirectoryView(source)
    await view.refresh()

    assert _rows(view) == [("A", 0)]


@pytest.mark.anyio
async def test_toggle_expands_and_collapses(source):
    view = DirectoryView(source)
    await view.refresh()

    view.toggle("A")
    assert view.is_expanded("A")
    assert _rows(view) == [("A", 0), ("B", 1), ("C", 1)]

    view.expand("B")
    assert _rows(view) == [("A", 0), ("B", 1), ("D", 2), ("C", 1)]

    view.toggle("A")
    assert _rows(view) == [("A", 0)]
    assert view.is_expanded("B")


@pytest.mark.anyio
async def test_expand_all_and_collapse_all(source):
    view = DirectoryView(source)
    await view.refresh()

    view.expand_all()
    assert view.expanded == {"A", "B"}
    assert [row[0] for row in _rows(view)] == ["A", "B", "D", "C"]

    view.collapse_all()
    assert view.expanded == set()


@pytest.mark.anyio
async def test_search_mode_lists_flat_matches(source):
    view = DirectoryView(source)
    view.set_search("vp")
    await view.refresh()

    assert view.search_mode
    assert _rows(view) == [("B", 0), ("C", 0)]
    source.list_employees.assert_awaited_once_with(page=1, page_size=100, search="vp")


@pytest.mark.anyio
async def test_search_with_no_matches_is_empty(source):
    view = DirectoryView(source)
    view.set_search("zz-no-such-substring")
    await view.refresh()

    assert view.visible_rows() == []


def test_set_search_resets_page(source):
    view = DirectoryView(source)
    view.set_page(3)

    view.set_search("bob")
    assert view.page == 1

    view.set_page(2)
    view.set_search("bob")
    assert view.page == 2


def test_set_page_clamps_to_first_page(source):
    view = DirectoryView(source)
    view.set_page(0)
    assert view.page == 1


@pytest.mark.anyio
async def test_refresh_drops_expanded_ids_that_disappeared(source, make_record):
    view = DirectoryView(source)
    await view.refresh()
    view.expand("A")
    view.expand("B")

    source.list_employees.return_value = EmployeePage(data=[make_record("A"), make_record("C", "A")], total=2)
    await view.refresh()

    assert view.expanded == {"A"}


@pytest.mark.anyio
async def test_stale_response_does_not_overwrite_newer(make_record):
    release_first = anyio.Event()
    calls = 0

    async def list_employees(page=1, page_size=100, search=None, include_inactive=False):
        nonlocal calls
        calls += 1
        if calls == 1:
            await release_first.wait()
            return EmployeePage(data=[make_record("old")], total=1)
        return EmployeePage(data=[make_record("new")], total=1)

    store = AsyncMock()
    store.list_employees.side_effect = list_employees
    view = DirectoryView(store)
    outcomes: list[bool] = []

    async def run_refresh():
        outcomes.append(await view.refresh())

    async with anyio.create_task_group() as tg:
        tg.start_soon(run_refresh)
        await anyio.wait_all_tasks_blocked()
        tg.start_soon(run_refresh)
        await anyio.wait_all_tasks_blocked()
        release_first.set()

    assert outcomes == [True, False]
    assert [node.id for node in view.forest] == ["new"]
