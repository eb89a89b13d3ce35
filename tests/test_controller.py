"""Tests for the pagination/filter controller."""
import asyncio
import pytest
from distro_portal.exceptions import PortalHTTPError, ResponseShapeError
from distro_portal.paging.controller import PaginationController


class FakeBackend:
    """Records every fetch and answers with a slice of a fixed collection."""

    def __init__(self, rows: list, alias: str = "products"):
        self.rows = rows
        self.alias = alias
        self.calls: list[dict] = []

    async def __call__(self, params: dict) -> dict:
        self.calls.append(dict(params))
        page, limit = params["page"], params["limit"]
        chunk = self.rows[(page - 1) * limit:page * limit]
        pages = max(1, -(-len(self.rows) // limit))
        return {
            "data": {
                self.alias: chunk,
                "pagination": {"current": page, "pages": pages, "total": len(self.rows)},
            }
        }


def make_rows(count: int) -> list[dict]:
    return [{"_id": f"p{i}", "name": f"Product {i}"} for i in range(1, count + 1)]


def test_load_fetches_first_page():
    """Test initial load populates items and totals."""
    backend = FakeBackend(make_rows(47))
    controller = PaginationController(backend, {"category": ""}, page_size=10)

    state = asyncio.run(controller.load())

    assert backend.calls == [{"page": 1, "limit": 10, "category": ""}]
    assert len(state.items) == 10
    assert state.total_items == 47
    assert state.total_pages == 5
    assert state.loading is False
    assert state.error is None


def test_set_page_fetches_requested_page():
    """Test page change triggers a fetch for that page."""
    backend = FakeBackend(make_rows(47))
    controller = PaginationController(backend)

    async def scenario():
        await controller.load()
        return await controller.set_page(5)

    state = asyncio.run(scenario())

    assert backend.calls[-1]["page"] == 5
    assert state.current_page == 5
    assert [row["_id"] for row in state.items] == ["p41", "p42", "p43", "p44", "p45", "p46", "p47"]


def test_set_page_same_page_is_noop():
    """Test selecting the current page does not re-fetch."""
    backend = FakeBackend(make_rows(5))
    controller = PaginationController(backend)

    async def scenario():
        await controller.load()
        await controller.set_page(1)

    asyncio.run(scenario())
    assert len(backend.calls) == 1


def test_set_page_beyond_range_is_clamped_after_fetch():
    """Test out-of-range page is clamped using server totals."""
    async def fetch(params):
        return {"orders": [], "pagination": {"pages": 3, "total": 25}}

    controller = PaginationController(fetch)
    state = asyncio.run(controller.set_page(9))

    assert state.current_page == 3
    assert state.total_pages == 3


def test_set_page_size_resets_to_first_page():
    """Test page size change resets page and uses the new limit."""
    backend = FakeBackend(make_rows(120))
    controller = PaginationController(backend)

    async def scenario():
        await controller.load()
        await controller.set_page(4)
        return await controller.set_page_size(50)

    state = asyncio.run(scenario())

    assert state.current_page == 1
    assert state.page_size == 50
    assert backend.calls[-1]["limit"] == 50
    assert backend.calls[-1]["page"] == 1
    assert len(state.items) == 50
    assert state.total_pages == 3


def test_set_page_size_rejects_zero():
    """Test page size must be positive."""
    controller = PaginationController(FakeBackend([]))
    with pytest.raises(ValueError):
        asyncio.run(controller.set_page_size(0))


def test_set_filter_merges_and_resets_page():
    """Test filter merge, page reset and parameter passing."""
    backend = FakeBackend(make_rows(47), alias="recoveries")
    controller = PaginationController(backend, {"status": "", "recoveryType": ""})

    async def scenario():
        await controller.load()
        await controller.set_page(3)
        return await controller.set_filter("status", "pending")

    state = asyncio.run(scenario())

    assert state.current_page == 1
    assert state.filters == {"status": "pending", "recoveryType": ""}
    assert backend.calls[-1] == {"page": 1, "limit": 10, "status": "pending", "recoveryType": ""}


def test_set_filters_replaces_and_clear_restores_initial():
    """Test wholesale replace and reset to the initial filters."""
    backend = FakeBackend(make_rows(3), alias="users")
    initial = {"role": "salesman"}
    controller = PaginationController(backend, initial)

    async def scenario():
        await controller.set_filters({"search": "ali"})
        replaced = dict(controller.state.filters)
        await controller.clear_filters()
        return replaced

    replaced = asyncio.run(scenario())

    assert replaced == {"search": "ali"}
    assert controller.state.filters == {"role": "salesman"}
    assert backend.calls[-1] == {"page": 1, "limit": 10, "role": "salesman"}
    # initial filters are not mutated by later set_filter calls
    asyncio.run(controller.set_filter("role", "shopkeeper"))
    assert initial == {"role": "salesman"}
    assert controller.initial_filters == {"role": "salesman"}


def test_refresh_keeps_page_and_filters():
    """Test refresh re-fetches with the same parameters."""
    backend = FakeBackend(make_rows(30), alias="categories")
    controller = PaginationController(backend, {"active": "true"})

    async def scenario():
        await controller.set_page(2)
        await controller.refresh()

    asyncio.run(scenario())
    assert backend.calls[-1] == backend.calls[-2] == {"page": 2, "limit": 10, "active": "true"}


def test_fetch_failure_clears_items_and_records_error():
    """Test failure clears the collection and surfaces the error."""
    backend = FakeBackend(make_rows(12))
    controller = PaginationController(backend)
    asyncio.run(controller.load())
    assert controller.state.items

    async def failing(params):
        raise PortalHTTPError(500, "http://backend/api/products", "Server error")

    controller.fetch = failing
    state = asyncio.run(controller.refresh())

    assert state.items == []
    assert isinstance(state.error, PortalHTTPError)
    assert state.loading is False


def test_error_cleared_on_next_success():
    """Test a later successful fetch clears the previous error."""
    calls = {"n": 0}

    async def flaky(params):
        calls["n"] += 1
        if calls["n"] == 1:
            raise ConnectionError("network down")
        return [{"_id": "a"}]

    controller = PaginationController(flaky)
    asyncio.run(controller.load())
    assert isinstance(controller.state.error, ConnectionError)

    state = asyncio.run(controller.refresh())
    assert state.error is None
    assert state.items == [{"_id": "a"}]
    assert calls["n"] == 2


def test_unknown_shape_records_diagnostic():
    """Test unrecognized response yields empty items and a diagnostic."""
    async def fetch(params):
        return {"message": "nothing here"}

    controller = PaginationController(fetch)
    state = asyncio.run(controller.load())

    assert state.items == []
    assert state.error is None
    assert state.diagnostic is not None


def test_unknown_shape_strict_sets_error():
    """Test strict mode surfaces a shape mismatch as an error."""
    async def fetch(params):
        return {"message": "nothing here"}

    controller = PaginationController(fetch, strict=True)
    state = asyncio.run(controller.load())

    assert isinstance(state.error, ResponseShapeError)
    assert state.items == []


def test_oversized_response_truncated_to_page_size():
    """Test items never exceed the page size."""
    async def fetch(params):
        return [{"n": i} for i in range(25)]

    controller = PaginationController(fetch, page_size=10)
    state = asyncio.run(controller.load())

    assert len(state.items) == 10
    assert state.total_items == 25


def test_loading_true_while_in_flight():
    """Test loading flag is observable during the fetch."""
    seen = {}

    async def scenario():
        release = asyncio.Event()

        async def fetch(params):
            await release.wait()
            return []

        controller = PaginationController(fetch)
        task = asyncio.create_task(controller.load())
        await asyncio.sleep(0)
        seen["during"] = controller.state.loading
        release.set()
        await task
        seen["after"] = controller.state.loading

    asyncio.run(scenario())
    assert seen == {"during": True, "after": False}


def _racing_fetch(gates: dict):
    async def fetch(params):
        await gates[params["search"]].wait()
        return {"products": [{"search": params["search"]}]}
    return fetch


def test_last_resolved_response_wins():
    """Test overlapping fetches: the response landing last determines items."""
    async def scenario():
        gates = {"a": asyncio.Event(), "ab": asyncio.Event()}
        controller = PaginationController(_racing_fetch(gates))

        first = asyncio.create_task(controller.set_filter("search", "a"))
        await asyncio.sleep(0)
        second = asyncio.create_task(controller.set_filter("search", "ab"))
        await asyncio.sleep(0)

        # newer request resolves first, older one lands last
        gates["ab"].set()
        await second
        gates["a"].set()
        await first
        return controller.state

    state = asyncio.run(scenario())
    assert state.items == [{"search": "a"}]
    assert state.filters == {"search": "ab"}


def test_discard_stale_keeps_latest_request():
    """Test sequence numbers drop responses from superseded requests."""
    async def scenario():
        gates = {"a": asyncio.Event(), "ab": asyncio.Event()}
        controller = PaginationController(_racing_fetch(gates), discard_stale=True)

        first = asyncio.create_task(controller.set_filter("search", "a"))
        await asyncio.sleep(0)
        second = asyncio.create_task(controller.set_filter("search", "ab"))
        await asyncio.sleep(0)

        gates["ab"].set()
        await second
        gates["a"].set()
        await first
        return controller.state

    state = asyncio.run(scenario())
    assert state.items == [{"search": "ab"}]
    assert state.loading is False


def test_constructor_rejects_bad_page_size():
    """Test page size validation at construction."""
    with pytest.raises(ValueError):
        PaginationController(FakeBackend([]), page_size=-1)
