from __future__ import annotations

from conftest import FakeClock, ManualExecutor
from pharmacy_admin_sdk.list_cache import RemoteListCache
from pharmacy_admin_sdk.pagination import ListQuery, build_query

ORDERS = build_query(("admin", "orders"), {})
ORDERS_PAGE_2 = build_query(("admin", "orders"), {}, page=2)
PRODUCTS = build_query(("admin", "inventory", "products"), {})


class CountingFetcher:
    def __init__(self, *results: object) -> None:
        self.results = list(results)
        self.calls: list[ListQuery] = []

    def __call__(self, query: ListQuery) -> object:
        self.calls.append(query)
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


def test_fresh_entry_is_served_from_cache() -> None:
    clock = FakeClock()
    cache = RemoteListCache(stale_after_seconds=30, clock=clock)
    fetcher = CountingFetcher(["a"])
    first = cache.get(ORDERS, fetcher)
    clock.advance(10)
    second = cache.get(ORDERS, fetcher)
    assert first.data == ["a"]
    assert second.data == ["a"]
    assert second.is_stale is False
    assert len(fetcher.calls) == 1


def test_stale_entry_refetches_inline() -> None:
    clock = FakeClock()
    cache = RemoteListCache(stale_after_seconds=30, clock=clock)
    fetcher = CountingFetcher(["a"], ["b"])
    cache.get(ORDERS, fetcher)
    clock.advance(31)
    state = cache.get(ORDERS, fetcher)
    assert state.data == ["b"]
    assert len(fetcher.calls) == 2


def test_background_refresh_returns_previous_data_while_loading() -> None:
    clock = FakeClock()
    executor = ManualExecutor()
    cache = RemoteListCache(stale_after_seconds=30, executor=executor, clock=clock)
    cache.set_data(ORDERS, ["old"])
    clock.advance(60)
    fetcher = CountingFetcher(["new"])

    state = cache.get(ORDERS, fetcher)
    assert state.data == ["old"]
    assert state.is_loading is True
    assert state.is_stale is True

    again = cache.get(ORDERS, fetcher)
    assert again.is_loading is True
    assert len(executor.pending) == 1

    executor.run_all()
    done = cache.peek(ORDERS)
    assert done is not None
    assert done.data == ["new"]
    assert done.is_loading is False
    assert done.is_stale is False


def test_superseded_fetch_does_not_overwrite_newer_data() -> None:
    executor = ManualExecutor()
    cache = RemoteListCache(executor=executor, clock=FakeClock())
    cache.get(ORDERS, CountingFetcher(["from server"]))
    cache.set_data(ORDERS, ["optimistic"])
    executor.run_all()
    assert cache.get_data(ORDERS) == ["optimistic"]


def test_fetch_error_keeps_previous_data() -> None:
    clock = FakeClock()
    cache = RemoteListCache(stale_after_seconds=30, clock=clock)
    cache.set_data(ORDERS, ["kept"])
    cache.invalidate(("admin",))
    boom = RuntimeError("boom")
    state = cache.get(ORDERS, CountingFetcher(boom))
    assert state.data == ["kept"]
    assert state.error is boom
    assert state.is_loading is False


def test_invalidate_prefix_marks_only_matching_entries() -> None:
    clock = FakeClock()
    cache = RemoteListCache(stale_after_seconds=30, clock=clock)
    cache.set_data(ORDERS, ["o"])
    cache.set_data(ORDERS_PAGE_2, ["o2"])
    cache.set_data(PRODUCTS, ["p"])

    invalidated = cache.invalidate(("admin", "orders"))

    assert set(invalidated) == {ORDERS, ORDERS_PAGE_2}
    assert cache.peek(ORDERS).is_stale is True
    assert cache.peek(ORDERS).data == ["o"]
    assert cache.peek(PRODUCTS).is_stale is False


def test_invalidated_entry_refetches_on_next_get() -> None:
    cache = RemoteListCache(clock=FakeClock())
    fetcher = CountingFetcher(["a"], ["b"])
    cache.get(ORDERS, fetcher)
    cache.invalidate(ORDERS)
    assert cache.get(ORDERS, fetcher).data == ["b"]


def test_entries_remove_and_clear() -> None:
    cache = RemoteListCache(clock=FakeClock())
    cache.set_data(ORDERS, [])
    cache.set_data(PRODUCTS, [])
    assert cache.entries(("admin",)) == [ORDERS, PRODUCTS]
    cache.remove(("admin", "orders"))
    assert cache.peek(ORDERS) is None
    cache.clear()
    assert cache.entries("admin") == []
