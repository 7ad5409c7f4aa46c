from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Any, Callable

from .pagination import ListQuery

logger = logging.getLogger(__name__)

Fetcher = Callable[[ListQuery], Any]
QueryPrefix = ListQuery | tuple[str, ...] | str


@dataclass(frozen=True)
class CacheState:
    data: Any
    is_loading: bool
    error: Exception | None
    is_stale: bool
    updated_at: float | None


@dataclass
class _Entry:
    query: ListQuery
    data: Any = None
    has_data: bool = False
    updated_at: float | None = None
    invalidated: bool = False
    error: Exception | None = None
    # bumped on every write, invalidation and fetch start; a fetch only
    # lands if the generation it started under is still current
    generation: int = 0
    fetching_generation: int | None = None


class RemoteListCache:
    """Query-keyed cache of list pages with stale-while-revalidate reads.

    Without an executor, ``get`` fetches inline. With one, stale entries are
    refetched in the background and the previous data is returned with
    ``is_loading=True``.
    """

    def __init__(
        self,
        *,
        stale_after_seconds: float = 30.0,
        executor: Executor | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.stale_after_seconds = stale_after_seconds
        self.executor = executor
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.RLock()

    def get(self, query: ListQuery, fetcher: Fetcher) -> CacheState:
        with self._lock:
            entry = self._entry(query)
            if self._is_fresh(entry):
                return self._state(entry)
            if entry.fetching_generation is not None and entry.fetching_generation == entry.generation:
                return self._state(entry)
            entry.generation += 1
            generation = entry.generation
            entry.fetching_generation = generation

        if self.executor is None:
            self._run_fetch(query, fetcher, generation)
        else:
            self.executor.submit(self._run_fetch, query, fetcher, generation)
        with self._lock:
            return self._state(self._entries[query.cache_key()])

    def refetch(self, query: ListQuery, fetcher: Fetcher) -> CacheState:
        self.invalidate(query)
        return self.get(query, fetcher)

    def peek(self, query: ListQuery) -> CacheState | None:
        with self._lock:
            entry = self._entries.get(query.cache_key())
            return self._state(entry) if entry else None

    def get_data(self, query: ListQuery) -> Any:
        with self._lock:
            entry = self._entries.get(query.cache_key())
            return entry.data if entry else None

    def set_data(self, query: ListQuery, data: Any) -> None:
        with self._lock:
            entry = self._entry(query)
            entry.data = data
            entry.has_data = True
            entry.updated_at = self._clock()
            entry.invalidated = False
            entry.error = None
            entry.generation += 1

    def invalidate(self, prefix: QueryPrefix) -> list[ListQuery]:
        with self._lock:
            matched = [entry for entry in self._entries.values() if entry.query.matches(prefix)]
            for entry in matched:
                entry.invalidated = True
                entry.generation += 1
        if matched:
            logger.debug("list_cache_invalidated", extra={"prefix": str(prefix), "count": len(matched)})
        return [entry.query for entry in matched]

    def entries(self, prefix: QueryPrefix) -> list[ListQuery]:
        with self._lock:
            return [entry.query for entry in self._entries.values() if entry.query.matches(prefix)]

    def remove(self, prefix: QueryPrefix) -> None:
        with self._lock:
            doomed = [key for key, entry in self._entries.items() if entry.query.matches(prefix)]
            for key in doomed:
                self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _run_fetch(self, query: ListQuery, fetcher: Fetcher, generation: int) -> None:
        try:
            data = fetcher(query)
        except Exception as exc:
            logger.warning(
                "list_fetch_failed",
                extra={"query": query.cache_key(), "error": str(exc)},
            )
            with self._lock:
                entry = self._entry(query)
                if entry.fetching_generation == generation:
                    entry.fetching_generation = None
                if entry.generation == generation:
                    entry.error = exc
            return
        with self._lock:
            entry = self._entry(query)
            if entry.fetching_generation == generation:
                entry.fetching_generation = None
            if entry.generation != generation:
                logger.debug("list_fetch_superseded", extra={"query": query.cache_key()})
                return
            entry.data = data
            entry.has_data = True
            entry.updated_at = self._clock()
            entry.invalidated = False
            entry.error = None

    def _entry(self, query: ListQuery) -> _Entry:
        key = query.cache_key()
        entry = self._entries.get(key)
        if entry is None:
            entry = _Entry(query=query)
            self._entries[key] = entry
        return entry

    def _is_fresh(self, entry: _Entry) -> bool:
        if not entry.has_data or entry.invalidated or entry.updated_at is None:
            return False
        return (self._clock() - entry.updated_at) < self.stale_after_seconds

    def _state(self, entry: _Entry) -> CacheState:
        return CacheState(
            data=entry.data,
            is_loading=entry.fetching_generation is not None,
            error=entry.error,
            is_stale=not self._is_fresh(entry),
            updated_at=entry.updated_at,
        )
