from __future__ import annotations

import dataclasses
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, TypeVar

from pydantic import BaseModel

from .envelopes import ListPage
from .list_cache import QueryPrefix, RemoteListCache
from .notifications import NotificationCenter
from .pagination import ListQuery
from .ui_errors import to_user_facing_error

logger = logging.getLogger(__name__)

R = TypeVar("R")
Projection = Callable[[Any, Mapping[str, Any]], Any]


@dataclass(frozen=True)
class OptimisticOverlay:
    record_id: str
    prior_snapshot: Any
    pending_snapshot: Any
    applied_at: float
    snapshots: tuple[tuple[ListQuery, Any], ...] = ()


def record_id_of(record: Any) -> str | None:
    if isinstance(record, Mapping):
        value = record.get("id")
    else:
        value = getattr(record, "id", None)
    return str(value) if value is not None else None


def apply_patch(record: Any, patch: Mapping[str, Any]) -> Any:
    """Default projection: overwrite the patched fields, keep the rest."""
    if isinstance(record, BaseModel):
        return record.model_copy(update=dict(patch))
    if isinstance(record, Mapping):
        return {**record, **patch}
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        return dataclasses.replace(record, **patch)
    raise TypeError(f"Cannot apply a patch to {type(record).__name__}")


class OptimisticMutationExecutor:
    """Apply a projected edit to every cached view of a record, then confirm it.

    Mutations on one record id run one at a time, so overlays never stack.
    A failed request puts the record captured before the edit back into
    each cached view and re-raises; the affected queries are invalidated
    either way.
    """

    def __init__(
        self,
        cache: RemoteListCache,
        notifications: NotificationCenter | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.cache = cache
        self.notifications = notifications or NotificationCenter()
        self._clock = clock
        self._guard = threading.Lock()
        self._record_locks: dict[str, threading.Lock] = {}
        self._overlays: dict[str, OptimisticOverlay] = {}

    def mutate(
        self,
        record_id: str,
        patch: Mapping[str, Any],
        *,
        request: Callable[[], R],
        operation: str,
        queries_to_update: Iterable[QueryPrefix] = (),
        queries_to_invalidate: Iterable[QueryPrefix] = (),
        project: Projection | None = None,
    ) -> R:
        projection = project or apply_patch
        update_prefixes = list(queries_to_update)
        invalidate_prefixes = list(queries_to_invalidate)
        with self._lock_for(record_id):
            try:
                overlay = self._apply(record_id, patch, update_prefixes, projection)
                logger.debug(
                    "optimistic_applied",
                    extra={"record_id": record_id, "operation": operation, "queries": len(overlay.snapshots)},
                )
                try:
                    result = request()
                except Exception as exc:
                    self._rollback(overlay)
                    user_facing = to_user_facing_error(exc, operation=operation)
                    logger.warning(
                        "optimistic_rollback",
                        extra={"record_id": record_id, "operation": operation, "error": str(exc)},
                    )
                    self.notifications.error(
                        f"Failed to {operation}",
                        user_facing.message,
                        record_id=record_id,
                        trace_id=user_facing.trace_id,
                    )
                    raise
                self._confirm(overlay, result)
                logger.info("optimistic_committed", extra={"record_id": record_id, "operation": operation})
                return result
            finally:
                with self._guard:
                    self._overlays.pop(record_id, None)
                for prefix in invalidate_prefixes:
                    self.cache.invalidate(prefix)

    def overlay(self, record_id: str) -> OptimisticOverlay | None:
        with self._guard:
            return self._overlays.get(record_id)

    def in_flight(self) -> list[OptimisticOverlay]:
        with self._guard:
            return list(self._overlays.values())

    def _lock_for(self, record_id: str) -> threading.Lock:
        with self._guard:
            lock = self._record_locks.get(record_id)
            if lock is None:
                lock = threading.Lock()
                self._record_locks[record_id] = lock
            return lock

    def _matching_queries(self, prefixes: list[QueryPrefix]) -> list[ListQuery]:
        seen: dict[str, ListQuery] = {}
        for prefix in prefixes:
            for query in self.cache.entries(prefix):
                seen.setdefault(query.cache_key(), query)
        return list(seen.values())

    def _apply(
        self,
        record_id: str,
        patch: Mapping[str, Any],
        prefixes: list[QueryPrefix],
        projection: Projection,
    ) -> OptimisticOverlay:
        snapshots: list[tuple[ListQuery, Any]] = []
        prior: Any = None
        pending: Any = None
        for query in self._matching_queries(prefixes):
            data = self.cache.get_data(query)
            current = find_record(data, record_id)
            if current is None:
                continue
            projected = projection(current, patch)
            snapshots.append((query, current))
            self.cache.set_data(query, replace_record(data, record_id, projected))
            if prior is None:
                prior, pending = current, projected
        overlay = OptimisticOverlay(
            record_id=record_id,
            prior_snapshot=prior,
            pending_snapshot=pending,
            applied_at=self._clock(),
            snapshots=tuple(snapshots),
        )
        with self._guard:
            self._overlays[record_id] = overlay
        return overlay

    def _confirm(self, overlay: OptimisticOverlay, result: Any) -> None:
        if result is None or record_id_of(result) != overlay.record_id:
            return
        for query, _ in overlay.snapshots:
            data = self.cache.get_data(query)
            if find_record(data, overlay.record_id) is not None:
                self.cache.set_data(query, replace_record(data, overlay.record_id, result))

    def _rollback(self, overlay: OptimisticOverlay) -> None:
        # only this record reverts; edits to other rows on the page stay visible
        for query, prior in overlay.snapshots:
            data = self.cache.get_data(query)
            if find_record(data, overlay.record_id) is not None:
                self.cache.set_data(query, replace_record(data, overlay.record_id, prior))


def find_record(data: Any, record_id: str) -> Any:
    if isinstance(data, ListPage):
        return data.find(record_id)
    if isinstance(data, (list, tuple)):
        return next((item for item in data if record_id_of(item) == record_id), None)
    if data is not None and record_id_of(data) == record_id:
        return data
    return None


def replace_record(data: Any, record_id: str, record: Any) -> Any:
    if isinstance(data, ListPage):
        return data.replace_item(record_id, record)
    if isinstance(data, (list, tuple)):
        return type(data)(record if record_id_of(item) == record_id else item for item in data)
    return record
