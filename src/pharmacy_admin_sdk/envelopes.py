from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Generic, Iterator, Mapping, Sequence, TypeVar

from .models import PageMeta
from .pagination import PageRange, compute_range

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ListPage(Generic[T]):
    items: tuple[T, ...] = ()
    meta: PageMeta = field(default_factory=PageMeta)

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def find(self, record_id: str) -> T | None:
        for item in self.items:
            if getattr(item, "id", None) == record_id:
                return item
        return None

    def replace_item(self, record_id: str, new_item: T) -> "ListPage[T]":
        return replace(
            self,
            items=tuple(new_item if getattr(item, "id", None) == record_id else item for item in self.items),
        )

    def page_range(self) -> PageRange:
        return compute_range(self.meta.total, self.meta.page, self.meta.page_size)


def normalize_list(
    payload: Any,
    key: str,
    parse: Callable[[Mapping[str, Any]], T],
    *,
    page: int = 1,
    page_size: int | None = None,
) -> ListPage[T]:
    """Normalize the list envelopes the admin API has shipped.

    Accepted shapes: a bare array, ``{"data": [...]}``,
    ``{"data": {key: [...], "pagination": {...}}}`` and
    ``{key: [...], "pagination"|"meta": {...}}``. Anything else yields an
    empty page rather than an exception.
    """
    raw_items, raw_meta = _unwrap(payload, key)
    if raw_items is None:
        logger.warning("unexpected_list_envelope", extra={"resource": key, "payload_type": type(payload).__name__})
        raw_items = []
    items = tuple(parse(item) for item in raw_items if isinstance(item, Mapping))
    meta = _meta(raw_meta, count=len(items), page=page, page_size=page_size)
    return ListPage(items=items, meta=meta)


def _unwrap(payload: Any, key: str) -> tuple[list[Any] | None, Mapping[str, Any] | None]:
    if isinstance(payload, list):
        return payload, None
    if not isinstance(payload, Mapping):
        return None, None
    data = payload.get("data")
    if isinstance(data, list):
        return data, _first_mapping(payload, "meta", "pagination")
    if isinstance(data, Mapping) and isinstance(data.get(key), list):
        return data[key], _first_mapping(data, "pagination", "meta")
    if isinstance(payload.get(key), list):
        return payload[key], _first_mapping(payload, "pagination", "meta")
    return None, None


def _first_mapping(source: Mapping[str, Any], *keys: str) -> Mapping[str, Any] | None:
    for candidate in keys:
        value = source.get(candidate)
        if isinstance(value, Mapping):
            return value
    return None


def _meta(raw: Mapping[str, Any] | None, *, count: int, page: int, page_size: int | None) -> PageMeta:
    raw = raw or {}
    resolved_page = _as_int(raw.get("page"), page)
    resolved_size = _as_int(raw.get("pageSize") or raw.get("limit"), page_size or max(count, 1))
    # without a server total, assume the current page is the last one
    fallback_total = (resolved_page - 1) * resolved_size + count
    total = _as_int(raw.get("total"), fallback_total)
    return PageMeta(total=total, page=resolved_page, page_size=resolved_size)


def _as_int(value: Any, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def paginate_items(items: Sequence[T], page: int, page_size: int) -> ListPage[T]:
    """Slice a fully loaded, client-filtered collection into one page."""
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    start = (max(page, 1) - 1) * page_size
    window = tuple(items[start : start + page_size])
    return ListPage(items=window, meta=PageMeta(total=len(items), page=page, page_size=page_size))
