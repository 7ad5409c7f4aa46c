from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Mapping

DEFAULT_PAGE_SIZE = 20
ALL_SENTINEL = "all"

# filter keys that carry the start or end of an inclusive date range
DEFAULT_RANGE_FIELDS: dict[str, str] = {
    "from": "start",
    "date_from": "start",
    "dateFrom": "start",
    "start_date": "start",
    "startDate": "start",
    "to": "end",
    "date_to": "end",
    "dateTo": "end",
    "end_date": "end",
    "endDate": "end",
}

_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_END_OF_DAY = time(23, 59, 59, 999000)

FilterValue = str | bool | int | float | tuple[str, ...]


@dataclass(frozen=True)
class ListQuery:
    """Canonical key for one page of a filtered collection."""

    scope: tuple[str, ...]
    filters: Mapping[str, FilterValue] = field(default_factory=dict)
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    def __hash__(self) -> int:
        return hash(self.cache_key())

    def cache_key(self) -> str:
        return json.dumps(
            {
                "scope": list(self.scope),
                "filters": {key: _jsonable(value) for key, value in self.filters.items()},
                "page": self.page,
                "page_size": self.page_size,
            },
            sort_keys=True,
        )

    def matches(self, prefix: "ListQuery | tuple[str, ...] | str") -> bool:
        if isinstance(prefix, ListQuery):
            return prefix == self
        parts = (prefix,) if isinstance(prefix, str) else tuple(prefix)
        return self.scope[: len(parts)] == parts

    def with_page(self, page: int) -> "ListQuery":
        return ListQuery(scope=self.scope, filters=dict(self.filters), page=page, page_size=self.page_size)


@dataclass(frozen=True)
class PageRange:
    range_start: int
    range_end: int
    total_pages: int
    page: int = field(default=1, compare=False)
    total: int = field(default=0, compare=False)

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    def label(self) -> str:
        return f"Showing {self.range_start}–{self.range_end} of {self.total}"


def build_query(
    scope: tuple[str, ...] | str,
    raw_filters: Mapping[str, Any] | None,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    *,
    range_fields: Mapping[str, str] | None = None,
) -> ListQuery:
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    ranges = DEFAULT_RANGE_FIELDS if range_fields is None else range_fields
    filters: dict[str, FilterValue] = {}
    for key, value in (raw_filters or {}).items():
        normalized = _normalize_filter(value, ranges.get(key))
        if normalized is not None:
            filters[key] = normalized
    scope_tuple = (scope,) if isinstance(scope, str) else tuple(scope)
    return ListQuery(scope=scope_tuple, filters=filters, page=page, page_size=page_size)


def compute_range(total: int, page: int, page_size: int) -> PageRange:
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    total = max(0, total)
    # servers have reported page 0; ranges always start at the first page
    page = max(1, page)
    total_pages = max(1, math.ceil(total / page_size))
    if total == 0:
        return PageRange(0, 0, total_pages, page=page, total=0)
    range_start = (page - 1) * page_size + 1
    range_end = min(total, page * page_size)
    return PageRange(range_start, range_end, total_pages, page=page, total=total)


def clamp_page(page: int, total_pages: int) -> int:
    return min(max(1, page), max(1, total_pages))


def day_boundary(value: date | str, edge: str) -> str:
    """Local start/end-of-day timestamp with millisecond precision."""
    day = date.fromisoformat(value) if isinstance(value, str) else value
    moment = datetime.combine(day, time.min if edge == "start" else _END_OF_DAY)
    return moment.astimezone().isoformat(timespec="milliseconds")


def _normalize_filter(value: Any, edge: str | None) -> FilterValue | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, datetime):
        moment = value if value.tzinfo else value.astimezone()
        return moment.isoformat(timespec="milliseconds")
    if isinstance(value, date):
        return day_boundary(value, edge) if edge else value.isoformat()
    if isinstance(value, str):
        text = value.strip()
        if not text or text.lower() == ALL_SENTINEL:
            return None
        if edge and _DATE_ONLY_RE.match(text):
            return day_boundary(text, edge)
        return text
    if isinstance(value, (list, tuple, set, frozenset)):
        items = tuple(
            sorted(
                text
                for text in (str(item).strip() for item in value)
                if text and text.lower() != ALL_SENTINEL
            )
        )
        return items or None
    return value


def _jsonable(value: Any) -> Any:
    if isinstance(value, tuple):
        return list(value)
    return value
