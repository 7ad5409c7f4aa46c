from __future__ import annotations

from typing import Any, Mapping

from .. import query_keys
from ..list_cache import CacheState
from ..models_dashboard import DashboardFilters, DashboardMetrics
from ..pagination import ListQuery, build_query
from ..session import AdminSession
from ..validation import coerce_model
from .errors import normalize_service_error


class DashboardService:
    def __init__(self, session: AdminSession) -> None:
        self.session = session

    def load_metrics(self, filters: DashboardFilters | Mapping[str, Any] | None = None) -> CacheState:
        try:
            resolved = coerce_model(filters or {}, DashboardFilters)
        except Exception as exc:
            raise normalize_service_error(exc, operation="load dashboard") from exc
        query = build_query(query_keys.DASHBOARD + ("metrics",), resolved.to_params())
        return self.session.cache.get(query, lambda _: self._fetch(resolved))

    def refresh(self) -> list[ListQuery]:
        return self.session.cache.invalidate(query_keys.DASHBOARD)

    def _fetch(self, filters: DashboardFilters) -> DashboardMetrics:
        return self.session.dashboard_client().get_metrics(filters)
