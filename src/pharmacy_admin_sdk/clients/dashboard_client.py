from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..models_dashboard import DashboardFilters, DashboardMetrics
from ..validation import coerce_model
from .base import BaseClient, expect_object, unwrap_data


@dataclass
class DashboardClient(BaseClient):
    def get_metrics(self, filters: DashboardFilters | Mapping[str, Any] | None = None) -> DashboardMetrics:
        resolved = coerce_model(filters or {}, DashboardFilters)
        payload = self._request(
            "GET",
            "/api/admin/dashboard/metrics",
            params=resolved.to_params(),
            module="dashboard",
            operation="fetch_dashboard_metrics",
        )
        return DashboardMetrics.model_validate(unwrap_data(expect_object(payload, "dashboard metrics")))
