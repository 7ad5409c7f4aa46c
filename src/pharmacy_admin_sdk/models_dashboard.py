from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field

from .models import ApiModel


class DateRange(str, Enum):
    TODAY = "today"
    WEEK = "7days"
    MONTH = "30days"
    QUARTER = "90days"
    YEAR = "1year"
    CUSTOM = "custom"


class DashboardFilters(ApiModel):
    date_range: DateRange = DateRange.MONTH
    custom_date_from: datetime | None = None
    custom_date_to: datetime | None = None
    customer_type: str | None = None
    category: str | None = None
    region: str | None = None

    def to_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {"dateRange": self.date_range.value}
        if self.custom_date_from:
            params["dateFrom"] = self.custom_date_from.isoformat()
        if self.custom_date_to:
            params["dateTo"] = self.custom_date_to.isoformat()
        if self.customer_type and self.customer_type != "all":
            params["customerType"] = self.customer_type
        if self.category:
            params["category"] = self.category
        if self.region:
            params["region"] = self.region
        return params


class StockLevels(ApiModel):
    adequate: int = 0
    low: int = 0
    out: int = 0


class DashboardMetrics(ApiModel):
    total_revenue: float = 0.0
    monthly_revenue: float = 0.0
    revenue_growth: float = 0.0
    total_orders: int = 0
    order_growth: float = 0.0
    average_order_value: float = 0.0
    total_customers: int = 0
    active_customers: int = 0
    total_products: int = 0
    low_stock_products: int = 0
    out_of_stock_products: int = 0
    expiring_products: int = 0
    total_inventory_value: float = 0.0
    stock_levels: StockLevels = Field(default_factory=StockLevels)
    order_fulfillment_rate: float = 0.0
