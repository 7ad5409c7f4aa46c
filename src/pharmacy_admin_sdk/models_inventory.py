from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import AliasChoices, Field

from .models import ApiModel


class StockStatus(str, Enum):
    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"
    IN_STOCK = "in_stock"


# the products list endpoint filters with hyphenated values
STOCK_STATUS_QUERY_VALUES: dict[StockStatus, str] = {
    StockStatus.OUT_OF_STOCK: "out-of-stock",
    StockStatus.LOW_STOCK: "low-stock",
    StockStatus.IN_STOCK: "in-stock",
}


class MovementType(str, Enum):
    IN = "IN"
    OUT = "OUT"
    ADJUSTMENT = "ADJUSTMENT"


class Product(ApiModel):
    id: str
    name: str | None = None
    generic_name: str | None = None
    brand_name: str | None = None
    category: str | None = None
    description: str | None = None
    image_url: str | None = None
    wholesale_price: float = 0.0
    retail_price: float = 0.0
    stock_quantity: int = 0
    min_order_qty: int | None = None
    is_prescription_required: bool = False
    nafdac_number: str | None = Field(
        default=None,
        validation_alias=AliasChoices("nafdacNumber", "nafdacRegNumber", "nafdac_number"),
    )
    low_stock_threshold: int | None = Field(
        default=None,
        validation_alias=AliasChoices("lowStockThreshold", "minStockLevel", "low_stock_threshold"),
    )
    stock_status: StockStatus | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class StockUpdateRequest(ApiModel):
    stock_quantity: int = Field(ge=0)
    adjustment_reason: str | None = None


class BulkStockLine(ApiModel):
    id: str
    stock_quantity: int = Field(ge=0)


class BulkStockUpdateRequest(ApiModel):
    updates: list[BulkStockLine]


class BulkStockUpdateResult(ApiModel):
    message: str | None = None
    updated_count: int = 0


class StockAdjustmentRequest(ApiModel):
    type: MovementType
    qty: int
    reason: str | None = None
    batch_number: str | None = None
    idempotency_key: str | None = None


class InventoryMovement(ApiModel):
    id: str
    product_id: str | None = None
    type: MovementType | str | None = None
    quantity: int = 0
    reason: str | None = None
    reference: str | None = None
    previous_stock: int | None = None
    new_stock: int | None = None
    batch_number: str | None = None
    expiry_date: datetime | None = None
    batch_id: str | None = None
    user_id: str | None = None
    notes: str | None = None
    created_at: datetime | None = None


class StockStatusCounts(ApiModel):
    in_stock: int = 0
    low_stock: int = 0
    out_of_stock: int = 0


class CategoryStat(ApiModel):
    category: str | None = None
    product_count: int = 0
    total_stock: int = 0


class LowStockAlert(ApiModel):
    id: str
    name: str | None = None
    stock_quantity: int = 0
    category: str | None = None


class InventoryStats(ApiModel):
    total_products: int = 0
    stock_status: StockStatusCounts = Field(default_factory=StockStatusCounts)
    category_breakdown: list[CategoryStat] = Field(default_factory=list)
    total_inventory_value: float = 0.0
    low_stock_alerts: list[LowStockAlert] = Field(default_factory=list)
    stock_health_percentage: int = 0
