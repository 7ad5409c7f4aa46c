from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from ..envelopes import ListPage, normalize_list
from ..idempotency import resolve_idempotency_key
from ..models_inventory import (
    BulkStockLine,
    BulkStockUpdateRequest,
    BulkStockUpdateResult,
    InventoryMovement,
    InventoryStats,
    Product,
    StockAdjustmentRequest,
    StockUpdateRequest,
)
from ..validation import (
    ClientValidationError,
    ValidationIssue,
    coerce_model,
    validate_adjustment,
    validate_stock_quantity,
)
from .base import BaseClient, expect_object, unwrap_data

PRODUCTS_PATH = "/api/admin/products"


@dataclass
class ProductsClient(BaseClient):
    def list_products(self, params: Mapping[str, Any] | None = None) -> ListPage[Product]:
        payload = self._request(
            "GET",
            PRODUCTS_PATH,
            params=dict(params) if params else None,
            module="inventory",
            operation="fetch_products",
        )
        return normalize_list(payload, "products", Product.model_validate)

    def get_product(self, product_id: str) -> Product:
        payload = self._request(
            "GET",
            f"{PRODUCTS_PATH}/{product_id}",
            module="inventory",
            operation="fetch_product",
        )
        return Product.model_validate(unwrap_data(expect_object(payload, "product")))

    def update_stock(
        self,
        product_id: str,
        stock_quantity: Any,
        adjustment_reason: str | None = None,
    ) -> Product | None:
        quantity = validate_stock_quantity(stock_quantity)
        reason = (adjustment_reason or "").strip() or None
        body = StockUpdateRequest(stock_quantity=quantity, adjustment_reason=reason)
        payload = self._request(
            "PUT",
            f"{PRODUCTS_PATH}/{product_id}/stock",
            json_body=body.model_dump(by_alias=True, exclude_none=True, mode="json"),
            module="inventory",
            operation="update_stock",
        )
        if not isinstance(payload, dict):
            return None
        return Product.model_validate(unwrap_data(payload))

    def bulk_update_stock(self, lines: Sequence[BulkStockLine | Mapping[str, Any]]) -> BulkStockUpdateResult:
        if not lines:
            raise ClientValidationError([ValidationIssue(row_index=None, field="updates", reason="updates must not be empty")])
        normalized = []
        for idx, line in enumerate(lines):
            item = coerce_model(line, BulkStockLine, row_index=idx)
            if not item.id.strip():
                raise ClientValidationError([ValidationIssue(row_index=idx, field="id", reason="id is required")])
            normalized.append(item)
        body = BulkStockUpdateRequest(updates=normalized)
        payload = self._request(
            "PUT",
            f"{PRODUCTS_PATH}/bulk-update",
            json_body=body.model_dump(by_alias=True, exclude_none=True, mode="json"),
            module="inventory",
            operation="bulk_update_stock",
        )
        return BulkStockUpdateResult.model_validate(expect_object(payload, "bulk update"))

    def create_adjustment(
        self,
        product_id: str,
        payload: StockAdjustmentRequest | Mapping[str, Any],
    ) -> InventoryMovement | None:
        adjustment = validate_adjustment(payload)
        adjustment = adjustment.model_copy(
            update={"idempotency_key": resolve_idempotency_key(adjustment.idempotency_key)}
        )
        data = self._request(
            "POST",
            f"{PRODUCTS_PATH}/{product_id}/adjustments",
            json_body=adjustment.model_dump(by_alias=True, exclude_none=True, mode="json"),
            headers={"Idempotency-Key": adjustment.idempotency_key},
            module="inventory",
            operation="create_adjustment",
        )
        if not isinstance(data, dict):
            return None
        body = unwrap_data(data)
        movement = body.get("movement", body)
        if not isinstance(movement, dict) or "id" not in movement:
            return None
        return InventoryMovement.model_validate(movement)

    def list_movements(
        self,
        product_id: str,
        *,
        page: int = 1,
        page_size: int = 20,
        movement_type: str | None = None,
        date_from: str | None = None,
        date_to: str | None = None,
    ) -> ListPage[InventoryMovement]:
        params: dict[str, Any] = {"page": page, "pageSize": page_size}
        if movement_type:
            params["type"] = movement_type
        if date_from:
            params["dateFrom"] = date_from
        if date_to:
            params["dateTo"] = date_to
        payload = self._request(
            "GET",
            f"{PRODUCTS_PATH}/{product_id}/movements",
            params=params,
            module="inventory",
            operation="fetch_movements",
        )
        return normalize_list(payload, "movements", InventoryMovement.model_validate, page=page, page_size=page_size)

    def get_inventory_stats(self) -> InventoryStats:
        payload = self._request(
            "GET",
            "/api/admin/inventory/stats",
            module="inventory",
            operation="fetch_inventory_stats",
        )
        return InventoryStats.model_validate(unwrap_data(expect_object(payload, "inventory stats")))
