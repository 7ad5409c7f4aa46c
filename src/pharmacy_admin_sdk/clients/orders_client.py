from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..envelopes import ListPage, normalize_list
from ..models_orders import Order, OrderStatus, OrderStatusUpdateRequest
from .base import BaseClient, expect_object, unwrap_data

ORDERS_PATH = "/api/admin/orders"


@dataclass
class OrdersClient(BaseClient):
    def list_orders(self, params: Mapping[str, Any] | None = None) -> ListPage[Order]:
        payload = self._request(
            "GET",
            ORDERS_PATH,
            params=dict(params) if params else None,
            module="orders",
            operation="fetch_orders",
        )
        return normalize_list(payload, "orders", Order.model_validate)

    def get_order(self, order_id: str) -> Order:
        payload = self._request("GET", f"{ORDERS_PATH}/{order_id}", module="orders", operation="fetch_order")
        return Order.model_validate(unwrap_data(expect_object(payload, "order")))

    def update_status(self, order_id: str, status: OrderStatus | str) -> Order | None:
        body = OrderStatusUpdateRequest(status=OrderStatus(status))
        payload = self._request(
            "PUT",
            f"{ORDERS_PATH}/{order_id}/status",
            json_body=body.model_dump(by_alias=True, mode="json"),
            module="orders",
            operation="update_order_status",
        )
        if not isinstance(payload, dict):
            return None
        data = unwrap_data(payload)
        order = data.get("order", data)
        if not isinstance(order, dict) or "id" not in order:
            return None
        return Order.model_validate(order)
