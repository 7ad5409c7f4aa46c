from __future__ import annotations

import logging
from typing import Any, Mapping

from .. import query_keys
from ..envelopes import ListPage, paginate_items
from ..list_cache import CacheState
from ..models_orders import Order, OrderStatus
from ..optimistic import find_record
from ..pagination import DEFAULT_PAGE_SIZE, ListQuery, build_query
from ..session import AdminSession
from ..status_gate import ORDER_GATE, OrderActionAvailability, order_action_availability
from .errors import normalize_service_error

logger = logging.getLogger(__name__)


def matches_order(order: Order, filters: Mapping[str, Any]) -> bool:
    term = str(filters.get("search") or "").lower()
    if term:
        customer = order.customer
        haystack = (
            order.order_number,
            customer.name if customer else None,
            customer.email if customer else None,
            order.delivery_address,
        )
        if not any(term in value.lower() for value in haystack if value):
            return False
    status = filters.get("status")
    if status and order.order_status.value.lower() != str(status).lower():
        return False
    payment = filters.get("payment_status")
    if payment and str(getattr(order.payment_status, "value", order.payment_status) or "").lower() != str(payment).lower():
        return False
    customer_type = filters.get("customer_type")
    if customer_type:
        actual = order.customer.type if order.customer else None
        if (actual or "").lower() != str(customer_type).lower():
            return False
    return True


class OrderService:
    def __init__(self, session: AdminSession) -> None:
        self.session = session

    def load_orders(
        self,
        filters: Mapping[str, Any] | None = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> CacheState:
        query = build_query(query_keys.ORDERS, filters, page, page_size)
        return self.session.cache.get(query, self._fetch_orders)

    def load_order(self, order_id: str) -> CacheState:
        query = build_query(query_keys.order_detail(order_id), None)
        return self.session.cache.get(query, lambda _: self.session.orders_client().get_order(order_id))

    def actions_for(self, order: Order, *, can_manage: bool = True) -> OrderActionAvailability:
        return order_action_availability(order.order_status, can_manage=can_manage)

    def update_status(
        self,
        order_id: str,
        status: OrderStatus | str,
        *,
        current_status: OrderStatus | str | None = None,
    ) -> Order | None:
        try:
            target = OrderStatus(status)
            source = OrderStatus(current_status) if current_status else self._current_status(order_id)
            ORDER_GATE.check(source, target)
            logger.info(
                "order_status_update_attempt",
                extra={"order_id": order_id, "from_status": source.value, "to_status": target.value},
            )
            result = self.session.mutations.mutate(
                order_id,
                {"order_status": target},
                request=lambda: self.session.orders_client().update_status(order_id, target),
                operation="update order status",
                queries_to_update=[query_keys.ORDERS],
                queries_to_invalidate=[query_keys.ORDERS, query_keys.DASHBOARD],
            )
        except Exception as exc:
            raise normalize_service_error(exc, operation="update order status") from exc
        logger.info("order_status_update_success", extra={"order_id": order_id, "to_status": target.value})
        return result

    def advance(self, order: Order) -> Order | None:
        actions = order_action_availability(order.order_status, can_manage=True)
        if actions.next_status is None:
            raise normalize_service_error(
                ValueError(f"Order {order.order_number or order.id} is already {order.order_status.value}")
            )
        return self.update_status(order.id, actions.next_status, current_status=order.order_status)

    def cancel(self, order: Order) -> Order | None:
        return self.update_status(order.id, OrderStatus.CANCELLED, current_status=order.order_status)

    def save_filters(self, filters: Mapping[str, Any]) -> None:
        self.session.filter_store.save("orders", filters)

    def saved_filters(self) -> dict[str, Any]:
        return self.session.filter_store.load("orders")

    def _fetch_orders(self, query: ListQuery) -> ListPage[Order]:
        listing = self.session.orders_client().list_orders()
        items = [order for order in listing if matches_order(order, query.filters)]
        return paginate_items(items, query.page, query.page_size)

    def _current_status(self, order_id: str) -> OrderStatus:
        for query in self.session.cache.entries(query_keys.ORDERS):
            record = find_record(self.session.cache.get_data(query), order_id)
            if record is not None:
                return record.order_status
        return self.session.orders_client().get_order(order_id).order_status
