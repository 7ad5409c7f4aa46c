from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from .. import query_keys
from ..envelopes import ListPage, paginate_items
from ..list_cache import CacheState
from ..models_inventory import (
    STOCK_STATUS_QUERY_VALUES,
    BulkStockLine,
    BulkStockUpdateResult,
    InventoryMovement,
    InventoryStats,
    Product,
    StockAdjustmentRequest,
    StockStatus,
)
from ..pagination import DEFAULT_PAGE_SIZE, ListQuery, build_query
from ..session import AdminSession
from ..stock_rules import (
    InventorySummary,
    apply_stock_patch,
    matches_search,
    matches_stock_status,
    summarize_inventory,
)
from ..validation import validate_stock_quantity
from .errors import normalize_service_error

logger = logging.getLogger(__name__)


def parse_stock_status(value: Any) -> StockStatus | None:
    """Accept both ``low_stock`` and the query-string form ``low-stock``."""
    if value is None or isinstance(value, StockStatus):
        return value
    return StockStatus(str(value).strip().lower().replace("-", "_"))


class InventoryService:
    def __init__(self, session: AdminSession) -> None:
        self.session = session

    @property
    def low_stock_threshold(self) -> int:
        return self.session.config.low_stock_threshold

    def products_query(
        self,
        filters: Mapping[str, Any] | None = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> ListQuery:
        return build_query(query_keys.INVENTORY_PRODUCTS, filters, page, page_size)

    def load_products(
        self,
        filters: Mapping[str, Any] | None = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> CacheState:
        return self.session.cache.get(self.products_query(filters, page, page_size), self._fetch_products)

    def load_product(self, product_id: str) -> CacheState:
        query = build_query(query_keys.product_detail(product_id), None)
        return self.session.cache.get(query, lambda _: self.session.products_client().get_product(product_id))

    def update_stock(self, product_id: str, stock_quantity: Any, reason: str | None = None) -> Product | None:
        logger.info("stock_update_attempt", extra={"product_id": product_id})
        try:
            quantity = validate_stock_quantity(stock_quantity)
            result = self.session.mutations.mutate(
                product_id,
                {"stock_quantity": quantity},
                request=lambda: self._with_status(
                    self.session.products_client().update_stock(product_id, quantity, reason)
                ),
                operation="update stock",
                queries_to_update=[query_keys.INVENTORY_PRODUCTS, query_keys.product_detail(product_id)],
                queries_to_invalidate=[
                    query_keys.INVENTORY,
                    query_keys.product_detail(product_id),
                    query_keys.product_movements(product_id),
                ],
                project=self._project_stock,
            )
        except Exception as exc:
            logger.warning("stock_update_failed", extra={"product_id": product_id, "error": str(exc)})
            raise normalize_service_error(exc, operation="update stock") from exc
        logger.info("stock_update_success", extra={"product_id": product_id, "stock_quantity": quantity})
        return result

    def bulk_update_stock(self, lines: Sequence[BulkStockLine | Mapping[str, Any]]) -> BulkStockUpdateResult:
        try:
            result = self.session.products_client().bulk_update_stock(lines)
        except Exception as exc:
            raise normalize_service_error(exc, operation="bulk update products") from exc
        finally:
            self.session.cache.invalidate(query_keys.INVENTORY)
            self.session.cache.invalidate(query_keys.PRODUCTS)
        logger.info("bulk_stock_update_success", extra={"updated_count": result.updated_count})
        return result

    def adjust_stock(
        self,
        product_id: str,
        payload: StockAdjustmentRequest | Mapping[str, Any],
    ) -> InventoryMovement | None:
        try:
            movement = self.session.products_client().create_adjustment(product_id, payload)
        except Exception as exc:
            raise normalize_service_error(exc, operation="create adjustment") from exc
        for prefix in (
            query_keys.INVENTORY,
            query_keys.product_detail(product_id),
            query_keys.product_movements(product_id),
        ):
            self.session.cache.invalidate(prefix)
        self.session.notifications.success("Stock adjusted", "Adjustment created successfully", product_id=product_id)
        return movement

    def load_movements(
        self,
        product_id: str,
        filters: Mapping[str, Any] | None = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> CacheState:
        query = build_query(query_keys.product_movements(product_id), filters, page, page_size)

        def fetch(q: ListQuery) -> ListPage[InventoryMovement]:
            return self.session.products_client().list_movements(
                product_id,
                page=q.page,
                page_size=q.page_size,
                movement_type=q.filters.get("type"),
                date_from=q.filters.get("from"),
                date_to=q.filters.get("to"),
            )

        return self.session.cache.get(query, fetch)

    def load_stats(self) -> CacheState:
        query = build_query(query_keys.INVENTORY_STATS, None)
        return self.session.cache.get(query, lambda _: self._fetch_stats())

    def summarize(self, products: ListPage[Product] | Sequence[Product]) -> InventorySummary:
        return summarize_inventory(products, default_threshold=self.low_stock_threshold)

    def save_filters(self, filters: Mapping[str, Any]) -> None:
        self.session.filter_store.save("inventory", filters)

    def saved_filters(self) -> dict[str, Any]:
        return self.session.filter_store.load("inventory")

    def _fetch_products(self, query: ListQuery) -> ListPage[Product]:
        filters = query.filters
        search = filters.get("search")
        category = filters.get("category")
        wanted = parse_stock_status(filters.get("stock_status"))
        params: dict[str, Any] = {}
        if search:
            params["search"] = search
        if category:
            params["category"] = category
        if wanted is not None:
            params["stockStatus"] = STOCK_STATUS_QUERY_VALUES[wanted]
        listing = self.session.products_client().list_products(params or None)
        # the list endpoint has ignored filters before; apply them locally as well
        items = [
            product
            for product in listing
            if matches_search(product, search)
            and matches_stock_status(product, wanted, default_threshold=self.low_stock_threshold)
            and (not category or (product.category or "").lower() == str(category).lower())
        ]
        return paginate_items(items, query.page, query.page_size)

    def _fetch_stats(self) -> InventoryStats:
        return self.session.products_client().get_inventory_stats()

    def _project_stock(self, product: Product, patch: Mapping[str, Any]) -> Product:
        return apply_stock_patch(product, patch, default_threshold=self.low_stock_threshold)

    def _with_status(self, product: Product | None) -> Product | None:
        if product is None or product.stock_status is not None:
            return product
        return apply_stock_patch(product, {}, default_threshold=self.low_stock_threshold)
