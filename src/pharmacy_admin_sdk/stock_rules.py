from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from .models_inventory import Product, StockStatus

DEFAULT_LOW_STOCK_THRESHOLD = 10


def derive_stock_status(quantity: int, threshold: int | None = None) -> StockStatus:
    """Same threshold rule the inventory stats endpoint applies server-side."""
    limit = DEFAULT_LOW_STOCK_THRESHOLD if threshold is None else threshold
    if quantity <= 0:
        return StockStatus.OUT_OF_STOCK
    if quantity <= limit:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def effective_stock_status(product: Product, default_threshold: int | None = None) -> StockStatus:
    if product.stock_status is not None:
        return product.stock_status
    threshold = product.low_stock_threshold
    if threshold is None:
        threshold = default_threshold
    return derive_stock_status(product.stock_quantity, threshold)


def apply_stock_patch(
    product: Product,
    patch: Mapping[str, Any],
    *,
    default_threshold: int | None = None,
) -> Product:
    """Project a stock edit onto a cached product, recomputing ``stock_status``."""
    updated = product.model_copy(update=dict(patch))
    threshold = updated.low_stock_threshold
    if threshold is None:
        threshold = default_threshold
    return updated.model_copy(
        update={"stock_status": derive_stock_status(updated.stock_quantity, threshold)}
    )


def matches_stock_status(
    product: Product,
    wanted: StockStatus | str | None,
    *,
    default_threshold: int | None = None,
) -> bool:
    if wanted is None or wanted == "all":
        return True
    return effective_stock_status(product, default_threshold) == StockStatus(wanted)


def matches_search(product: Product, term: str | None) -> bool:
    needle = (term or "").strip().lower()
    if not needle:
        return True
    haystack = (
        product.name,
        product.generic_name,
        product.brand_name,
        product.category,
        product.nafdac_number,
    )
    return any(needle in value.lower() for value in haystack if value)


@dataclass(frozen=True)
class InventorySummary:
    total_products: int
    out_of_stock: int
    low_stock: int
    total_value: float


def summarize_inventory(
    products: Iterable[Product],
    *,
    default_threshold: int | None = None,
) -> InventorySummary:
    """Aggregate the loaded page; value is counted at wholesale price."""
    total = out = low = 0
    value = 0.0
    for product in products:
        total += 1
        threshold = product.low_stock_threshold
        if threshold is None:
            threshold = default_threshold
        status = derive_stock_status(product.stock_quantity, threshold)
        if status is StockStatus.OUT_OF_STOCK:
            out += 1
        elif status is StockStatus.LOW_STOCK:
            low += 1
        value += product.stock_quantity * product.wholesale_price
    return InventorySummary(total_products=total, out_of_stock=out, low_stock=low, total_value=value)
