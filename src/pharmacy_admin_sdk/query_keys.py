from __future__ import annotations

# Cache scopes; invalidating a shorter prefix reaches every list beneath it.
ADMIN = ("admin",)
INVENTORY = ("admin", "inventory")
INVENTORY_PRODUCTS = ("admin", "inventory", "products")
INVENTORY_STATS = ("admin", "inventory", "stats")
PRODUCTS = ("admin", "products")
MOVEMENTS = ("admin", "movements")
ORDERS = ("admin", "orders")
CUSTOMERS = ("admin", "customers")
PRESCRIPTIONS = ("admin", "prescriptions")
DASHBOARD = ("admin", "dashboard")


def product_detail(product_id: str) -> tuple[str, ...]:
    return PRODUCTS + (product_id,)


def product_movements(product_id: str) -> tuple[str, ...]:
    return MOVEMENTS + (product_id,)


def order_detail(order_id: str) -> tuple[str, ...]:
    return ORDERS + ("detail", order_id)
