from .base import BaseClient
from .customers_client import CustomersClient
from .dashboard_client import DashboardClient
from .orders_client import OrdersClient
from .prescriptions_client import PrescriptionsClient
from .products_client import ProductsClient

__all__ = [
    "BaseClient",
    "CustomersClient",
    "DashboardClient",
    "OrdersClient",
    "PrescriptionsClient",
    "ProductsClient",
]
