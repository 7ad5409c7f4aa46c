from .customer_service import CustomerService, CustomerStats
from .dashboard_service import DashboardService
from .errors import AdminServiceError, normalize_service_error
from .inventory_service import InventoryService
from .order_service import OrderService
from .prescription_service import PrescriptionService

__all__ = [
    "AdminServiceError",
    "CustomerService",
    "CustomerStats",
    "DashboardService",
    "InventoryService",
    "OrderService",
    "PrescriptionService",
    "normalize_service_error",
]
