from .config import ClientConfig, ConfigError, load_config
from .envelopes import ListPage, normalize_list
from .exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    NotFoundError,
    PermissionError,
    RateLimitError,
    ServerError,
    TransportError,
    UploadError,
    ValidationError,
)
from .filter_store import FilterStore
from .http_client import HttpClient
from .idempotency import new_idempotency_key
from .list_cache import CacheState, RemoteListCache
from .models_customers import Customer, VerificationStatus
from .models_inventory import InventoryMovement, MovementType, Product, StockStatus
from .models_orders import Order, OrderStatus
from .models_prescriptions import Prescription, PrescriptionStatus
from .notifications import Notification, NotificationCenter
from .optimistic import OptimisticMutationExecutor, OptimisticOverlay
from .pagination import ListQuery, PageRange, build_query, clamp_page, compute_range
from .session import AdminSession
from .status_gate import (
    ORDER_GATE,
    PRESCRIPTION_GATE,
    VERIFICATION_GATE,
    StatusTransition,
    StatusTransitionGate,
    TransitionNotAllowedError,
    TransitionValidationError,
)
from .stock_rules import derive_stock_status, summarize_inventory
from .ui_errors import UserFacingError, to_user_facing_error
from .validation import ClientValidationError, ValidationIssue

__version__ = "0.1.0"

__all__ = [
    "AdminSession",
    "ApiError",
    "AuthError",
    "CacheState",
    "ClientConfig",
    "ClientValidationError",
    "ConfigError",
    "ConflictError",
    "Customer",
    "FilterStore",
    "HttpClient",
    "InventoryMovement",
    "ListPage",
    "ListQuery",
    "MovementType",
    "NotFoundError",
    "Notification",
    "NotificationCenter",
    "ORDER_GATE",
    "OptimisticMutationExecutor",
    "OptimisticOverlay",
    "Order",
    "OrderStatus",
    "PRESCRIPTION_GATE",
    "PageRange",
    "PermissionError",
    "Prescription",
    "PrescriptionStatus",
    "Product",
    "RateLimitError",
    "RemoteListCache",
    "ServerError",
    "StatusTransition",
    "StatusTransitionGate",
    "StockStatus",
    "TransitionNotAllowedError",
    "TransitionValidationError",
    "TransportError",
    "UploadError",
    "UserFacingError",
    "VERIFICATION_GATE",
    "ValidationError",
    "ValidationIssue",
    "VerificationStatus",
    "build_query",
    "clamp_page",
    "compute_range",
    "derive_stock_status",
    "load_config",
    "new_idempotency_key",
    "normalize_list",
    "summarize_inventory",
    "to_user_facing_error",
]
