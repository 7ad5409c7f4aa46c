from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import Field

from .models import ApiModel


class OrderStatus(str, Enum):
    RECEIVED = "RECEIVED"
    PROCESSING = "PROCESSING"
    READY = "READY"
    DISPATCHED = "DISPATCHED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class OrderCustomer(ApiModel):
    id: str | None = None
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    type: str | None = None


class OrderItem(ApiModel):
    id: str | None = None
    product_id: str | None = None
    product_name: str | None = None
    quantity: int = 0
    unit_price: float = 0.0
    total_price: float = 0.0


class Order(ApiModel):
    id: str
    order_number: str | None = None
    customer: OrderCustomer | None = None
    items: list[OrderItem] = Field(default_factory=list)
    total_amount: float = 0.0
    payment_status: PaymentStatus | str | None = None
    order_status: OrderStatus = Field(default=OrderStatus.RECEIVED)
    payment_method: str | None = None
    delivery_address: str | None = None
    delivery_fee: float = 0.0
    state: str | None = None
    lga: str | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrderStatusUpdateRequest(ApiModel):
    status: OrderStatus
