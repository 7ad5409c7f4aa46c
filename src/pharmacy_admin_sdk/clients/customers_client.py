from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..envelopes import ListPage, normalize_list
from ..models_customers import (
    Customer,
    CustomerStatusUpdateRequest,
    VerificationStatus,
    VerificationUpdateRequest,
)
from ..validation import raise_issue
from .base import BaseClient, unwrap_data

CUSTOMERS_PATH = "/api/admin/customers"


@dataclass
class CustomersClient(BaseClient):
    def list_customers(self, params: Mapping[str, Any] | None = None) -> ListPage[Customer]:
        payload = self._request(
            "GET",
            CUSTOMERS_PATH,
            params=dict(params) if params else None,
            module="customers",
            operation="fetch_customers",
        )
        return normalize_list(payload, "customers", Customer.model_validate)

    def update_status(self, customer_id: str, status: str) -> Customer | None:
        cleaned = (status or "").strip()
        if not cleaned:
            raise_issue("status", "status is required")
        body = CustomerStatusUpdateRequest(status=cleaned)
        payload = self._request(
            "PUT",
            f"{CUSTOMERS_PATH}/{customer_id}/status",
            json_body=body.model_dump(by_alias=True, mode="json"),
            module="customers",
            operation="update_customer_status",
        )
        return _customer_or_none(payload)

    def update_verification(
        self,
        customer_id: str,
        status: VerificationStatus | str,
        *,
        credit_limit: float | None = None,
        rejection_reason: str | None = None,
    ) -> Customer | None:
        body = VerificationUpdateRequest(
            status=VerificationStatus(status),
            credit_limit=credit_limit,
            rejection_reason=(rejection_reason or "").strip() or None,
        )
        payload = self._request(
            "PUT",
            f"{CUSTOMERS_PATH}/{customer_id}/verification",
            json_body=body.model_dump(by_alias=True, exclude_none=True, mode="json"),
            module="customers",
            operation="verify_customer",
        )
        return _customer_or_none(payload)


def _customer_or_none(payload: Any) -> Customer | None:
    if not isinstance(payload, dict):
        return None
    data = unwrap_data(payload)
    customer = data.get("customer", data)
    if not isinstance(customer, dict) or "id" not in customer:
        return None
    return Customer.model_validate(customer)
