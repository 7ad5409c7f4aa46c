from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from .. import query_keys
from ..envelopes import ListPage, paginate_items
from ..list_cache import CacheState
from ..models_customers import Customer, VerificationStatus
from ..optimistic import find_record
from ..pagination import DEFAULT_PAGE_SIZE, ListQuery, build_query
from ..session import AdminSession
from ..status_gate import VERIFICATION_GATE
from .errors import normalize_service_error

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CustomerStats:
    total: int
    retail: int
    wholesale: int
    pharmacy: int
    clinic: int
    verified: int
    pending_verification: int


def _text(value: Any) -> str:
    return str(getattr(value, "value", value) or "").lower()


def matches_customer(customer: Customer, filters: Mapping[str, Any]) -> bool:
    term = str(filters.get("search") or "").lower()
    if term:
        haystack = (
            customer.name,
            customer.email,
            customer.phone,
            customer.business_name,
            customer.license_number,
        )
        if not any(term in value.lower() for value in haystack if value):
            return False
    customer_type = filters.get("type")
    if customer_type and _text(customer.type) != str(customer_type).lower():
        return False
    verification = filters.get("verification_status")
    if verification and _text(customer.verification_status) != str(verification).lower():
        return False
    state = filters.get("state")
    if state and customer.state != state:
        return False
    return True


def summarize_customers(customers: Iterable[Customer]) -> CustomerStats:
    rows = list(customers)
    types = Counter(_text(customer.type) for customer in rows)
    statuses = Counter(customer.verification_status for customer in rows)
    return CustomerStats(
        total=len(rows),
        retail=types["retail"],
        wholesale=types["wholesale"],
        pharmacy=types["pharmacy"],
        clinic=types["clinic"],
        verified=statuses[VerificationStatus.VERIFIED],
        pending_verification=statuses[VerificationStatus.PENDING],
    )


class CustomerService:
    def __init__(self, session: AdminSession) -> None:
        self.session = session

    def load_customers(
        self,
        filters: Mapping[str, Any] | None = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> CacheState:
        query = build_query(query_keys.CUSTOMERS, filters, page, page_size)
        return self.session.cache.get(query, self._fetch_customers)

    def update_status(self, customer_id: str, status: str) -> Customer | None:
        try:
            result = self.session.customers_client().update_status(customer_id, status)
        except Exception as exc:
            raise normalize_service_error(exc, operation="update customer status") from exc
        finally:
            self.session.cache.invalidate(query_keys.CUSTOMERS)
        logger.info("customer_status_update_success", extra={"customer_id": customer_id})
        return result

    def update_verification(
        self,
        customer_id: str,
        status: VerificationStatus | str,
        *,
        rejection_reason: str | None = None,
        credit_limit: float | None = None,
        current_status: VerificationStatus | str | None = None,
    ) -> Customer | None:
        try:
            target = VerificationStatus(status)
            source = VerificationStatus(current_status) if current_status else self._current_status(customer_id)
            cleaned = VERIFICATION_GATE.check(source, target, {"rejection_reason": rejection_reason})
            reason = cleaned.get("rejection_reason") or None
            result = self.session.mutations.mutate(
                customer_id,
                {"verification_status": target},
                request=lambda: self.session.customers_client().update_verification(
                    customer_id,
                    target,
                    credit_limit=credit_limit,
                    rejection_reason=reason,
                ),
                operation="verify customer",
                queries_to_update=[query_keys.CUSTOMERS],
                queries_to_invalidate=[query_keys.CUSTOMERS],
            )
        except Exception as exc:
            raise normalize_service_error(exc, operation="verify customer") from exc
        logger.info(
            "customer_verification_success",
            extra={"customer_id": customer_id, "to_status": target.value},
        )
        return result

    def save_filters(self, filters: Mapping[str, Any]) -> None:
        self.session.filter_store.save("customers", filters)

    def saved_filters(self) -> dict[str, Any]:
        return self.session.filter_store.load("customers")

    def _fetch_customers(self, query: ListQuery) -> ListPage[Customer]:
        listing = self.session.customers_client().list_customers()
        items = [customer for customer in listing if matches_customer(customer, query.filters)]
        return paginate_items(items, query.page, query.page_size)

    def _current_status(self, customer_id: str) -> VerificationStatus:
        for query in self.session.cache.entries(query_keys.CUSTOMERS):
            record = find_record(self.session.cache.get_data(query), customer_id)
            if record is not None:
                return record.verification_status
        raise VERIFICATION_GATE.unknown_source(customer_id)
