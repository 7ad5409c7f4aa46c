from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .models_inventory import StockAdjustmentRequest

T = TypeVar("T", bound=BaseModel)


@dataclass(frozen=True)
class ValidationIssue:
    row_index: int | None
    field: str
    reason: str


class ClientValidationError(ValueError):
    """Raised before dispatch; nothing was sent and no cache write happened."""

    def __init__(self, issues: list[ValidationIssue]) -> None:
        self.issues = issues
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if not self.issues:
            return "Validation failed"
        issue = self.issues[0]
        location = f"row {issue.row_index}" if issue.row_index is not None else "payload"
        return f"{location} {issue.field}: {issue.reason}"


def raise_issue(field: str, reason: str, row_index: int | None = None) -> None:
    raise ClientValidationError([ValidationIssue(row_index=row_index, field=field, reason=reason)])


def coerce_model(payload: T | Mapping[str, Any], model_type: type[T], row_index: int | None = None) -> T:
    if isinstance(payload, model_type):
        return payload
    try:
        return model_type.model_validate(payload)
    except PydanticValidationError as exc:
        errors = exc.errors()
        issue = errors[0] if errors else {"loc": ("payload",), "msg": "Invalid payload"}
        field = ".".join(str(part) for part in issue.get("loc", ("payload",)))
        raise ClientValidationError(
            [ValidationIssue(row_index=row_index, field=field, reason=str(issue.get("msg", "Invalid payload")))]
        ) from exc


def validate_stock_quantity(value: Any) -> int:
    if isinstance(value, str):
        text = value.strip()
        if not text.lstrip("-").isdigit():
            raise_issue("stock_quantity", "stock quantity must be a whole number")
        value = int(text)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise_issue("stock_quantity", "stock quantity must be a whole number")
    if value < 0:
        raise_issue("stock_quantity", "stock quantity cannot be negative")
    return value


def validate_adjustment(payload: StockAdjustmentRequest | Mapping[str, Any]) -> StockAdjustmentRequest:
    adjustment = coerce_model(payload, StockAdjustmentRequest)
    if adjustment.qty <= 0:
        raise_issue("qty", "Please enter a valid positive quantity.")
    reason = (adjustment.reason or "").strip() or None
    batch_number = (adjustment.batch_number or "").strip() or None
    key = (adjustment.idempotency_key or "").strip() or None
    return adjustment.model_copy(update={"reason": reason, "batch_number": batch_number, "idempotency_key": key})
