from __future__ import annotations

import re
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, Field, field_validator

from .models import ApiModel


class PrescriptionStatus(str, Enum):
    PENDING_VERIFICATION = "PENDING_VERIFICATION"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    NEEDS_CLARIFICATION = "NEEDS_CLARIFICATION"


# Single boundary table between UI statuses and the API enum.
PRESCRIPTION_STATUS_TO_API: dict[PrescriptionStatus, str] = {
    PrescriptionStatus.PENDING_VERIFICATION: "PENDING",
    PrescriptionStatus.APPROVED: "APPROVED",
    PrescriptionStatus.REJECTED: "REJECTED",
    PrescriptionStatus.NEEDS_CLARIFICATION: "CLARIFICATION",
}
PRESCRIPTION_STATUS_FROM_API: dict[str, PrescriptionStatus] = {
    value: key for key, value in PRESCRIPTION_STATUS_TO_API.items()
}


def prescription_status_to_api(status: PrescriptionStatus | str) -> str:
    return PRESCRIPTION_STATUS_TO_API[PrescriptionStatus(status)]


def prescription_status_from_api(value: str | None) -> PrescriptionStatus:
    """Unknown or missing API statuses are shown as pending verification."""
    if not value:
        return PrescriptionStatus.PENDING_VERIFICATION
    normalized = value.strip().upper()
    if normalized in PRESCRIPTION_STATUS_FROM_API:
        return PRESCRIPTION_STATUS_FROM_API[normalized]
    try:
        return PrescriptionStatus(normalized)
    except ValueError:
        return PrescriptionStatus.PENDING_VERIFICATION


class FileKind(str, Enum):
    IMAGE = "image"
    PDF = "pdf"
    OTHER = "other"


_IMAGE_EXT_RE = re.compile(r"\.(jpg|jpeg|png|webp|gif)$", re.IGNORECASE)


def infer_file_kind(url: str | None, content_type: str | None = None) -> FileKind:
    content = (content_type or "").lower()
    path = (url or "").split("?", 1)[0]
    if "pdf" in content or path.lower().endswith(".pdf"):
        return FileKind.PDF
    if "image" in content or _IMAGE_EXT_RE.search(path):
        return FileKind.IMAGE
    return FileKind.OTHER


class Prescription(ApiModel):
    id: str
    order_id: str | None = None
    customer_id: str | None = None
    file_url: str | None = Field(default=None, validation_alias=AliasChoices("fileUrl", "imageUrl", "file_url"))
    file_name: str | None = None
    status: PrescriptionStatus = PrescriptionStatus.PENDING_VERIFICATION
    notes: str | None = None
    rejection_reason: str | None = None
    clarification_request: str | None = None
    order_number: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _map_api_status(cls, value: Any) -> PrescriptionStatus:
        if isinstance(value, PrescriptionStatus):
            return value
        return prescription_status_from_api(str(value) if value is not None else None)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Prescription":
        """Flatten the nested order/customer objects the API embeds."""
        order = payload.get("order") or {}
        customer = payload.get("customer") or {}
        data = dict(payload)
        data.setdefault("customerId", customer.get("id") or order.get("customerId"))
        data.setdefault("orderNumber", order.get("orderNumber"))
        data.setdefault("customerName", customer.get("contactName") or customer.get("name"))
        data.setdefault("customerEmail", customer.get("email"))
        return cls.model_validate(data)


class PrescriptionStatusUpdate(ApiModel):
    status: PrescriptionStatus
    rejection_reason: str | None = None
    clarification_request: str | None = None
    notes: str | None = None

    def to_api_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"status": prescription_status_to_api(self.status)}
        if self.notes:
            body["notes"] = self.notes
        if self.status is PrescriptionStatus.REJECTED:
            body["rejectionReason"] = self.rejection_reason
        if self.status is PrescriptionStatus.NEEDS_CLARIFICATION:
            body["clarificationRequest"] = self.clarification_request
        return body


class PrescriptionFile(ApiModel):
    url: str
    key: str | None = None
    content_type: str | None = None
    size: int | None = None
    last_modified: str | None = None
    uploaded_at: datetime | None = None
    exists: bool | None = None
    kind: FileKind | None = None

    def resolved_kind(self) -> FileKind:
        return self.kind or infer_file_kind(self.url, self.content_type)


class SignedUploadUrl(ApiModel):
    signed_url: str
    path: str | None = None


class DocumentAttachRequest(ApiModel):
    document_key: str
    file_name: str
    file_size: int = Field(ge=0)
