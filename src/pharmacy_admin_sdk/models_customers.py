from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from .models import ApiModel


class CustomerType(str, Enum):
    RETAIL = "RETAIL"
    WHOLESALE = "WHOLESALE"
    PHARMACY = "PHARMACY"
    CLINIC = "CLINIC"


class VerificationStatus(str, Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"


class Customer(ApiModel):
    """Admin customer row.

    The list endpoint has shipped several field names for the same value
    (``userName`` vs ``name``, ``businessVerificationStatus`` vs
    ``verificationStatus``); the aliases absorb them here.
    """

    id: str
    name: str | None = Field(default=None, validation_alias=AliasChoices("userName", "name"))
    email: str | None = Field(default=None, validation_alias=AliasChoices("userEmail", "email"))
    phone: str | None = Field(default=None, validation_alias=AliasChoices("phone", "businessPhone"))
    type: CustomerType | str | None = None
    business_name: str | None = None
    business_address: str | None = None
    state: str | None = None
    lga: str | None = None
    license_number: str | None = Field(
        default=None,
        validation_alias=AliasChoices("pharmacyLicense", "licenseNumber", "license_number"),
    )
    tax_id: str | None = None
    verification_status: VerificationStatus = Field(
        default=VerificationStatus.PENDING,
        validation_alias=AliasChoices(
            "businessVerificationStatus",
            "verificationStatus",
            "verification_status",
        ),
    )
    email_verified: bool = False
    phone_verified: bool = False
    is_active: bool = True
    total_orders: int = 0
    total_spent: float = 0.0
    last_order_date: datetime | None = None
    created_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("createdAt", "userCreatedAt", "created_at"),
    )
    updated_at: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_user(cls, data: Any) -> Any:
        # mutation responses embed the account as ``user: {name, email}``
        if isinstance(data, dict) and isinstance(data.get("user"), dict):
            user = data["user"]
            data = dict(data)
            for key, source in (("userName", "name"), ("userEmail", "email")):
                if user.get(source):
                    data.setdefault(key, user[source])
        return data

    @field_validator("verification_status", mode="before")
    @classmethod
    def _normalize_verification(cls, value: Any) -> Any:
        if value is None or value == "":
            return VerificationStatus.PENDING
        if isinstance(value, str):
            return value.strip().upper()
        return value


class CustomerStatusUpdateRequest(ApiModel):
    status: str


class VerificationUpdateRequest(ApiModel):
    status: VerificationStatus
    credit_limit: float | None = Field(default=None, gt=0)
    rejection_reason: str | None = None
