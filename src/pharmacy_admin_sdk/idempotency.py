from __future__ import annotations

import uuid

IDEMPOTENCY_PREFIX = "ui-"


def new_idempotency_key() -> str:
    return f"{IDEMPOTENCY_PREFIX}{uuid.uuid4()}"


def resolve_idempotency_key(idempotency_key: str | None = None) -> str:
    key = (idempotency_key or "").strip()
    return key or new_idempotency_key()
