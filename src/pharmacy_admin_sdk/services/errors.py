from __future__ import annotations

from dataclasses import dataclass

from ..exceptions import ApiError
from ..ui_errors import to_user_facing_error
from ..validation import ClientValidationError


@dataclass(frozen=True)
class AdminServiceError(RuntimeError):
    message: str
    details: str | None = None
    trace_id: str | None = None
    field: str | None = None
    cause_type: str | None = None

    def __str__(self) -> str:
        return self.message


def normalize_service_error(exc: Exception, *, operation: str | None = None) -> AdminServiceError:
    if isinstance(exc, AdminServiceError):
        return exc
    user_facing = to_user_facing_error(exc, operation=operation)
    if isinstance(exc, ClientValidationError):
        return AdminServiceError(
            message=user_facing.message,
            details="CLIENT_VALIDATION",
            field=user_facing.field,
            cause_type=type(exc).__name__,
        )
    if isinstance(exc, ApiError):
        return AdminServiceError(
            message=user_facing.message,
            details=user_facing.details,
            trace_id=user_facing.trace_id,
            cause_type=type(exc).__name__,
        )
    return AdminServiceError(message=user_facing.message, cause_type=type(exc).__name__)
