from __future__ import annotations

from dataclasses import dataclass

from .exceptions import ApiError
from .validation import ClientValidationError


@dataclass(frozen=True)
class UserFacingError:
    message: str
    details: str | None = None
    trace_id: str | None = None
    field: str | None = None


def to_user_facing_error(exc: Exception, *, operation: str | None = None) -> UserFacingError:
    """Turn SDK errors into toast text; ``operation`` feeds the generic fallback."""
    fallback = f"Failed to {operation}" if operation else "Request failed"
    if isinstance(exc, ClientValidationError):
        issue = exc.issues[0] if exc.issues else None
        return UserFacingError(
            message=issue.reason if issue else str(exc),
            details=str(exc),
            field=issue.field if issue else None,
        )
    if isinstance(exc, ApiError):
        primary = exc.message.strip() or fallback
        details = f"{exc.code} (HTTP {exc.status_code})"
        if exc.details:
            details = f"{details}: {exc.details}"
        return UserFacingError(message=primary, details=details, trace_id=exc.trace_id)
    return UserFacingError(message=str(exc).strip() or fallback)
