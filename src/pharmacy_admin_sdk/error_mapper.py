from __future__ import annotations

from typing import Any, Mapping

from .exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    NotFoundError,
    PermissionError,
    RateLimitError,
    ServerError,
    ValidationError,
)

_STATUS_ERRORS: dict[int, type[ApiError]] = {
    401: AuthError,
    403: PermissionError,
    404: NotFoundError,
    400: ValidationError,
    422: ValidationError,
    409: ConflictError,
    429: RateLimitError,
}


def extract_error_fields(payload: Mapping[str, Any]) -> tuple[str | None, str | None, object | None]:
    """Pull (code, message, details) out of the API's error envelopes.

    Handlers answer with either ``{"error": "text"}``,
    ``{"success": false, "error": {"code", "message", "details"}}`` or a flat
    ``{"code", "message", "details"}`` body.
    """
    error = payload.get("error")
    if isinstance(error, Mapping):
        return (
            _as_text(error.get("code")),
            _as_text(error.get("message")),
            error.get("details"),
        )
    message = _as_text(payload.get("message")) or _as_text(error)
    return _as_text(payload.get("code")), message, payload.get("details")


def map_error(
    status_code: int,
    payload: Mapping[str, Any] | None,
    trace_id: str | None = None,
    *,
    fallback_message: str = "Request failed",
) -> ApiError:
    payload = payload or {}
    code, message, details = extract_error_fields(payload)
    payload_trace_id = payload.get("trace_id") or payload.get("requestId")
    resolved_trace_id = str(payload_trace_id) if payload_trace_id is not None else trace_id
    mapped = _STATUS_ERRORS.get(status_code)
    if mapped is None:
        mapped = ServerError if status_code >= 500 else ApiError
    return mapped(
        code=code or "HTTP_ERROR",
        message=message or fallback_message,
        details=details,
        trace_id=resolved_trace_id,
        status_code=status_code,
        raw_payload=dict(payload),
    )


def _as_text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
