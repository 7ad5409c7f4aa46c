from __future__ import annotations

import pytest

from pharmacy_admin_sdk.error_mapper import extract_error_fields, map_error
from pharmacy_admin_sdk.exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    NotFoundError,
    PermissionError,
    RateLimitError,
    ServerError,
    ValidationError,
)


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (400, ValidationError),
        (401, AuthError),
        (403, PermissionError),
        (404, NotFoundError),
        (409, ConflictError),
        (422, ValidationError),
        (429, RateLimitError),
        (500, ServerError),
        (503, ServerError),
        (418, ApiError),
    ],
)
def test_map_error_status_classes(status: int, expected: type[ApiError]) -> None:
    error = map_error(status, {"error": "nope"})
    assert type(error) is expected
    assert error.status_code == status


def test_map_error_reads_plain_error_string() -> None:
    error = map_error(404, {"error": "Product not found"})
    assert error.message == "Product not found"
    assert error.code == "HTTP_ERROR"


def test_map_error_reads_nested_error_object() -> None:
    payload = {"success": False, "error": {"code": "INVALID_STATUS", "message": "Bad status", "details": ["x"]}}
    error = map_error(400, payload, trace_id="req-1")
    assert error.code == "INVALID_STATUS"
    assert error.message == "Bad status"
    assert error.details == ["x"]
    assert error.trace_id == "req-1"


def test_map_error_falls_back_to_operation_message() -> None:
    error = map_error(500, {}, fallback_message="Failed to update stock")
    assert error.message == "Failed to update stock"


def test_map_error_prefers_payload_request_id() -> None:
    error = map_error(500, {"message": "boom", "requestId": "abc"}, trace_id="header-id")
    assert error.trace_id == "abc"
    assert "trace_id=abc" in str(error)


def test_extract_error_fields_flat_body() -> None:
    assert extract_error_fields({"code": "C", "message": "M", "details": 1}) == ("C", "M", 1)
