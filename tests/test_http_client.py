from __future__ import annotations

import json

import pytest
import requests
import responses

from conftest import BASE_URL
from pharmacy_admin_sdk import load_config
from pharmacy_admin_sdk.exceptions import NotFoundError, ServerError, TransportError, UploadError
from pharmacy_admin_sdk.http_client import CSRF_HEADER, HttpClient


def _client(base_url: str = BASE_URL) -> HttpClient:
    cfg = load_config()
    object.__setattr__(cfg, "api_base_url", base_url)
    return HttpClient(cfg)


@responses.activate
def test_get_returns_json_and_records_operation() -> None:
    responses.add(
        responses.GET,
        f"{BASE_URL}/api/admin/products",
        json=[{"id": "p1"}],
        headers={"X-Request-ID": "req-42"},
    )
    client = _client()
    payload = client.request("GET", "/api/admin/products", module="inventory", operation="fetch_products")
    assert payload == [{"id": "p1"}]
    assert client.last_operation is not None
    assert client.last_operation.result == "success"
    assert client.last_operation.trace_id == "req-42"


@responses.activate
def test_error_uses_operation_fallback_message() -> None:
    responses.add(responses.PUT, f"{BASE_URL}/api/admin/orders/o1/status", status=404, body="")
    client = _client()
    with pytest.raises(NotFoundError) as excinfo:
        client.request("PUT", "/api/admin/orders/o1/status", json_body={"status": "READY"}, operation="update_order_status")
    assert excinfo.value.message == "Failed to update order status"


@responses.activate
def test_get_retries_server_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PHARMACY_ADMIN_RETRIES", "2")
    responses.add(responses.GET, f"{BASE_URL}/api/admin/orders", status=502, json={"error": "bad gateway"})
    responses.add(responses.GET, f"{BASE_URL}/api/admin/orders", status=502, json={"error": "bad gateway"})
    responses.add(responses.GET, f"{BASE_URL}/api/admin/orders", json=[])
    client = _client()
    assert client.request("GET", "/api/admin/orders") == []
    assert len(responses.calls) == 3


@responses.activate
def test_mutations_are_not_retried(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PHARMACY_ADMIN_RETRIES", "2")
    responses.add(responses.PUT, f"{BASE_URL}/api/admin/products/p1/stock", status=500, json={"error": "Failed to update stock"})
    client = _client()
    with pytest.raises(ServerError) as excinfo:
        client.request("PUT", "/api/admin/products/p1/stock", json_body={"stockQuantity": 1})
    assert excinfo.value.message == "Failed to update stock"
    assert len(responses.calls) == 1


@responses.activate
def test_transport_failure_raises_transport_error() -> None:
    responses.add(
        responses.GET,
        f"{BASE_URL}/api/admin/customers",
        body=requests.ConnectionError("connection refused"),
    )
    client = _client()
    with pytest.raises(TransportError) as excinfo:
        client.request("GET", "/api/admin/customers", operation="fetch_customers")
    assert excinfo.value.status_code == 0
    assert client.normalize_error(excinfo.value).type == "network"


@responses.activate
def test_csrf_token_from_body_is_sent() -> None:
    responses.add(responses.GET, f"{BASE_URL}/api/prescriptions/csrf", json={"csrfToken": "tok-1"})
    responses.add(responses.PATCH, f"{BASE_URL}/api/prescriptions/rx1", json={"success": True})
    client = _client()
    client.request("PATCH", "/api/prescriptions/rx1", json_body={"status": "APPROVED"}, csrf_path="/api/prescriptions/csrf")
    assert responses.calls[1].request.headers[CSRF_HEADER] == "tok-1"
    assert json.loads(responses.calls[1].request.body) == {"status": "APPROVED"}


@responses.activate
def test_csrf_token_falls_back_to_header() -> None:
    responses.add(
        responses.GET,
        f"{BASE_URL}/api/prescriptions/csrf",
        json={},
        headers={CSRF_HEADER: "tok-header"},
    )
    client = _client()
    assert client.fetch_csrf_token("/api/prescriptions/csrf") == "tok-header"


@responses.activate
def test_missing_csrf_token_still_sends_request() -> None:
    responses.add(responses.GET, f"{BASE_URL}/api/prescriptions/csrf", status=500)
    responses.add(responses.PATCH, f"{BASE_URL}/api/prescriptions/rx1", json={"success": True})
    client = _client()
    client.request("PATCH", "/api/prescriptions/rx1", json_body={"status": "APPROVED"}, csrf_path="/api/prescriptions/csrf")
    assert CSRF_HEADER not in responses.calls[1].request.headers


@responses.activate
def test_empty_success_body_returns_none() -> None:
    responses.add(responses.PUT, f"{BASE_URL}/api/admin/customers/c1/status", status=204)
    assert _client().request("PUT", "/api/admin/customers/c1/status", json_body={"status": "ACTIVE"}) is None


@responses.activate
def test_put_bytes_failure_raises_upload_error() -> None:
    responses.add(responses.PUT, "https://storage.example.test/upload/abc", status=403, body="denied")
    with pytest.raises(UploadError) as excinfo:
        _client().put_bytes("https://storage.example.test/upload/abc", b"data", content_type="application/pdf")
    assert excinfo.value.status_code == 403
    assert excinfo.value.details == "denied"
