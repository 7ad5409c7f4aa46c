from __future__ import annotations

import json
from urllib.parse import parse_qs, urlparse

import pytest
import responses

from conftest import BASE_URL
from pharmacy_admin_sdk import load_config
from pharmacy_admin_sdk.clients.prescriptions_client import PrescriptionsClient, build_storage_key
from pharmacy_admin_sdk.exceptions import UploadError
from pharmacy_admin_sdk.http_client import CSRF_HEADER, HttpClient
from pharmacy_admin_sdk.models_prescriptions import (
    FileKind,
    PrescriptionStatus,
    PrescriptionStatusUpdate,
    infer_file_kind,
    prescription_status_from_api,
)
from pharmacy_admin_sdk.validation import ClientValidationError

STORAGE_URL = "https://storage.example.test/upload/signed"


def _prescriptions() -> PrescriptionsClient:
    return PrescriptionsClient(http=HttpClient(load_config()), access_token="admin-token")


def _api_prescription(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "id": "rx1",
        "orderId": "o1",
        "status": "PENDING",
        "imageUrl": "https://cdn.example.test/rx1.jpg",
        "order": {"orderNumber": "ORD-001", "customerId": "c1"},
        "customer": {"contactName": "Ada Obi", "email": "ada@example.test"},
    }
    payload.update(overrides)
    return payload


@responses.activate
def test_list_prescriptions_maps_status_and_flattens() -> None:
    responses.add(
        responses.GET,
        f"{BASE_URL}/api/prescriptions",
        json={
            "success": True,
            "data": {
                "prescriptions": [_api_prescription(), _api_prescription(id="rx2", status="SOMETHING_NEW")],
                "pagination": {"page": 1, "limit": 10, "total": 2, "totalPages": 1},
            },
        },
    )
    page = _prescriptions().list_prescriptions(
        status=PrescriptionStatus.NEEDS_CLARIFICATION,
        search="ada",
        has_file=True,
        start_date="2024-01-01T00:00:00.000+00:00",
    )
    first = page.items[0]
    assert first.status is PrescriptionStatus.PENDING_VERIFICATION
    assert first.order_number == "ORD-001"
    assert first.customer_id == "c1"
    assert first.customer_name == "Ada Obi"
    assert first.file_url == "https://cdn.example.test/rx1.jpg"
    assert page.items[1].status is PrescriptionStatus.PENDING_VERIFICATION
    query = parse_qs(urlparse(responses.calls[0].request.url).query)
    assert query["status"] == ["CLARIFICATION"]
    assert query["hasFile"] == ["true"]
    assert query["limit"] == ["10"]
    assert query["startDate"] == ["2024-01-01T00:00:00.000+00:00"]
    assert "endDate" not in query


@responses.activate
def test_update_status_sends_csrf_and_api_status() -> None:
    responses.add(responses.GET, f"{BASE_URL}/api/prescriptions/csrf", json={"csrfToken": "csrf-1"})
    responses.add(
        responses.PATCH,
        f"{BASE_URL}/api/prescriptions/rx1",
        json={"success": True, "data": {"prescription": _api_prescription(status="REJECTED", rejectionReason="blurry")}},
    )
    update = PrescriptionStatusUpdate(status=PrescriptionStatus.REJECTED, rejection_reason="blurry")
    result = _prescriptions().update_status("rx1", update)
    assert result is not None
    assert result.status is PrescriptionStatus.REJECTED
    patch = responses.calls[1].request
    assert patch.headers[CSRF_HEADER] == "csrf-1"
    assert json.loads(patch.body) == {"status": "REJECTED", "rejectionReason": "blurry"}


def test_status_update_body_for_clarification() -> None:
    update = PrescriptionStatusUpdate(
        status=PrescriptionStatus.NEEDS_CLARIFICATION,
        clarification_request="Which strength?",
        notes="called pharmacy",
    )
    assert update.to_api_body() == {
        "status": "CLARIFICATION",
        "notes": "called pharmacy",
        "clarificationRequest": "Which strength?",
    }


@responses.activate
def test_list_files_infers_kind() -> None:
    responses.add(
        responses.GET,
        f"{BASE_URL}/api/prescriptions/rx1/files",
        json={
            "success": True,
            "data": {
                "files": [
                    {"url": "https://cdn.example.test/a.pdf?token=1", "contentType": None},
                    {"url": "https://cdn.example.test/b", "contentType": "image/png"},
                    {"url": "https://cdn.example.test/c.bin", "kind": "other", "exists": False},
                ]
            },
        },
    )
    files = _prescriptions().list_files("rx1")
    assert [item.resolved_kind() for item in files] == [FileKind.PDF, FileKind.IMAGE, FileKind.OTHER]
    assert files[2].exists is False


@responses.activate
def test_upload_document_three_steps() -> None:
    responses.add(responses.POST, f"{BASE_URL}/api/uploads/signed-upload-url", json={"signedUrl": STORAGE_URL})
    responses.add(responses.PUT, STORAGE_URL, status=200)
    responses.add(responses.GET, f"{BASE_URL}/api/prescriptions/csrf", json={"csrfToken": "csrf-2"})
    responses.add(
        responses.PATCH,
        f"{BASE_URL}/api/prescriptions/rx1/document",
        json={"success": True, "data": {"prescription": _api_prescription()}},
    )
    result = _prescriptions().upload_document(
        "rx1",
        user_id="u1",
        file_name="Scan.PDF",
        content=b"%PDF-1.4",
        content_type="application/pdf",
    )
    assert result is not None and result.id == "rx1"

    signed_query = parse_qs(urlparse(responses.calls[0].request.url).query)
    assert signed_query["bucket"] == ["prescriptions"]
    assert signed_query["contentType"] == ["application/pdf"]
    storage_key = signed_query["path"][0]
    assert storage_key.startswith("u1/rx1/")
    assert storage_key.endswith(".pdf")

    assert responses.calls[1].request.body == b"%PDF-1.4"
    assert responses.calls[1].request.headers["Content-Type"] == "application/pdf"
    attach = json.loads(responses.calls[3].request.body)
    assert attach == {"documentKey": storage_key, "fileName": "Scan.PDF", "fileSize": 8}
    assert responses.calls[3].request.headers[CSRF_HEADER] == "csrf-2"


@responses.activate
def test_upload_document_stops_when_storage_rejects() -> None:
    responses.add(responses.POST, f"{BASE_URL}/api/uploads/signed-upload-url", json={"signedUrl": STORAGE_URL})
    responses.add(responses.PUT, STORAGE_URL, status=403, body="expired")
    with pytest.raises(UploadError):
        _prescriptions().upload_document(
            "rx1", user_id="u1", file_name="scan.png", content=b"png", content_type="image/png"
        )
    assert len(responses.calls) == 2


def test_upload_document_rejects_empty_file() -> None:
    with pytest.raises(ClientValidationError):
        _prescriptions().upload_document("rx1", user_id="u1", file_name="scan.png", content=b"", content_type="image/png")


def test_build_storage_key_layout() -> None:
    assert build_storage_key("u1", "rx1", "photo.JPG", now=1.5) == "u1/rx1/1500.jpg"
    assert build_storage_key("u1", "rx1", "noext", now=2) == "u1/rx1/2000.pdf"


def test_status_mapping_boundary() -> None:
    assert prescription_status_from_api("CLARIFICATION") is PrescriptionStatus.NEEDS_CLARIFICATION
    assert prescription_status_from_api(None) is PrescriptionStatus.PENDING_VERIFICATION
    assert prescription_status_from_api("APPROVED") is PrescriptionStatus.APPROVED
    assert infer_file_kind("https://x.test/file.webp") is FileKind.IMAGE
