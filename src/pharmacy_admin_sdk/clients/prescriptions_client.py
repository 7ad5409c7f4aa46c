from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

from ..envelopes import ListPage, normalize_list
from ..models_prescriptions import (
    DocumentAttachRequest,
    Prescription,
    PrescriptionFile,
    PrescriptionStatus,
    PrescriptionStatusUpdate,
    SignedUploadUrl,
    prescription_status_to_api,
)
from ..validation import coerce_model, raise_issue
from .base import BaseClient, expect_object

PRESCRIPTIONS_PATH = "/api/prescriptions"
CSRF_PATH = f"{PRESCRIPTIONS_PATH}/csrf"
UPLOAD_BUCKET = "prescriptions"


@dataclass
class PrescriptionsClient(BaseClient):
    def list_prescriptions(
        self,
        *,
        page: int = 1,
        limit: int = 10,
        status: PrescriptionStatus | str | None = None,
        search: str | None = None,
        has_file: bool | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> ListPage[Prescription]:
        params: dict[str, Any] = {"page": page, "limit": limit}
        if status:
            params["status"] = prescription_status_to_api(status)
        if search:
            params["search"] = search
        if isinstance(has_file, bool):
            params["hasFile"] = "true" if has_file else "false"
        if start_date:
            params["startDate"] = start_date
        if end_date:
            params["endDate"] = end_date
        payload = self._request(
            "GET",
            PRESCRIPTIONS_PATH,
            params=params,
            module="prescriptions",
            operation="fetch_prescriptions",
        )
        return normalize_list(payload, "prescriptions", Prescription.from_api, page=page, page_size=limit)

    def update_status(self, prescription_id: str, update: PrescriptionStatusUpdate) -> Prescription | None:
        payload = self._request(
            "PATCH",
            f"{PRESCRIPTIONS_PATH}/{prescription_id}",
            json_body=update.to_api_body(),
            csrf_path=CSRF_PATH,
            module="prescriptions",
            operation="update_prescription",
        )
        return _prescription_or_none(payload)

    def list_files(self, prescription_id: str) -> list[PrescriptionFile]:
        payload = self._request(
            "GET",
            f"{PRESCRIPTIONS_PATH}/{prescription_id}/files",
            module="prescriptions",
            operation="fetch_prescription_files",
        )
        data = expect_object(payload, "prescription files").get("data") or {}
        files = data.get("files") if isinstance(data, dict) else None
        return [PrescriptionFile.model_validate(item) for item in files or [] if isinstance(item, dict)]

    def request_upload_url(self, storage_key: str, content_type: str) -> SignedUploadUrl:
        payload = self._request(
            "POST",
            "/api/uploads/signed-upload-url",
            params={"bucket": UPLOAD_BUCKET, "path": storage_key, "contentType": content_type},
            module="prescriptions",
            operation="request_upload_url",
        )
        return SignedUploadUrl.model_validate(expect_object(payload, "signed upload url"))

    def attach_document(self, prescription_id: str, request: DocumentAttachRequest) -> Prescription | None:
        payload = self._request(
            "PATCH",
            f"{PRESCRIPTIONS_PATH}/{prescription_id}/document",
            json_body=request.model_dump(by_alias=True, exclude_none=True, mode="json"),
            csrf_path=CSRF_PATH,
            module="prescriptions",
            operation="attach_prescription_document",
        )
        return _prescription_or_none(payload)

    def upload_document(
        self,
        prescription_id: str,
        *,
        user_id: str,
        file_name: str,
        content: bytes,
        content_type: str,
    ) -> Prescription | None:
        """Signed URL, direct PUT of the bytes, then record the storage key."""
        if not content:
            raise_issue("content", "file is empty")
        storage_key = build_storage_key(user_id, prescription_id, file_name)
        signed = self.request_upload_url(storage_key, content_type)
        self.http.put_bytes(signed.signed_url, content, content_type=content_type)
        attach = coerce_model(
            {"documentKey": storage_key, "fileName": file_name, "fileSize": len(content)},
            DocumentAttachRequest,
        )
        return self.attach_document(prescription_id, attach)


def build_storage_key(user_id: str, prescription_id: str, file_name: str, *, now: float | None = None) -> str:
    """``<user>/<prescription>/<epoch millis>.<ext>``, the layout the document handler expects."""
    timestamp = int((time.time() if now is None else now) * 1000)
    ext = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else "pdf"
    return f"{user_id}/{prescription_id}/{timestamp}.{ext}"


def _prescription_or_none(payload: Any) -> Prescription | None:
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    record = data.get("prescription") if isinstance(data, dict) else payload.get("prescription")
    if not isinstance(record, dict) or "id" not in record:
        return None
    return Prescription.from_api(record)
