from __future__ import annotations

import logging
from typing import Any, Mapping

from .. import query_keys
from ..envelopes import ListPage
from ..list_cache import CacheState
from ..models_prescriptions import (
    Prescription,
    PrescriptionFile,
    PrescriptionStatus,
    PrescriptionStatusUpdate,
)
from ..optimistic import find_record
from ..pagination import ListQuery, build_query
from ..session import AdminSession
from ..status_gate import (
    PRESCRIPTION_GATE,
    PrescriptionActionAvailability,
    prescription_action_availability,
)
from .errors import normalize_service_error

logger = logging.getLogger(__name__)

PRESCRIPTION_PAGE_SIZE = 10

_REVIEW_TITLES = {
    PrescriptionStatus.APPROVED: "Prescription approved",
    PrescriptionStatus.REJECTED: "Prescription rejected",
    PrescriptionStatus.NEEDS_CLARIFICATION: "Clarification requested",
    PrescriptionStatus.PENDING_VERIFICATION: "Prescription updated",
}


class PrescriptionService:
    def __init__(self, session: AdminSession) -> None:
        self.session = session

    def load_prescriptions(
        self,
        filters: Mapping[str, Any] | None = None,
        page: int = 1,
        page_size: int = PRESCRIPTION_PAGE_SIZE,
    ) -> CacheState:
        query = build_query(query_keys.PRESCRIPTIONS, filters, page, page_size)
        return self.session.cache.get(query, self._fetch_prescriptions)

    def actions_for(self, prescription: Prescription, *, can_review: bool = True) -> PrescriptionActionAvailability:
        return prescription_action_availability(prescription.status, can_review=can_review)

    def review(
        self,
        prescription_id: str,
        status: PrescriptionStatus | str,
        *,
        rejection_reason: str | None = None,
        clarification_request: str | None = None,
        notes: str | None = None,
        current_status: PrescriptionStatus | str | None = None,
    ) -> Prescription | None:
        try:
            target = PrescriptionStatus(status)
            source = PrescriptionStatus(current_status) if current_status else self._current_status(prescription_id)
            cleaned = PRESCRIPTION_GATE.check(
                source,
                target,
                {
                    "rejection_reason": rejection_reason,
                    "clarification_request": clarification_request,
                    "notes": notes,
                },
            )
            update = PrescriptionStatusUpdate(
                status=target,
                rejection_reason=cleaned.get("rejection_reason") or None,
                clarification_request=cleaned.get("clarification_request") or None,
                notes=cleaned.get("notes") or None,
            )
            patch = update.model_dump(exclude_none=True)
            logger.info(
                "prescription_review_attempt",
                extra={"prescription_id": prescription_id, "from_status": source.value, "to_status": target.value},
            )
            result = self.session.mutations.mutate(
                prescription_id,
                patch,
                request=lambda: self.session.prescriptions_client().update_status(prescription_id, update),
                operation="update prescription",
                queries_to_update=[query_keys.PRESCRIPTIONS],
                queries_to_invalidate=[query_keys.PRESCRIPTIONS],
            )
        except Exception as exc:
            raise normalize_service_error(exc, operation="update prescription") from exc
        logger.info(
            "prescription_review_success",
            extra={"prescription_id": prescription_id, "to_status": target.value},
        )
        self.session.notifications.success(_REVIEW_TITLES[target], "Prescription status updated", prescription_id=prescription_id)
        return result

    def approve(self, prescription: Prescription, *, notes: str | None = None) -> Prescription | None:
        return self.review(prescription.id, PrescriptionStatus.APPROVED, notes=notes, current_status=prescription.status)

    def reject(self, prescription: Prescription, reason: str, *, notes: str | None = None) -> Prescription | None:
        return self.review(
            prescription.id,
            PrescriptionStatus.REJECTED,
            rejection_reason=reason,
            notes=notes,
            current_status=prescription.status,
        )

    def request_clarification(self, prescription: Prescription, request: str) -> Prescription | None:
        return self.review(
            prescription.id,
            PrescriptionStatus.NEEDS_CLARIFICATION,
            clarification_request=request,
            current_status=prescription.status,
        )

    def list_files(self, prescription_id: str) -> list[PrescriptionFile]:
        try:
            return self.session.prescriptions_client().list_files(prescription_id)
        except Exception as exc:
            raise normalize_service_error(exc, operation="load prescription files") from exc

    def upload_document(
        self,
        prescription_id: str,
        *,
        user_id: str,
        file_name: str,
        content: bytes,
        content_type: str,
    ) -> Prescription | None:
        try:
            result = self.session.prescriptions_client().upload_document(
                prescription_id,
                user_id=user_id,
                file_name=file_name,
                content=content,
                content_type=content_type,
            )
        except Exception as exc:
            logger.warning("prescription_upload_failed", extra={"prescription_id": prescription_id, "error": str(exc)})
            raise normalize_service_error(exc, operation="upload prescription") from exc
        self.session.cache.invalidate(query_keys.PRESCRIPTIONS)
        logger.info("prescription_upload_success", extra={"prescription_id": prescription_id, "size": len(content)})
        return result

    def save_filters(self, filters: Mapping[str, Any]) -> None:
        self.session.filter_store.save("prescriptions", filters)

    def saved_filters(self) -> dict[str, Any]:
        return self.session.filter_store.load("prescriptions")

    def _fetch_prescriptions(self, query: ListQuery) -> ListPage[Prescription]:
        filters = query.filters
        has_file = filters.get("has_file")
        return self.session.prescriptions_client().list_prescriptions(
            page=query.page,
            limit=query.page_size,
            status=filters.get("status"),
            search=filters.get("search"),
            has_file=has_file if isinstance(has_file, bool) else None,
            start_date=filters.get("start_date"),
            end_date=filters.get("end_date"),
        )

    def _current_status(self, prescription_id: str) -> PrescriptionStatus:
        for query in self.session.cache.entries(query_keys.PRESCRIPTIONS):
            record = find_record(self.session.cache.get_data(query), prescription_id)
            if record is not None:
                return record.status
        # no detail endpoint to ask
        raise PRESCRIPTION_GATE.unknown_source(prescription_id)
