from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping

from .models_customers import VerificationStatus
from .models_orders import OrderStatus
from .models_prescriptions import PrescriptionStatus
from .validation import ClientValidationError, ValidationIssue


class TransitionNotAllowedError(ClientValidationError):
    pass


class TransitionValidationError(ClientValidationError):
    pass


@dataclass(frozen=True)
class StatusTransition:
    source: str
    target: str
    required_fields: frozenset[str] = frozenset()


def _value(status: Enum | str) -> str:
    return status.value if isinstance(status, Enum) else str(status).strip().upper()


class StatusTransitionGate:
    """Static transition table for one status domain. Pure; no side effects."""

    def __init__(self, name: str, transitions: Iterable[StatusTransition]) -> None:
        self.name = name
        self._targets: dict[str, tuple[str, ...]] = {}
        self._required: dict[str, frozenset[str]] = {}
        for transition in transitions:
            self._targets[transition.source] = self._targets.get(transition.source, ()) + (transition.target,)
            known = self._required.get(transition.target)
            if known is not None and known != transition.required_fields:
                raise ValueError(f"{name}: conflicting required fields for {transition.target}")
            self._required[transition.target] = transition.required_fields

    def can_transition(self, source: Enum | str, target: Enum | str) -> bool:
        return _value(target) in self._targets.get(_value(source), ())

    def allowed_targets(self, source: Enum | str) -> tuple[str, ...]:
        return self._targets.get(_value(source), ())

    def is_terminal(self, status: Enum | str) -> bool:
        return not self._targets.get(_value(status))

    def required_fields(self, target: Enum | str) -> frozenset[str]:
        return self._required.get(_value(target), frozenset())

    def validate(self, target: Enum | str, payload: Mapping[str, Any] | None = None) -> dict[str, Any]:
        cleaned = {
            key: value.strip() if isinstance(value, str) else value
            for key, value in (payload or {}).items()
        }
        issues = [
            ValidationIssue(row_index=None, field=field, reason=f"{field} is required for {_value(target)}")
            for field in sorted(self.required_fields(target))
            if not cleaned.get(field)
        ]
        if issues:
            raise TransitionValidationError(issues)
        return cleaned

    def unknown_source(self, record_id: str) -> TransitionNotAllowedError:
        return TransitionNotAllowedError(
            [
                ValidationIssue(
                    row_index=None,
                    field="status",
                    reason=f"current {self.name} status of {record_id} is unknown; reload the list first",
                )
            ]
        )

    def check(
        self,
        source: Enum | str,
        target: Enum | str,
        payload: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        if not self.can_transition(source, target):
            raise TransitionNotAllowedError(
                [
                    ValidationIssue(
                        row_index=None,
                        field="status",
                        reason=f"{self.name} cannot move from {_value(source)} to {_value(target)}",
                    )
                ]
            )
        return self.validate(target, payload)


_REJECTION = frozenset({"rejection_reason"})
_CLARIFICATION = frozenset({"clarification_request"})

PRESCRIPTION_GATE = StatusTransitionGate(
    "prescription",
    [
        StatusTransition(PrescriptionStatus.PENDING_VERIFICATION.value, PrescriptionStatus.APPROVED.value),
        StatusTransition(PrescriptionStatus.PENDING_VERIFICATION.value, PrescriptionStatus.REJECTED.value, _REJECTION),
        StatusTransition(
            PrescriptionStatus.PENDING_VERIFICATION.value,
            PrescriptionStatus.NEEDS_CLARIFICATION.value,
            _CLARIFICATION,
        ),
        StatusTransition(PrescriptionStatus.NEEDS_CLARIFICATION.value, PrescriptionStatus.APPROVED.value),
        StatusTransition(PrescriptionStatus.NEEDS_CLARIFICATION.value, PrescriptionStatus.REJECTED.value, _REJECTION),
    ],
)

_ORDER_PATH = (
    OrderStatus.RECEIVED,
    OrderStatus.PROCESSING,
    OrderStatus.READY,
    OrderStatus.DISPATCHED,
    OrderStatus.DELIVERED,
)

ORDER_GATE = StatusTransitionGate(
    "order",
    [StatusTransition(src.value, dst.value) for src, dst in zip(_ORDER_PATH, _ORDER_PATH[1:])]
    + [StatusTransition(src.value, OrderStatus.CANCELLED.value) for src in _ORDER_PATH[:-1]],
)

VERIFICATION_GATE = StatusTransitionGate(
    "customer verification",
    [
        StatusTransition(VerificationStatus.PENDING.value, VerificationStatus.VERIFIED.value),
        StatusTransition(VerificationStatus.PENDING.value, VerificationStatus.REJECTED.value, _REJECTION),
        StatusTransition(VerificationStatus.REJECTED.value, VerificationStatus.VERIFIED.value),
        StatusTransition(VerificationStatus.REJECTED.value, VerificationStatus.PENDING.value),
        StatusTransition(VerificationStatus.VERIFIED.value, VerificationStatus.EXPIRED.value),
        StatusTransition(VerificationStatus.EXPIRED.value, VerificationStatus.VERIFIED.value),
        StatusTransition(VerificationStatus.EXPIRED.value, VerificationStatus.PENDING.value),
    ],
)


@dataclass(frozen=True)
class PrescriptionActionAvailability:
    can_approve: bool
    can_reject: bool
    can_request_clarification: bool


def prescription_action_availability(status: PrescriptionStatus | str, *, can_review: bool) -> PrescriptionActionAvailability:
    if not can_review:
        return PrescriptionActionAvailability(False, False, False)
    return PrescriptionActionAvailability(
        can_approve=PRESCRIPTION_GATE.can_transition(status, PrescriptionStatus.APPROVED),
        can_reject=PRESCRIPTION_GATE.can_transition(status, PrescriptionStatus.REJECTED),
        can_request_clarification=PRESCRIPTION_GATE.can_transition(status, PrescriptionStatus.NEEDS_CLARIFICATION),
    )


@dataclass(frozen=True)
class OrderActionAvailability:
    next_status: OrderStatus | None
    can_advance: bool
    can_cancel: bool
    status_control_enabled: bool


def order_action_availability(status: OrderStatus | str, *, can_manage: bool) -> OrderActionAvailability:
    targets = ORDER_GATE.allowed_targets(status) if can_manage else ()
    forward = [target for target in targets if target != OrderStatus.CANCELLED.value]
    next_status = OrderStatus(forward[0]) if forward else None
    return OrderActionAvailability(
        next_status=next_status,
        can_advance=next_status is not None,
        can_cancel=OrderStatus.CANCELLED.value in targets,
        status_control_enabled=bool(targets),
    )
