from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ApiError(Exception):
    code: str
    message: str
    details: object | None
    trace_id: str | None
    status_code: int
    raw_payload: object | None = None

    def __str__(self) -> str:
        trace = f" trace_id={self.trace_id}" if self.trace_id else ""
        return f"[{self.status_code}] {self.code}: {self.message}{trace}"


class UnauthorizedError(ApiError):
    pass


class ForbiddenError(ApiError):
    pass


class NotFoundError(ApiError):
    pass


class ValidationError(ApiError):
    """400/422 rejected by the server-side schema."""


class AuthError(UnauthorizedError):
    """Session missing or expired; handled by the surrounding auth layer."""


class PermissionError(ForbiddenError):
    """Admin or pharmacist role required."""


class ConflictError(ApiError):
    pass


class RateLimitError(ApiError):
    """Prescription view/update endpoints are rate limited."""


class ServerError(ApiError):
    pass


class TransportError(ApiError):
    """Network/transport failure before an HTTP response was returned."""


class UploadError(ApiError):
    """Direct PUT to object storage failed."""
