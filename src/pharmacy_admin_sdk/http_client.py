from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter

from .config import ClientConfig
from .error_mapper import map_error
from .exceptions import TransportError, UploadError

logger = logging.getLogger(__name__)

CSRF_HEADER = "X-CSRF-Token"
REQUEST_ID_HEADERS = ("X-Request-ID", "X-Request-Id", "x-request-id")

Payload = dict[str, Any] | list[Any] | None


def _error_type_from_status(status_code: int) -> str:
    if status_code in {401, 403}:
        return "auth"
    if status_code in {400, 404, 422}:
        return "validation"
    if status_code == 409:
        return "conflict"
    if status_code == 429:
        return "rate_limit"
    if status_code <= 0:
        return "network"
    return "internal"


@dataclass(frozen=True)
class NormalizedError:
    code: str
    message: str
    trace_id: str | None
    type: str


@dataclass
class LastOperation:
    module: str
    operation: str
    duration_ms: int
    result: str
    trace_id: str | None


@dataclass
class HttpClient:
    config: ClientConfig
    session: requests.Session | None = None
    last_operation: LastOperation | None = None

    def __post_init__(self) -> None:
        if self.session is None:
            self.session = requests.Session()
            adapter = HTTPAdapter(
                pool_connections=self.config.max_connections,
                pool_maxsize=self.config.max_connections,
            )
            self.session.mount("http://", adapter)
            self.session.mount("https://", adapter)

    def _build_url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        base = self.config.api_base_url.rstrip("/") + "/"
        return urljoin(base, path.lstrip("/"))

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json_body: dict[str, Any] | list[Any] | None = None,
        params: dict[str, Any] | None = None,
        module: str = "unknown",
        operation: str = "unknown",
        csrf_path: str | None = None,
    ) -> Payload:
        if self.session is None:
            raise RuntimeError("HTTP session not initialized")
        request_headers = {"Accept": "application/json"}
        if headers:
            request_headers.update(headers)
        if csrf_path:
            token = self.fetch_csrf_token(csrf_path, headers=headers)
            if token:
                request_headers[CSRF_HEADER] = token

        normalized_method = method.upper()
        url = self._build_url(path)
        can_retry = normalized_method in {"GET", "HEAD"}
        attempts = self.config.retries + 1 if can_retry else 1
        started = time.monotonic()
        response: requests.Response | None = None
        for attempt in range(attempts):
            try:
                response = self.session.request(
                    method=normalized_method,
                    url=url,
                    headers=request_headers,
                    json=json_body,
                    params=params,
                    timeout=(self.config.connect_timeout_seconds, self.config.read_timeout_seconds),
                    verify=self.config.verify_ssl,
                )
            except requests.RequestException as exc:
                if attempt >= attempts - 1:
                    self._record_operation(module, operation, started, "error", None)
                    logger.warning(
                        "http_transport_error",
                        extra={"method": normalized_method, "url": url, "operation": operation},
                    )
                    raise TransportError(
                        code="TRANSPORT_ERROR",
                        message=str(exc),
                        details={"type": type(exc).__name__},
                        trace_id=None,
                        status_code=0,
                        raw_payload=None,
                    ) from exc
            else:
                if response.status_code < 500 or attempt >= attempts - 1:
                    break
            time.sleep(self.config.retry_backoff_seconds * (2**attempt))

        if response is None:
            raise RuntimeError("HTTP request failed without response")

        trace_id = _request_id(response)
        if response.ok:
            self._record_operation(module, operation, started, "success", trace_id)
            if not response.content:
                return None
            return response.json()

        payload: Any
        try:
            payload = response.json()
        except (json.JSONDecodeError, ValueError):
            payload = {"message": response.text}
        if not isinstance(payload, dict):
            payload = {"message": str(payload)}
        self._record_operation(module, operation, started, "error", trace_id)
        logger.info(
            "http_error_response",
            extra={"status_code": response.status_code, "url": url, "operation": operation},
        )
        fallback = f"Failed to {operation.replace('_', ' ')}" if operation != "unknown" else "Request failed"
        raise map_error(response.status_code, payload, trace_id, fallback_message=fallback)

    def fetch_csrf_token(self, path: str, *, headers: dict[str, str] | None = None) -> str | None:
        """Fetch a CSRF token from ``path``.

        The token is read from the ``csrfToken`` body field, falling back to
        the ``X-CSRF-Token`` response header. A failed lookup is logged and
        the mutation is sent without the header; the server decides.
        """
        if self.session is None:
            raise RuntimeError("HTTP session not initialized")
        request_headers = {"Accept": "application/json", **(headers or {})}
        try:
            response = self.session.get(
                self._build_url(path),
                headers=request_headers,
                timeout=(self.config.connect_timeout_seconds, self.config.read_timeout_seconds),
                verify=self.config.verify_ssl,
            )
        except requests.RequestException:
            logger.warning("csrf_token_unavailable", extra={"path": path, "reason": "transport"})
            return None
        if not response.ok:
            logger.warning("csrf_token_unavailable", extra={"path": path, "status_code": response.status_code})
            return None
        token: str | None = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("csrfToken"):
            token = str(body["csrfToken"])
        if not token:
            token = response.headers.get(CSRF_HEADER)
        if not token:
            logger.warning("csrf_token_missing", extra={"path": path})
        return token or None

    def put_bytes(self, url: str, data: bytes, *, content_type: str) -> None:
        """Upload raw bytes to a pre-signed object storage URL."""
        if self.session is None:
            raise RuntimeError("HTTP session not initialized")
        try:
            response = self.session.put(
                url,
                data=data,
                headers={"Content-Type": content_type},
                timeout=(self.config.connect_timeout_seconds, self.config.read_timeout_seconds),
                verify=self.config.verify_ssl,
            )
        except requests.RequestException as exc:
            raise UploadError(
                code="UPLOAD_TRANSPORT_ERROR",
                message=str(exc),
                details={"type": type(exc).__name__},
                trace_id=None,
                status_code=0,
            ) from exc
        if not response.ok:
            raise UploadError(
                code="UPLOAD_FAILED",
                message=f"Failed to upload file ({response.status_code})",
                details=response.text or None,
                trace_id=_request_id(response),
                status_code=response.status_code,
            )

    def normalize_error(self, error: Exception) -> NormalizedError:
        if isinstance(error, TransportError):
            return NormalizedError(
                code=error.code,
                message=error.message,
                trace_id=error.trace_id,
                type="network",
            )
        code = getattr(error, "code", "UNKNOWN_ERROR")
        message = getattr(error, "message", str(error))
        trace_id = getattr(error, "trace_id", None)
        status_code = int(getattr(error, "status_code", 0) or 0)
        return NormalizedError(
            code=str(code),
            message=str(message),
            trace_id=trace_id,
            type=_error_type_from_status(status_code),
        )

    def _record_operation(self, module: str, operation: str, started: float, result: str, trace_id: str | None) -> None:
        self.last_operation = LastOperation(
            module=module,
            operation=operation,
            duration_ms=int((time.monotonic() - started) * 1000),
            result=result,
            trace_id=trace_id,
        )
        logger.debug(
            "http_operation",
            extra={
                "module_name": module,
                "operation": operation,
                "duration_ms": self.last_operation.duration_ms,
                "result": result,
            },
        )


def _request_id(response: requests.Response) -> str | None:
    for key in REQUEST_ID_HEADERS:
        value = response.headers.get(key)
        if value:
            return value
    return None
