from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..http_client import HttpClient


@dataclass
class BaseClient:
    http: HttpClient
    access_token: str | None = None

    def _auth_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    def _request(self, method: str, path: str, **kwargs: Any):
        headers = kwargs.pop("headers", None) or {}
        merged = {**self._auth_headers(), **headers}
        return self.http.request(method, path, headers=merged, **kwargs)


def expect_object(payload: Any, what: str) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValueError(f"Expected {what} response to be a JSON object")
    return payload


def unwrap_data(payload: dict[str, Any]) -> dict[str, Any]:
    """Some handlers wrap single records as ``{"success": true, "data": {...}}``."""
    data = payload.get("data")
    return data if isinstance(data, dict) else payload
