from __future__ import annotations

import os
from concurrent.futures import Executor, Future
from typing import Any, Callable

import pytest

from pharmacy_admin_sdk import AdminSession, FilterStore, load_config
from pharmacy_admin_sdk.config import ClientConfig

BASE_URL = "https://admin.example.test"


class ManualExecutor(Executor):
    """Queues submitted work until the test runs it."""

    def __init__(self) -> None:
        self.pending: list[tuple[Future, Callable[..., Any], tuple, dict]] = []

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        future: Future = Future()
        self.pending.append((future, fn, args, kwargs))
        return future

    def run_all(self) -> None:
        while self.pending:
            future, fn, args, kwargs = self.pending.pop(0)
            try:
                future.set_result(fn(*args, **kwargs))
            except Exception as exc:
                future.set_exception(exc)


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def admin_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("PHARMACY_ADMIN_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("PHARMACY_ADMIN_API_BASE_URL", BASE_URL)
    monkeypatch.setenv("PHARMACY_ADMIN_RETRIES", "0")
    monkeypatch.setenv("PHARMACY_ADMIN_RETRY_BACKOFF_SECONDS", "0")


@pytest.fixture
def config() -> ClientConfig:
    return load_config()


@pytest.fixture
def session(config: ClientConfig, tmp_path) -> AdminSession:
    return AdminSession(config=config, token="admin-token", filter_store=FilterStore(base_dir=tmp_path))


def product_payload(product_id: str = "p1", **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": product_id,
        "name": f"Paracetamol {product_id}",
        "genericName": "Paracetamol",
        "category": "Analgesics",
        "wholesalePrice": 100.0,
        "retailPrice": 150.0,
        "stockQuantity": 25,
    }
    payload.update(overrides)
    return payload
