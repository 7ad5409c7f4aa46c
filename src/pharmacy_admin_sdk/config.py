from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable

from dotenv import load_dotenv

ENV_PREFIX = "PHARMACY_ADMIN_"


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ClientConfig:
    env_name: str
    api_base_url: str
    connect_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 15.0
    retries: int = 3
    retry_backoff_seconds: float = 0.3
    max_connections: int = 20
    verify_ssl: bool = True
    cache_stale_seconds: float = 30.0
    low_stock_threshold: int = 10

    @property
    def normalized_env(self) -> str:
        return self.env_name.lower().strip()


def _var(name: str) -> str:
    return f"{ENV_PREFIX}{name}"


def _require(values: dict[str, str | None], required: Iterable[str]) -> None:
    missing = [key for key in required if not values.get(key)]
    if missing:
        raise ConfigError(f"Missing required config values: {', '.join(missing)}")


def _coerce_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _read_float(name: str, default: str) -> float:
    key = _var(name)
    raw = os.getenv(key, default)
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {key}: expected a number, got {raw!r}") from exc


def _read_int(name: str, default: str) -> int:
    key = _var(name)
    raw = os.getenv(key, default)
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {key}: expected an integer, got {raw!r}") from exc


def _validate(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigError(message)


def load_config(env_file: str | None = None) -> ClientConfig:
    """Load config from environment with optional .env override.

    The base URL may be scoped per environment, e.g.
    ``PHARMACY_ADMIN_API_BASE_URL_STAGING`` wins over the unscoped variable
    when ``PHARMACY_ADMIN_ENV=staging``.
    """
    load_dotenv(env_file)

    env_name = (os.getenv(_var("ENV")) or "dev").strip()
    env_key = env_name.upper()

    api_base_url = (
        (os.getenv(_var(f"API_BASE_URL_{env_key}")) or "").strip()
        or (os.getenv(_var("API_BASE_URL")) or "").strip()
    )

    timeout_seconds = _read_float("TIMEOUT_SECONDS", "10")
    _validate(
        timeout_seconds > 0,
        f"Invalid {_var('TIMEOUT_SECONDS')}: expected > 0, got {timeout_seconds}",
    )

    connect_timeout_seconds = _read_float("CONNECT_TIMEOUT_SECONDS", str(min(timeout_seconds, 5.0)))
    _validate(
        connect_timeout_seconds > 0,
        f"Invalid {_var('CONNECT_TIMEOUT_SECONDS')}: expected > 0, got {connect_timeout_seconds}",
    )

    read_timeout_seconds = _read_float(
        "READ_TIMEOUT_SECONDS",
        str(max(timeout_seconds, connect_timeout_seconds)),
    )
    _validate(
        read_timeout_seconds > 0,
        f"Invalid {_var('READ_TIMEOUT_SECONDS')}: expected > 0, got {read_timeout_seconds}",
    )

    retries = _read_int("RETRIES", "3")
    _validate(retries >= 0, f"Invalid {_var('RETRIES')}: expected >= 0, got {retries}")

    retry_backoff_seconds = _read_float("RETRY_BACKOFF_SECONDS", "0.3")
    _validate(
        retry_backoff_seconds >= 0,
        f"Invalid {_var('RETRY_BACKOFF_SECONDS')}: expected >= 0, got {retry_backoff_seconds}",
    )

    max_connections = _read_int("MAX_CONNECTIONS", "20")
    _validate(
        max_connections >= 1,
        f"Invalid {_var('MAX_CONNECTIONS')}: expected >= 1, got {max_connections}",
    )

    # matches the admin tables' 30s staleTime
    cache_stale_seconds = _read_float("CACHE_STALE_SECONDS", "30")
    _validate(
        cache_stale_seconds >= 0,
        f"Invalid {_var('CACHE_STALE_SECONDS')}: expected >= 0, got {cache_stale_seconds}",
    )

    low_stock_threshold = _read_int("LOW_STOCK_THRESHOLD", "10")
    _validate(
        low_stock_threshold >= 0,
        f"Invalid {_var('LOW_STOCK_THRESHOLD')}: expected >= 0, got {low_stock_threshold}",
    )

    verify_ssl = _coerce_bool(os.getenv(_var("VERIFY_SSL")), True)

    values = {_var("API_BASE_URL"): api_base_url}
    _require(values, [_var("API_BASE_URL")])

    return ClientConfig(
        env_name=env_name,
        api_base_url=api_base_url.rstrip("/"),
        connect_timeout_seconds=connect_timeout_seconds,
        read_timeout_seconds=read_timeout_seconds,
        retries=retries,
        retry_backoff_seconds=retry_backoff_seconds,
        max_connections=max_connections,
        verify_ssl=verify_ssl,
        cache_stale_seconds=cache_stale_seconds,
        low_stock_threshold=low_stock_threshold,
    )
