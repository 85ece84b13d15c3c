from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable

from dotenv import load_dotenv


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ClientConfig:
    env_name: str
    api_base_url: str
    graphql_path: str = "/graphql"
    connect_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 15.0
    retries: int = 3
    retry_backoff_seconds: float = 0.3
    verify_ssl: bool = True
    default_currency: str = "USD"
    storage_app_name: str = "storefront-pos"
    storage_dir: str | None = None

    @property
    def normalized_env(self) -> str:
        return self.env_name.lower().strip()


def _require(values: dict[str, str | None], required: Iterable[str]) -> None:
    missing = [key for key in required if not values.get(key)]
    if missing:
        raise ConfigError(f"Missing required config values: {', '.join(missing)}")


def _coerce_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _read_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected a number, got {raw!r}") from exc


def _read_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected an integer, got {raw!r}") from exc


def _validate(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigError(message)


def load_config(env_file: str | None = None) -> ClientConfig:
    """Load config from environment with optional .env override."""
    load_dotenv(env_file)

    env_name = (os.getenv("POS_ENV") or "dev").strip()
    env_key = env_name.upper()

    api_base_url = (
        (os.getenv(f"POS_API_BASE_URL_{env_key}") or "").strip()
        or (os.getenv("POS_API_BASE_URL") or "").strip()
    )
    _require({"POS_API_BASE_URL": api_base_url}, ["POS_API_BASE_URL"])

    graphql_path = (os.getenv("POS_GRAPHQL_PATH") or "/graphql").strip()
    _validate(graphql_path.startswith("/"), f"Invalid POS_GRAPHQL_PATH: must start with '/', got {graphql_path!r}")

    connect_timeout_seconds = _read_float("POS_CONNECT_TIMEOUT_SECONDS", "5")
    read_timeout_seconds = _read_float("POS_READ_TIMEOUT_SECONDS", "15")
    for name, seconds in (
        ("POS_CONNECT_TIMEOUT_SECONDS", connect_timeout_seconds),
        ("POS_READ_TIMEOUT_SECONDS", read_timeout_seconds),
    ):
        _validate(seconds > 0, f"Invalid {name}: expected > 0, got {seconds}")

    retries = _read_int("POS_RETRIES", "3")
    _validate(retries >= 0, f"Invalid POS_RETRIES: expected >= 0, got {retries}")

    retry_backoff_seconds = _read_float("POS_RETRY_BACKOFF_SECONDS", "0.3")
    _validate(
        retry_backoff_seconds >= 0,
        f"Invalid POS_RETRY_BACKOFF_SECONDS: expected >= 0, got {retry_backoff_seconds}",
    )

    default_currency = (os.getenv("POS_DEFAULT_CURRENCY") or "USD").strip().upper()
    _validate(
        len(default_currency) == 3 and default_currency.isalpha(),
        f"Invalid POS_DEFAULT_CURRENCY: expected an ISO 4217 code, got {default_currency!r}",
    )

    storage_app_name = (os.getenv("POS_STORAGE_APP_NAME") or "storefront-pos").strip()
    storage_dir = (os.getenv("POS_STORAGE_DIR") or "").strip() or None

    return ClientConfig(
        env_name=env_name,
        api_base_url=api_base_url.rstrip("/"),
        graphql_path=graphql_path,
        connect_timeout_seconds=connect_timeout_seconds,
        read_timeout_seconds=read_timeout_seconds,
        retries=retries,
        retry_backoff_seconds=retry_backoff_seconds,
        verify_ssl=_coerce_bool(os.getenv("POS_VERIFY_SSL"), True),
        default_currency=default_currency,
        storage_app_name=storage_app_name,
        storage_dir=storage_dir,
    )
