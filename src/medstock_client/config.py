from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable

from dotenv import load_dotenv

DEFAULT_PAGE_SIZE = 10


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ClientConfig:
    env_name: str
    api_base_url: str
    connect_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 15.0
    retries: int = 0
    retry_backoff_seconds: float = 0.3
    page_size: int = DEFAULT_PAGE_SIZE
    verify_ssl: bool = True

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
    """Load config from environment with optional .env override.

    ``MEDSTOCK_API_BASE_URL_<ENV>`` wins over ``MEDSTOCK_API_BASE_URL`` so one
    ``.env`` file can carry several deployments.
    """
    load_dotenv(env_file)

    env_name = (os.getenv("MEDSTOCK_ENV") or "dev").strip()
    env_key = env_name.upper()

    api_base_url = (
        (os.getenv(f"MEDSTOCK_API_BASE_URL_{env_key}") or "").strip()
        or (os.getenv("MEDSTOCK_API_BASE_URL") or "").strip()
    )
    _require({"MEDSTOCK_API_BASE_URL": api_base_url}, ["MEDSTOCK_API_BASE_URL"])

    connect_timeout_seconds = _read_float("MEDSTOCK_CONNECT_TIMEOUT_SECONDS", "5")
    _validate(
        connect_timeout_seconds > 0,
        f"Invalid MEDSTOCK_CONNECT_TIMEOUT_SECONDS: expected > 0, got {connect_timeout_seconds}",
    )

    read_timeout_seconds = _read_float("MEDSTOCK_READ_TIMEOUT_SECONDS", "15")
    _validate(
        read_timeout_seconds > 0,
        f"Invalid MEDSTOCK_READ_TIMEOUT_SECONDS: expected > 0, got {read_timeout_seconds}",
    )

    retries = _read_int("MEDSTOCK_RETRIES", "0")
    _validate(retries >= 0, f"Invalid MEDSTOCK_RETRIES: expected >= 0, got {retries}")

    retry_backoff_seconds = _read_float("MEDSTOCK_RETRY_BACKOFF_SECONDS", "0.3")
    _validate(
        retry_backoff_seconds >= 0,
        f"Invalid MEDSTOCK_RETRY_BACKOFF_SECONDS: expected >= 0, got {retry_backoff_seconds}",
    )

    page_size = _read_int("MEDSTOCK_PAGE_SIZE", str(DEFAULT_PAGE_SIZE))
    _validate(page_size >= 1, f"Invalid MEDSTOCK_PAGE_SIZE: expected >= 1, got {page_size}")

    return ClientConfig(
        env_name=env_name,
        api_base_url=api_base_url.rstrip("/"),
        connect_timeout_seconds=connect_timeout_seconds,
        read_timeout_seconds=read_timeout_seconds,
        retries=retries,
        retry_backoff_seconds=retry_backoff_seconds,
        page_size=page_size,
        verify_ssl=_coerce_bool(os.getenv("MEDSTOCK_VERIFY_SSL"), True),
    )
