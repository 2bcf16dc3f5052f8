from __future__ import annotations

import pytest

from medstock_client import ConfigError, load_config

_ENV_KEYS = (
    "MEDSTOCK_ENV",
    "MEDSTOCK_API_BASE_URL",
    "MEDSTOCK_API_BASE_URL_PROD",
    "MEDSTOCK_CONNECT_TIMEOUT_SECONDS",
    "MEDSTOCK_READ_TIMEOUT_SECONDS",
    "MEDSTOCK_RETRIES",
    "MEDSTOCK_RETRY_BACKOFF_SECONDS",
    "MEDSTOCK_PAGE_SIZE",
    "MEDSTOCK_VERIFY_SSL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults(monkeypatch) -> None:
    monkeypatch.setenv("MEDSTOCK_API_BASE_URL", "https://api.example.com/")
    config = load_config()
    assert config.env_name == "dev"
    assert config.api_base_url == "https://api.example.com"
    assert config.page_size == 10
    assert config.retries == 0
    assert config.verify_ssl is True


def test_env_specific_base_url_wins(monkeypatch) -> None:
    monkeypatch.setenv("MEDSTOCK_ENV", "prod")
    monkeypatch.setenv("MEDSTOCK_API_BASE_URL", "https://dev.example.com")
    monkeypatch.setenv("MEDSTOCK_API_BASE_URL_PROD", "https://prod.example.com")
    config = load_config()
    assert config.api_base_url == "https://prod.example.com"
    assert config.normalized_env == "prod"


def test_missing_base_url_raises() -> None:
    with pytest.raises(ConfigError, match="MEDSTOCK_API_BASE_URL"):
        load_config()


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("MEDSTOCK_PAGE_SIZE", "0"),
        ("MEDSTOCK_RETRIES", "-1"),
        ("MEDSTOCK_READ_TIMEOUT_SECONDS", "abc"),
        ("MEDSTOCK_CONNECT_TIMEOUT_SECONDS", "0"),
    ],
)
def test_invalid_values_raise(monkeypatch, key: str, value: str) -> None:
    monkeypatch.setenv("MEDSTOCK_API_BASE_URL", "https://api.example.com")
    monkeypatch.setenv(key, value)
    with pytest.raises(ConfigError, match=key):
        load_config()


def test_verify_ssl_can_be_disabled(monkeypatch) -> None:
    monkeypatch.setenv("MEDSTOCK_API_BASE_URL", "https://api.example.com")
    monkeypatch.setenv("MEDSTOCK_VERIFY_SSL", "false")
    assert load_config().verify_ssl is False
