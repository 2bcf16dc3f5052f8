from __future__ import annotations

import pytest

from medstock_client import AuthSession, ClientConfig, HttpClient, TokenStore

BASE_URL = "https://api.example.com"


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(env_name="test", api_base_url=BASE_URL, retries=0, retry_backoff_seconds=0)


@pytest.fixture
def token_store(tmp_path) -> TokenStore:
    return TokenStore(base_dir=tmp_path)


@pytest.fixture
def auth_session(token_store: TokenStore) -> AuthSession:
    return AuthSession(store=token_store)


@pytest.fixture
def http(config: ClientConfig, auth_session: AuthSession) -> HttpClient:
    return HttpClient(config=config, auth=auth_session)
