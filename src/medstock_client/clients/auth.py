from __future__ import annotations

from dataclasses import dataclass

from ..models import AuthResponse
from .base import BaseClient


@dataclass
class AuthClient(BaseClient):
    module: str = "auth"

    def login(self, email: str, password: str) -> AuthResponse:
        data = self._request(
            "POST", "/user/login", operation="login", json_body={"email": email, "password": password}
        )
        return AuthResponse.model_validate(self._expect_object(data, "login"))

    def signup(self, name: str, email: str, password: str) -> AuthResponse:
        data = self._request(
            "POST",
            "/user/signup",
            operation="signup",
            json_body={"name": name, "email": email, "password": password},
        )
        return AuthResponse.model_validate(self._expect_object(data, "signup"))

    def google_login(self, credential: str) -> AuthResponse:
        data = self._request("POST", "/user/google-login", operation="google_login", json_body={"token": credential})
        return AuthResponse.model_validate(self._expect_object(data, "google-login"))
