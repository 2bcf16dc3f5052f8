from __future__ import annotations

import logging

from medstock_client import AuthSession
from medstock_client.clients.auth import AuthClient
from medstock_client.models import AuthResponse

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, client: AuthClient, session: AuthSession) -> None:
        self.client = client
        self.session = session

    def has_active_session(self) -> bool:
        return self.session.is_authenticated

    def login(self, email: str, password: str) -> AuthResponse:
        logger.info("login_attempt")
        try:
            response = self.client.login(email, password)
        except Exception:
            logger.exception("login_failure")
            raise
        self.session.login(response.token, response.user)
        logger.info("login_success")
        return response

    def signup(self, name: str, email: str, password: str) -> AuthResponse:
        logger.info("signup_attempt")
        try:
            response = self.client.signup(name, email, password)
        except Exception:
            logger.exception("signup_failure")
            raise
        self.session.login(response.token, response.user)
        logger.info("signup_success")
        return response

    def google_login(self, credential: str) -> AuthResponse:
        logger.info("google_login_attempt")
        try:
            response = self.client.google_login(credential)
        except Exception:
            logger.exception("google_login_failure")
            raise
        self.session.login(response.token, response.user)
        return response

    def logout(self) -> None:
        logger.info("logout")
        self.session.logout()
