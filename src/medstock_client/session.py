from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from .models import User
from .token_store import TokenStore

logger = logging.getLogger(__name__)

SessionListener = Callable[["AuthSession"], None]


@dataclass
class AuthSession:
    """In-memory session mirrored to a :class:`TokenStore`.

    Storage is written before memory on login and cleared before memory on
    logout, and listeners run only after both agree, so no observer sees a
    token in one place and not the other.
    """

    store: TokenStore = field(default_factory=TokenStore)
    token: str | None = None
    user: User | None = None
    _listeners: list[SessionListener] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        if not self.token:
            self.token = self.store.load()

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def current_token(self) -> str | None:
        return self.token

    def login(self, token: str, user: User | None = None) -> None:
        if not token:
            raise ValueError("token must not be empty")
        self.store.save(token)
        self.token = token
        self.user = user
        logger.info("session_established", extra={"user_id": user.id if user else None})
        self._notify()

    def logout(self) -> None:
        was_authenticated = self.is_authenticated
        self.store.clear()
        self.token = None
        self.user = None
        if was_authenticated:
            logger.info("session_cleared")
        self._notify()

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
