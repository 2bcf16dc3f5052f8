from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ApiError(Exception):
    code: str
    message: str
    details: object | None
    status_code: int
    raw_payload: object | None = None

    def __str__(self) -> str:
        return f"[{self.status_code}] {self.code}: {self.message}"


class AuthError(ApiError):
    """Authentication failed or the session token is no longer valid."""


class PermissionError(ApiError):
    """403 from the API."""


class NotFoundError(ApiError):
    pass


class ValidationError(ApiError):
    """400/422 rejection of the submitted payload."""


class ConflictError(ApiError):
    pass


class RateLimitError(ApiError):
    pass


class ServerError(ApiError):
    """5xx server-side failures."""


class TransportError(ApiError):
    """Network/transport failure before an HTTP response was returned."""


class UnexpectedResponseError(ApiError):
    """The API answered 2xx with a body of the wrong shape."""
