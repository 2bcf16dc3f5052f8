from __future__ import annotations

from dataclasses import dataclass

from .exceptions import ApiError, ServerError, TransportError
from .validation import ClientValidationError


@dataclass(frozen=True)
class UserFacingError:
    message: str
    details: str | None = None

    @property
    def technical_details(self) -> str | None:
        if self.details:
            return self.details
        return None


def to_user_facing_error(exc: Exception, fallback: str = "Request failed") -> UserFacingError:
    if isinstance(exc, TransportError):
        return UserFacingError(
            message="Cannot reach the server. Check your connection and try again.",
            details=f"{exc.code}: {exc.message}",
        )
    if isinstance(exc, ServerError):
        return UserFacingError(message=fallback, details=f"{exc.code} (HTTP {exc.status_code}): {exc.message}")
    if isinstance(exc, ApiError):
        primary = exc.message.strip() or fallback
        details = f"{exc.code} (HTTP {exc.status_code})"
        if exc.details:
            details = f"{details}: {exc.details}"
        return UserFacingError(message=primary, details=details)
    if isinstance(exc, ClientValidationError):
        return UserFacingError(message=str(exc), details="CLIENT_VALIDATION")
    return UserFacingError(message=str(exc) or fallback)
