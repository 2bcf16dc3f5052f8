from __future__ import annotations

from typing import Mapping

from .exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    NotFoundError,
    PermissionError,
    RateLimitError,
    ServerError,
    ValidationError,
)


def _message_from(payload: Mapping[str, object]) -> str:
    # The stock API answers with either {"message": ...} or {"error": ...}.
    raw = payload.get("message") or payload.get("error")
    if isinstance(raw, list):
        raw = "; ".join(str(item) for item in raw)
    return str(raw or "Request failed")


def map_error(status_code: int, payload: Mapping[str, object] | None) -> ApiError:
    payload = payload or {}
    code = str(payload.get("code") or payload.get("statusCode") or "HTTP_ERROR")
    details = payload.get("details")
    mapped: type[ApiError]
    if status_code == 401:
        mapped = AuthError
    elif status_code == 403:
        mapped = PermissionError
    elif status_code == 404:
        mapped = NotFoundError
    elif status_code in {400, 422}:
        mapped = ValidationError
    elif status_code == 409:
        mapped = ConflictError
    elif status_code == 429:
        mapped = RateLimitError
    elif status_code >= 500:
        mapped = ServerError
    else:
        mapped = ApiError
    return mapped(
        code=code,
        message=_message_from(payload),
        details=details,
        status_code=status_code,
        raw_payload=dict(payload),
    )
