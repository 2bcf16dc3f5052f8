from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter

from .config import ClientConfig
from .error_mapper import map_error
from .exceptions import ApiError, AuthError, TransportError
from .session import AuthSession

logger = logging.getLogger(__name__)

UnauthorizedHook = Callable[[AuthError], None]
RequestHook = Callable[[str, str, dict[str, Any]], None]


def _error_type_from_status(status_code: int) -> str:
    if status_code <= 0:
        return "network"
    if status_code == 401:
        return "auth"
    if 400 <= status_code < 500:
        return "validation"
    return "internal"


@dataclass(frozen=True)
class NormalizedError:
    code: str
    message: str
    type: str


@dataclass
class LastOperation:
    module: str
    operation: str
    duration_ms: int
    result: str


@dataclass
class HttpClient:
    """Single choke point for every API call.

    Attaches the bearer token from the injected :class:`AuthSession` and, when
    an authenticated call comes back 401, clears that session and fires
    ``on_unauthorized`` before raising :class:`AuthError`.
    """

    config: ClientConfig
    auth: AuthSession | None = None
    session: requests.Session | None = None
    on_unauthorized: UnauthorizedHook | None = None
    before_request: RequestHook | None = None
    last_operation: LastOperation | None = None

    def __post_init__(self) -> None:
        if self.session is None:
            self.session = requests.Session()
            adapter = HTTPAdapter(pool_connections=4, pool_maxsize=8)
            self.session.mount("http://", adapter)
            self.session.mount("https://", adapter)

    def _build_url(self, path: str) -> str:
        base = self.config.api_base_url.rstrip("/") + "/"
        return urljoin(base, path.lstrip("/"))

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        module: str = "unknown",
        operation: str = "unknown",
    ) -> dict[str, Any] | list[Any] | None:
        if self.session is None:
            raise RuntimeError("HTTP session not initialized")
        request_headers = {"Accept": "application/json"}
        if headers:
            request_headers.update(headers)
        token = self.auth.current_token if self.auth else None
        if token:
            request_headers["Authorization"] = f"Bearer {token}"

        normalized_method = method.upper()
        url = self._build_url(path)
        if self.before_request:
            self.before_request(
                normalized_method,
                url,
                {"headers": request_headers, "json_body": json_body, "params": params},
            )

        attempts = self.config.retries + 1 if normalized_method in {"GET", "HEAD"} else 1
        started = time.monotonic()
        response: requests.Response | None = None
        for attempt in range(attempts):
            try:
                response = self.session.request(
                    method=normalized_method,
                    url=url,
                    headers=request_headers,
                    json=json_body,
                    params=params,
                    timeout=(self.config.connect_timeout_seconds, self.config.read_timeout_seconds),
                    verify=self.config.verify_ssl,
                )
            except requests.RequestException as exc:
                if attempt >= attempts - 1:
                    self._record_operation(module, operation, started, "error")
                    logger.warning(
                        "http_transport_error",
                        extra={"method": normalized_method, "path": path, "error": type(exc).__name__},
                    )
                    raise TransportError(
                        code="TRANSPORT_ERROR",
                        message=str(exc) or "Network request failed",
                        details={"type": type(exc).__name__},
                        status_code=0,
                        raw_payload=None,
                    ) from exc
            else:
                if response.status_code < 500 or attempt >= attempts - 1:
                    break
            time.sleep(self.config.retry_backoff_seconds * (2**attempt))

        if response is None:
            raise RuntimeError("HTTP request failed without response")

        if response.ok:
            self._record_operation(module, operation, started, "success")
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError:
                # Some endpoints answer 200 with a plain-text acknowledgement.
                return None

        payload: Any
        try:
            payload = response.json()
        except ValueError:
            payload = {"message": response.text}
        if not isinstance(payload, dict):
            payload = {"message": json.dumps(payload)}
        self._record_operation(module, operation, started, "error")
        error = map_error(response.status_code, payload)
        logger.info(
            "http_error",
            extra={"method": normalized_method, "path": path, "status_code": response.status_code, "code": error.code},
        )
        if isinstance(error, AuthError) and token:
            self._handle_unauthorized(error)
        raise error

    def _handle_unauthorized(self, error: AuthError) -> None:
        logger.warning("session_rejected_by_server")
        if self.auth is not None:
            self.auth.logout()
        if self.on_unauthorized:
            self.on_unauthorized(error)

    def normalize_error(self, error: Exception) -> NormalizedError:
        if isinstance(error, ApiError):
            return NormalizedError(
                code=error.code,
                message=error.message,
                type=_error_type_from_status(error.status_code),
            )
        return NormalizedError(code="UNKNOWN_ERROR", message=str(error), type="internal")

    def _record_operation(self, module: str, operation: str, started: float, result: str) -> None:
        self.last_operation = LastOperation(
            module=module,
            operation=operation,
            duration_ms=int((time.monotonic() - started) * 1000),
            result=result,
        )
