from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..exceptions import UnexpectedResponseError
from ..http_client import HttpClient


@dataclass
class BaseClient:
    http: HttpClient
    module: str = "unknown"

    def _request(self, method: str, path: str, operation: str = "unknown", **kwargs):
        return self.http.request(method, path, module=self.module, operation=operation, **kwargs)

    @staticmethod
    def _expect_object(payload: Any, what: str) -> dict[str, Any]:
        if not isinstance(payload, dict):
            raise UnexpectedResponseError(
                code="UNEXPECTED_RESPONSE",
                message=f"Expected {what} response to be a JSON object",
                details={"received": type(payload).__name__},
                status_code=200,
                raw_payload=payload,
            )
        return payload
