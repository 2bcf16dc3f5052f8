from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from medstock_client.ui_errors import UserFacingError


@dataclass
class NotificationCenter:
    messages: list[dict[str, Any]] = field(default_factory=list)
    limit: int = 20

    def push(self, *, level: str, title: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
        payload = {
            "level": level,
            "title": title,
            "message": message,
            "details": details or {},
        }
        self.messages.append(payload)
        del self.messages[: -self.limit]
        return payload

    def push_error(self, title: str, error: UserFacingError) -> dict[str, Any]:
        details = {"technical": error.technical_details} if error.technical_details else None
        return self.push(level="error", title=title, message=error.message, details=details)

    def dismiss(self, index: int) -> None:
        if 0 <= index < len(self.messages):
            del self.messages[index]

    def clear(self) -> None:
        self.messages.clear()

    def render(self) -> dict[str, Any]:
        return {"count": len(self.messages), "messages": list(self.messages)}
