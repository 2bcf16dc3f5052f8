from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from medstock_client.models import User


class Route(str, Enum):
    LOGIN = "login"
    SIGNUP = "signup"
    DASHBOARD = "dashboard"
    STOCK_DETAIL = "stock_detail"


@dataclass
class SessionContext:
    user: User | None = None


@dataclass
class AppState:
    route: Route = Route.LOGIN
    error_message: str | None = None
    status_message: str = "Ready"
    selected_stock_id: int | None = None
    session: SessionContext = field(default_factory=SessionContext)
