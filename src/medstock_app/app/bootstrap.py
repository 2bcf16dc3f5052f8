from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

from medstock_client import AuthSession, ClientConfig, HttpClient, load_config, to_user_facing_error
from medstock_client.clients.auth import AuthClient
from medstock_client.clients.stock_client import StockClient
from medstock_client.exceptions import AuthError

from medstock_app.app.navigation import resolve_route
from medstock_app.app.state import AppState, Route
from medstock_app.services.auth_service import AuthService
from medstock_app.services.stock_gateway import StockAsyncGateway, StockGateway
from medstock_app.sync.list_synchronizer import StockListSynchronizer
from medstock_app.ui.stock.stock_detail_view import StockDetailEditor
from medstock_app.ui.stock.stock_list_view import StockListView
from medstock_app.ui.stock.stock_name_form import StockNameEditor

logger = logging.getLogger(__name__)


@dataclass
class BootstrapResult:
    route: Route
    error_message: str | None = None


class MedStockApp:
    """Presentation shell: owns the session, the API clients and the current screen."""

    def __init__(
        self,
        config: ClientConfig | None = None,
        session: AuthSession | None = None,
        http: HttpClient | None = None,
        gateway: StockGateway | None = None,
    ) -> None:
        self.config = config or load_config()
        self.session = session or AuthSession()
        self.http = http or HttpClient(config=self.config, auth=self.session)
        self.http.auth = self.session
        self.http.on_unauthorized = self._on_unauthorized
        self.state = AppState()
        self.auth_service = AuthService(AuthClient(http=self.http), self.session)
        self.gateway: StockGateway = gateway or StockAsyncGateway(StockClient(http=self.http))
        self.dashboard: StockListView | None = None
        self.name_editor: StockNameEditor | None = None
        self.detail: StockDetailEditor | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    def start(self) -> BootstrapResult:
        if not self.auth_service.has_active_session():
            self._navigate(Route.LOGIN, "No active session")
        else:
            self._navigate(Route.DASHBOARD, "Session restored")
        return BootstrapResult(route=self.state.route)

    def login(self, email: str, password: str) -> BootstrapResult:
        return self._authenticate(lambda: self.auth_service.login(email, password), Route.LOGIN)

    def signup(self, name: str, email: str, password: str) -> BootstrapResult:
        return self._authenticate(lambda: self.auth_service.signup(name, email, password), Route.SIGNUP)

    def google_login(self, credential: str) -> BootstrapResult:
        return self._authenticate(lambda: self.auth_service.google_login(credential), Route.LOGIN)

    def logout(self) -> BootstrapResult:
        self._teardown_screens()
        self.auth_service.logout()
        self.state.session.user = None
        self._navigate(Route.LOGIN, "Signed out")
        return BootstrapResult(route=self.state.route)

    def navigate(self, route: Route) -> Route:
        resolved = resolve_route(route, self.session.is_authenticated)
        self._navigate(resolved, "")
        return resolved

    async def open_dashboard(self) -> StockListView | None:
        """Mount a fresh list view; the previous one, if any, is torn down first."""
        self._loop = asyncio.get_running_loop()
        if self.navigate(Route.DASHBOARD) is not Route.DASHBOARD:
            return None
        self._close_detail()
        if self.dashboard is not None:
            self.dashboard.unmount()
        synchronizer = StockListSynchronizer(self.gateway, page_size=self.config.page_size)
        self.dashboard = StockListView(synchronizer=synchronizer)
        self.name_editor = StockNameEditor(synchronizer=synchronizer)
        await self.dashboard.mount()
        return self.dashboard

    async def open_stock(self, stock_id: int) -> StockDetailEditor | None:
        self._loop = asyncio.get_running_loop()
        if self.navigate(Route.STOCK_DETAIL) is not Route.STOCK_DETAIL:
            return None
        self._close_detail()
        synchronizer = self.dashboard.synchronizer if self.dashboard else None
        self.detail = StockDetailEditor(gateway=self.gateway, stock_id=stock_id, synchronizer=synchronizer)
        self.state.selected_stock_id = stock_id
        await self.detail.load()
        return self.detail

    def back_to_dashboard(self) -> None:
        """Close the detail overlay; the list below stays mounted."""
        self._close_detail()
        self.navigate(Route.DASHBOARD)

    def _authenticate(self, call: Callable[[], object], failure_route: Route) -> BootstrapResult:
        try:
            response = call()
        except Exception as exc:
            self.state.error_message = to_user_facing_error(exc, "Authentication failed").message
            self._navigate(failure_route, "Authentication failed")
            return BootstrapResult(route=self.state.route, error_message=self.state.error_message)
        self.state.error_message = None
        self.state.session.user = getattr(response, "user", None)
        self._navigate(Route.DASHBOARD, "Authenticated")
        return BootstrapResult(route=self.state.route)

    def _on_unauthorized(self, error: AuthError) -> None:
        # Called from the HTTP worker thread; hop onto the UI loop when there is one.
        self._dispatch(self._route_to_login)

    def _route_to_login(self) -> None:
        self._teardown_screens()
        self.state.session.user = None
        self.state.error_message = "Your session has expired. Please sign in again."
        self._navigate(Route.LOGIN, "Session expired")

    def _dispatch(self, callback: Callable[[], None]) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            callback()
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            callback()
        else:
            loop.call_soon_threadsafe(callback)

    def _close_detail(self) -> None:
        if self.detail is not None:
            self.detail.close()
            self.detail = None
        self.state.selected_stock_id = None

    def _teardown_screens(self) -> None:
        self._close_detail()
        if self.dashboard is not None:
            self.dashboard.unmount()
            self.dashboard = None
        self.name_editor = None

    def _navigate(self, route: Route, status_message: str) -> None:
        logger.info("navigation", extra={"route": route.value})
        self.state.route = route
        if status_message:
            self.state.status_message = status_message
