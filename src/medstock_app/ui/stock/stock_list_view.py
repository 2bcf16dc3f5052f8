from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from medstock_client.models import Stock

from medstock_app.sync.list_synchronizer import StockListSynchronizer, SyncError, SyncStatus
from medstock_app.ui.shared.notification_center import NotificationCenter
from medstock_app.ui.shared.view_state import list_screen_state

logger = logging.getLogger(__name__)

DELETE_CONFIRMATION = "Are you sure you want to delete this stock? All medicines inside will be lost."


def stock_card(stock: Stock) -> dict[str, Any]:
    count = stock.medicine_count
    return {
        "id": stock.id,
        "name": stock.name,
        "medicine_count": count,
        "subtitle": f"{count} {'item' if count == 1 else 'items'} stored",
        "created_at": stock.created_at.isoformat() if stock.created_at else None,
    }


@dataclass
class StockListView:
    """Dashboard view-model: the user's stocks as cards plus an end sentinel."""

    synchronizer: StockListSynchronizer
    notifications: NotificationCenter = field(default_factory=NotificationCenter)
    search_query: str = ""
    pending_delete_id: int | None = None
    mounted: bool = False

    def __post_init__(self) -> None:
        self.synchronizer.on_error = self._on_sync_error

    async def mount(self) -> bool:
        self.mounted = True
        return await self.synchronizer.reset_and_load_first_page()

    async def refresh(self) -> bool:
        self.notifications.clear()
        return await self.synchronizer.reset_and_load_first_page()

    def unmount(self) -> None:
        self.mounted = False
        self.synchronizer.dispose()

    async def on_sentinel_visible(self) -> bool:
        # Searching filters the loaded cards locally; don't page while filtered.
        if self.search_query.strip():
            return False
        return await self.synchronizer.on_sentinel_visible()

    def set_search(self, query: str) -> None:
        self.search_query = query

    def request_delete(self, stock_id: int) -> None:
        self.pending_delete_id = stock_id

    def cancel_delete(self) -> None:
        self.pending_delete_id = None

    async def confirm_delete(self) -> bool:
        stock_id = self.pending_delete_id
        if stock_id is None:
            return False
        self.pending_delete_id = None
        return await self.synchronizer.delete(stock_id)

    def _on_sync_error(self, error: SyncError) -> None:
        self.notifications.push(
            level="error",
            title=error.operation.replace("_", " ").capitalize(),
            message=error.message,
            details={"technical": error.details} if error.details else None,
        )

    def render(self) -> dict[str, Any]:
        snapshot = self.synchronizer.snapshot()
        visible = self.synchronizer.filtered(self.search_query)
        state = list_screen_state(snapshot, empty_message="No stocks found")
        total = snapshot.total if snapshot.total is not None else len(snapshot.items)
        return {
            "title": "Your Stocks",
            "summary": f"Total: {total} {'List' if total == 1 else 'Lists'}",
            "search": self.search_query,
            "cards": [stock_card(stock) for stock in visible],
            "sentinel": {
                "visible": snapshot.has_more and not self.search_query.strip(),
                "loading": snapshot.status is SyncStatus.LOADING_MORE,
            },
            "view_state": state.render(),
            "delete_confirmation": (
                {"stock_id": self.pending_delete_id, "message": DELETE_CONFIRMATION}
                if self.pending_delete_id is not None
                else None
            ),
            "notifications": self.notifications.render(),
        }
