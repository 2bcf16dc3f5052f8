from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from medstock_app.sync.list_synchronizer import SyncSnapshot, SyncStatus


class ScreenStatus(str, Enum):
    LOADING = "loading"
    LOADING_MORE = "loading_more"
    EMPTY = "empty"
    READY = "ready"
    STALE = "stale"
    ERROR = "error"


@dataclass(frozen=True)
class ScreenState:
    status: ScreenStatus
    message: str | None = None

    @property
    def shows_content(self) -> bool:
        return self.status in {ScreenStatus.LOADING_MORE, ScreenStatus.READY, ScreenStatus.STALE}

    def render(self) -> dict[str, Any]:
        return {"status": self.status.value, "message": self.message, "shows_content": self.shows_content}


def list_screen_state(snapshot: SyncSnapshot, *, empty_message: str) -> ScreenState:
    """Screen state of a stock list, driven by the synchronizer's load status.

    A failed next-page load keeps the cards on screen (``STALE``); only a
    failed first page replaces them with an error.
    """
    has_items = bool(snapshot.items)
    if snapshot.status is SyncStatus.LOADING_FIRST_PAGE and not has_items:
        return ScreenState(ScreenStatus.LOADING, "Loading your stocks...")
    if snapshot.status is SyncStatus.ERROR:
        message = snapshot.error.message if snapshot.error else None
        return ScreenState(ScreenStatus.STALE if has_items else ScreenStatus.ERROR, message)
    if not has_items:
        return ScreenState(ScreenStatus.EMPTY, empty_message)
    if snapshot.status is SyncStatus.LOADING_MORE:
        return ScreenState(ScreenStatus.LOADING_MORE)
    return ScreenState(ScreenStatus.READY)


def detail_screen_state(*, is_loading: bool, load_error: str | None, found: bool) -> ScreenState:
    if found:
        return ScreenState(ScreenStatus.READY)
    if is_loading:
        return ScreenState(ScreenStatus.LOADING, "Loading stock...")
    if load_error:
        return ScreenState(ScreenStatus.ERROR, load_error)
    return ScreenState(ScreenStatus.EMPTY, "Stock not found")
