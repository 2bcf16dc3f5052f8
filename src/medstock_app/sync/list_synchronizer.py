from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from time import perf_counter
from typing import Any, Awaitable, Callable, Iterable

from medstock_client.config import DEFAULT_PAGE_SIZE
from medstock_client.exceptions import ApiError, AuthError
from medstock_client.logging_utils import log_action
from medstock_client.models import Stock
from medstock_client.ui_errors import to_user_facing_error
from medstock_client.validation import ClientValidationError, validate_stock_name

from medstock_app.services.stock_gateway import StockGateway

logger = logging.getLogger(__name__)


class SyncStatus(str, Enum):
    IDLE = "idle"
    LOADING_FIRST_PAGE = "loading_first_page"
    LOADING_MORE = "loading_more"
    ERROR = "error"
    DISPOSED = "disposed"


@dataclass(frozen=True)
class SyncError:
    operation: str
    message: str
    details: str | None = None


@dataclass(frozen=True)
class SyncSnapshot:
    items: tuple[Stock, ...]
    total: int | None
    has_more: bool
    status: SyncStatus
    page_cursor: int
    error: SyncError | None

    @property
    def is_loading(self) -> bool:
        return self.status in {SyncStatus.LOADING_FIRST_PAGE, SyncStatus.LOADING_MORE}


ChangeListener = Callable[[SyncSnapshot], None]
ErrorListener = Callable[[SyncError], None]


class StockListSynchronizer:
    """Paginated, duplicate-free view of the user's stocks.

    One instance backs one mounted list view. At most one page load is in
    flight at a time (``_busy``). Every load is stamped with the generation
    it started in; ``reset_and_load_first_page`` and ``dispose`` bump the
    generation, so responses from an older generation never touch state.
    Page responses at or below the highest applied page are dropped as
    stale.

    ``last_error`` describes the most recent page load only; failed
    mutations land in ``last_mutation_error`` and ``on_error``.
    """

    def __init__(
        self,
        gateway: StockGateway,
        page_size: int = DEFAULT_PAGE_SIZE,
        on_error: ErrorListener | None = None,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        self.gateway = gateway
        self.page_size = page_size
        self.on_error = on_error
        self.status = SyncStatus.IDLE
        self.last_error: SyncError | None = None
        self.last_mutation_error: SyncError | None = None
        self._items: list[Stock] = []
        self._total: int | None = None
        self._page_cursor = 1
        self._highest_applied_page = 0
        self._last_page_full = True
        self._last_page_empty = False
        self._busy = False
        self._generation = 0
        # id -> whether the id is currently subtracted from _total
        self._pending_deletes: dict[int, bool] = {}
        self._listeners: list[ChangeListener] = []

    # -- read side -------------------------------------------------------

    @property
    def items(self) -> list[Stock]:
        return list(self._items)

    @property
    def total(self) -> int | None:
        return self._total

    @property
    def page_cursor(self) -> int:
        return self._page_cursor

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def is_disposed(self) -> bool:
        return self.status is SyncStatus.DISPOSED

    @property
    def has_more(self) -> bool:
        if self._last_page_empty:
            return False
        if self._total is not None:
            return len(self._items) < self._total
        return self._last_page_full

    def get(self, stock_id: int) -> Stock | None:
        index = self._index_of(stock_id)
        return self._items[index] if index is not None else None

    def filtered(self, query: str) -> list[Stock]:
        needle = query.strip().lower()
        if not needle:
            return list(self._items)
        return [stock for stock in self._items if needle in stock.name.lower()]

    def snapshot(self) -> SyncSnapshot:
        return SyncSnapshot(
            items=tuple(self._items),
            total=self._total,
            has_more=self.has_more,
            status=self.status,
            page_cursor=self._page_cursor,
            error=self.last_error,
        )

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -- loading ---------------------------------------------------------

    async def reset_and_load_first_page(self) -> bool:
        if self.is_disposed:
            return False
        self._generation += 1
        generation = self._generation
        self._items = []
        self._total = None
        self._page_cursor = 1
        self._highest_applied_page = 0
        self._last_page_full = True
        self._last_page_empty = False
        self._busy = True
        self.status = SyncStatus.LOADING_FIRST_PAGE
        self.last_error = None
        self._notify()

        started = perf_counter()
        try:
            page = await self.gateway.list_stocks(1, self.page_size)
        except ApiError as exc:
            if self._is_current(generation):
                self._fail("load", exc, "Failed to load stocks.")
            return False
        finally:
            self._release(generation)
        if not self._is_current(generation):
            logger.info("stock_page_discarded", extra={"page": 1, "reason": "superseded"})
            return False

        # Stocks created while page 1 was in flight stay on top.
        created = self._items
        from_page = list(self._merge(created, page.items))
        self._items = created + from_page
        self._total = self._server_total(page.total)
        if self._total is not None:
            page_ids = {stock.id for stock in page.items}
            self._total += sum(1 for stock in created if stock.id not in page_ids)
        self._highest_applied_page = 1
        self._page_cursor = 2
        self._last_page_full = len(page.items) >= self.page_size
        self._last_page_empty = not page.items
        self.status = SyncStatus.IDLE
        log_action(
            logger,
            "stock_list",
            "load_first_page",
            "success",
            duration_ms=int((perf_counter() - started) * 1000),
            count=len(self._items),
            total=self._total,
        )
        self._notify()
        return True

    async def load_next_page(self) -> bool:
        if self.is_disposed or self._busy or not self.has_more:
            return False
        generation = self._generation
        page_number = self._page_cursor
        self._busy = True
        self.status = SyncStatus.LOADING_MORE
        self.last_error = None
        self._notify()

        try:
            page = await self.gateway.list_stocks(page_number, self.page_size)
        except ApiError as exc:
            if self._is_current(generation):
                self._fail("load_more", exc, "Failed to load more stocks.")
            return False
        finally:
            self._release(generation)
        if not self._is_current(generation):
            logger.info("stock_page_discarded", extra={"page": page_number, "reason": "superseded"})
            return False

        if page_number <= self._highest_applied_page:
            logger.info("stock_page_discarded", extra={"page": page_number, "reason": "stale"})
            self.status = SyncStatus.IDLE
            self._notify()
            return False

        fresh = list(self._merge(self._items, page.items))
        self._items.extend(fresh)
        if page.total is not None:
            self._total = self._server_total(page.total)
        self._highest_applied_page = page_number
        self._page_cursor = page_number + 1
        self._last_page_full = len(page.items) >= self.page_size
        self._last_page_empty = not page.items
        self.status = SyncStatus.IDLE
        logger.info(
            "stock_page_loaded",
            extra={"page": page_number, "received": len(page.items), "appended": len(fresh), "total": self._total},
        )
        self._notify()
        return True

    async def on_sentinel_visible(self) -> bool:
        """Infinite-scroll trigger fired when the end-of-list sentinel shows."""
        if self.status is SyncStatus.LOADING_FIRST_PAGE or self._busy:
            return False
        if self._highest_applied_page == 0:
            # Nothing rendered yet, so the sentinel is not really "after" anything.
            return False
        return await self.load_next_page()

    # -- mutations -------------------------------------------------------

    async def create(self, name: str) -> Stock | None:
        try:
            clean_name = validate_stock_name(name)
        except ClientValidationError as exc:
            self._report("create", exc, "Stock name is required.")
            return None
        try:
            stock = await self.gateway.create_stock(clean_name)
        except ApiError as exc:
            if not self.is_disposed:
                self._report("create", exc, "Failed to create stock.")
            return None
        if self.is_disposed:
            return stock
        existing = self._index_of(stock.id)
        if existing is not None:
            del self._items[existing]
        elif self._total is not None:
            self._total += 1
        self._items.insert(0, stock)
        self.last_mutation_error = None
        log_action(logger, "stock_list", "create", "success", stock_id=stock.id)
        self._notify()
        return stock

    async def rename(self, stock_id: int, name: str) -> Stock | None:
        try:
            clean_name = validate_stock_name(name)
        except ClientValidationError as exc:
            self._report("rename", exc, "Stock name is required.")
            return None
        try:
            renamed = await self.gateway.rename_stock(stock_id, clean_name)
        except ApiError as exc:
            if not self.is_disposed:
                self._report("rename", exc, "Failed to rename stock.")
            return None
        if self.is_disposed:
            return renamed
        index = self._index_of(stock_id)
        if index is not None:
            current = self._items[index]
            self._items[index] = current.model_copy(update={"name": renamed.name or clean_name})
            self._notify()
        self.last_mutation_error = None
        log_action(logger, "stock_list", "rename", "success", stock_id=stock_id)
        return renamed

    def delete(self, stock_id: int) -> Awaitable[bool]:
        """Drop ``stock_id`` from the list now; the returned awaitable confirms it.

        The removal happens before this method returns. Awaiting the result
        performs the API call; if the server refuses, the stock is put back at
        its old position and an error is reported.
        """
        if self.is_disposed or stock_id in self._pending_deletes:
            return _resolved(False)
        index = self._index_of(stock_id)
        removed: Stock | None = None
        if index is not None:
            removed = self._items.pop(index)
            if self._total is not None:
                self._total = max(0, self._total - 1)
            self._notify()
        self._pending_deletes[stock_id] = removed is not None and self._total is not None
        return self._confirm_delete(stock_id, index, removed)

    async def _confirm_delete(self, stock_id: int, index: int | None, removed: Stock | None) -> bool:
        try:
            await self.gateway.delete_stock(stock_id)
        except ApiError as exc:
            counted = self._pending_deletes.pop(stock_id, False)
            if self.is_disposed:
                return False
            if counted and self._total is not None:
                self._total += 1
            if removed is not None and index is not None and self._index_of(stock_id) is None:
                self._items.insert(min(index, len(self._items)), removed)
            self._notify()
            logger.warning("stock_delete_rolled_back", extra={"stock_id": stock_id})
            self._report("delete", exc, "Failed to delete stock.")
            return False
        self._pending_deletes.pop(stock_id, None)
        self.last_mutation_error = None
        log_action(logger, "stock_list", "delete", "success", stock_id=stock_id)
        return True

    async def open_detail(self, stock_id: int) -> Stock | None:
        """Fetch one stock fresh; the list's nested medicines are never trusted."""
        try:
            stock = await self.gateway.get_stock(stock_id)
        except ApiError as exc:
            if not self.is_disposed:
                self._report("open_detail", exc, "Could not load stock details.")
            return None
        self.apply_detail(stock)
        return stock

    def apply_detail(self, stock: Stock) -> None:
        if self.is_disposed:
            return
        index = self._index_of(stock.id)
        if index is None:
            return
        self._items[index] = stock
        self._notify()

    def dispose(self) -> None:
        if self.is_disposed:
            return
        self._generation += 1
        self._busy = False
        self.status = SyncStatus.DISPOSED
        self._listeners.clear()
        logger.info("stock_list_disposed")

    # -- internals -------------------------------------------------------

    def _release(self, generation: int) -> None:
        # A superseded load must not clear the busy flag of the load that replaced it.
        if generation == self._generation:
            self._busy = False

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and not self.is_disposed

    def _index_of(self, stock_id: int) -> int | None:
        for index, stock in enumerate(self._items):
            if stock.id == stock_id:
                return index
        return None

    def _merge(self, existing: Iterable[Stock], incoming: Iterable[Stock]) -> Iterable[Stock]:
        seen = {stock.id for stock in existing} | set(self._pending_deletes)
        for stock in incoming:
            if stock.id in seen:
                continue
            seen.add(stock.id)
            yield stock

    def _server_total(self, reported: int | None) -> int | None:
        """Server count minus the stocks this list already dropped optimistically."""
        if reported is None:
            return None
        for stock_id in self._pending_deletes:
            self._pending_deletes[stock_id] = True
        return max(0, reported - len(self._pending_deletes))

    def _fail(self, operation: str, exc: Exception, fallback: str) -> None:
        self.last_error = self._error_for(operation, exc, fallback)
        self.status = SyncStatus.ERROR if self.last_error else SyncStatus.IDLE
        self._emit(self.last_error)
        self._notify()

    def _report(self, operation: str, exc: Exception, fallback: str) -> None:
        self.last_mutation_error = self._error_for(operation, exc, fallback)
        self._emit(self.last_mutation_error)

    def _error_for(self, operation: str, exc: Exception, fallback: str) -> SyncError | None:
        if isinstance(exc, AuthError):
            # The HTTP layer already cleared the session and routed to login.
            logger.info("stock_list_auth_rejected", extra={"operation": operation})
            return None
        user_facing = to_user_facing_error(exc, fallback)
        log_action(logger, "stock_list", operation, "error", error=user_facing.technical_details)
        return SyncError(
            operation=operation,
            message=user_facing.message,
            details=user_facing.technical_details,
        )

    def _emit(self, error: SyncError | None) -> None:
        if error is not None and self.on_error:
            self.on_error(error)

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)


async def _resolved(value: Any) -> Any:
    return value
