from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from medstock_client.models import Stock
from medstock_client.validation import ClientValidationError, validate_stock_name

from medstock_app.sync.list_synchronizer import StockListSynchronizer


@dataclass
class StockNameEditor:
    """Create/rename modal for a stock's name."""

    synchronizer: StockListSynchronizer
    is_open: bool = False
    editing_id: int | None = None
    name: str = ""
    error: str | None = None
    is_saving: bool = False

    def open_create(self) -> None:
        self.is_open = True
        self.editing_id = None
        self.name = ""
        self.error = None

    def open_rename(self, stock: Stock) -> None:
        self.is_open = True
        self.editing_id = stock.id
        self.name = stock.name
        self.error = None

    def close(self) -> None:
        self.is_open = False
        self.editing_id = None
        self.name = ""
        self.error = None

    async def submit(self) -> Stock | None:
        if self.is_saving:
            return None
        try:
            name = validate_stock_name(self.name)
        except ClientValidationError as exc:
            self.error = str(exc)
            return None
        self.is_saving = True
        self.error = None
        previous_error = self.synchronizer.last_mutation_error
        try:
            if self.editing_id is None:
                saved = await self.synchronizer.create(name)
            else:
                saved = await self.synchronizer.rename(self.editing_id, name)
        finally:
            self.is_saving = False
        if saved is None:
            last = self.synchronizer.last_mutation_error
            self.error = last.message if last is not None and last is not previous_error else None
            return None
        self.close()
        return saved

    def render(self) -> dict[str, Any]:
        return {
            "open": self.is_open,
            "title": "Edit Stock Name" if self.editing_id is not None else "Create New Stock",
            "name": self.name,
            "placeholder": "e.g. Bathroom Cabinet, Travel Kit",
            "error": self.error,
            "saving": self.is_saving,
        }
