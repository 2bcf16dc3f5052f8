from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Protocol, TypeVar

from pydantic import ValidationError as PydanticValidationError

from medstock_client.clients.stock_client import StockClient
from medstock_client.exceptions import UnexpectedResponseError
from medstock_client.models import Medicine, MedicineFields, Stock, StockPage

T = TypeVar("T")


class StockGateway(Protocol):
    """What the synchronizer and editors need from the stock API."""

    async def list_stocks(self, page: int, page_size: int) -> StockPage: ...

    async def get_stock(self, stock_id: int) -> Stock: ...

    async def create_stock(self, name: str) -> Stock: ...

    async def rename_stock(self, stock_id: int, name: str) -> Stock: ...

    async def delete_stock(self, stock_id: int) -> None: ...

    async def add_medicine(self, stock_id: int, fields: MedicineFields | Mapping[str, Any]) -> Stock: ...

    async def edit_medicine(self, medicine_id: int, fields: MedicineFields | Mapping[str, Any]) -> Medicine: ...

    async def delete_medicine(self, medicine_id: int) -> None: ...


@dataclass
class StockAsyncGateway:
    """Runs the blocking :class:`StockClient` off the event loop.

    Coroutines awaiting this gateway suspend only while the HTTP call is in
    flight; all state mutation stays on the loop thread.
    """

    client: StockClient

    async def _call(self, fn: Callable[..., T], *args: Any) -> T:
        try:
            return await asyncio.to_thread(fn, *args)
        except PydanticValidationError as exc:
            raise UnexpectedResponseError(
                code="UNEXPECTED_RESPONSE",
                message="Server response did not match the expected shape",
                details={"errors": exc.error_count()},
                status_code=200,
                raw_payload=None,
            ) from exc

    async def list_stocks(self, page: int, page_size: int) -> StockPage:
        return await self._call(self.client.list_stocks, page, page_size)

    async def get_stock(self, stock_id: int) -> Stock:
        return await self._call(self.client.get_stock, stock_id)

    async def create_stock(self, name: str) -> Stock:
        return await self._call(self.client.create_stock, name)

    async def rename_stock(self, stock_id: int, name: str) -> Stock:
        return await self._call(self.client.rename_stock, stock_id, name)

    async def delete_stock(self, stock_id: int) -> None:
        await self._call(self.client.delete_stock, stock_id)

    async def add_medicine(self, stock_id: int, fields: MedicineFields | Mapping[str, Any]) -> Stock:
        return await self._call(self.client.add_medicine, stock_id, fields)

    async def edit_medicine(self, medicine_id: int, fields: MedicineFields | Mapping[str, Any]) -> Medicine:
        return await self._call(self.client.edit_medicine, medicine_id, fields)

    async def delete_medicine(self, medicine_id: int) -> None:
        await self._call(self.client.delete_medicine, medicine_id)
