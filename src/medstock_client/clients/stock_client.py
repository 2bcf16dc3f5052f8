from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from ..exceptions import NotFoundError, UnexpectedResponseError
from ..models import Medicine, MedicineFields, Stock, StockPage
from .base import BaseClient

logger = logging.getLogger(__name__)


@dataclass
class StockClient(BaseClient):
    module: str = "stock"

    def list_stocks(self, page: int = 1, page_size: int = 10) -> StockPage:
        if page < 1:
            raise ValueError("page must be >= 1")
        payload = self._request(
            "GET", "/stock/getAll", operation="list", params={"page": page, "limit": page_size}
        )
        return parse_stock_page(payload, page=page, page_size=page_size)

    def get_stock(self, stock_id: int) -> Stock:
        try:
            payload = self._request("GET", f"/stock/{stock_id}", operation="get")
        except NotFoundError:
            # Older deployments only expose the /stock/get/{id} route.
            logger.info("stock_get_legacy_route", extra={"stock_id": stock_id})
            payload = self._request("GET", f"/stock/get/{stock_id}", operation="get_legacy")
        return Stock.model_validate(self._expect_object(payload, "stock"))

    def create_stock(self, name: str) -> Stock:
        payload = self._request("POST", "/stock/create", operation="create", json_body={"name": name})
        return Stock.model_validate(self._expect_object(payload, "create stock"))

    def rename_stock(self, stock_id: int, name: str) -> Stock:
        payload = self._request("PATCH", f"/stock/{stock_id}", operation="rename", json_body={"name": name})
        data = self._expect_object(payload, "rename stock")
        return Stock.model_validate({"id": stock_id, "name": name, **data})

    def delete_stock(self, stock_id: int) -> None:
        self._request("DELETE", f"/stock/{stock_id}", operation="delete")

    def add_medicine(self, stock_id: int, fields: MedicineFields | Mapping[str, Any]) -> Stock:
        """Insert a medicine and return the parent stock as the server now sees it.

        Some deployments answer with the whole stock, others with just the new
        medicine; the latter costs one extra fetch.
        """
        body = _medicine_payload(fields)
        payload = self._request(
            "POST", f"/stock/insertMedicine/{stock_id}", operation="add_medicine", json_body=body
        )
        data = self._expect_object(payload, "insert medicine")
        if "medicines" in data:
            return Stock.model_validate(data)
        Medicine.model_validate(data)
        return self.get_stock(stock_id)

    def edit_medicine(self, medicine_id: int, fields: MedicineFields | Mapping[str, Any]) -> Medicine:
        body = _medicine_payload(fields)
        payload = self._request(
            "PATCH", f"/stock/medicine/{medicine_id}", operation="edit_medicine", json_body=body
        )
        data = self._expect_object(payload, "edit medicine")
        return Medicine.model_validate({"id": medicine_id, **body, **data})

    def delete_medicine(self, medicine_id: int) -> None:
        self._request("DELETE", f"/stock/medicine/{medicine_id}", operation="delete_medicine")


def _medicine_payload(fields: MedicineFields | Mapping[str, Any]) -> dict[str, Any]:
    model = fields if isinstance(fields, MedicineFields) else MedicineFields.model_validate(dict(fields))
    return model.to_payload()


def parse_stock_page(payload: Any, *, page: int, page_size: int) -> StockPage:
    """Accept both ``{"data": [...], "total": n}`` and the legacy bare array."""
    if isinstance(payload, list):
        items = payload
        total = None
    elif isinstance(payload, dict) and isinstance(payload.get("data"), list):
        items = payload["data"]
        raw_total = payload.get("total")
        total = int(raw_total) if raw_total is not None else None
    else:
        raise UnexpectedResponseError(
            code="UNEXPECTED_RESPONSE",
            message="Expected stock list response to be a list or a {data, total} object",
            details={"received": type(payload).__name__},
            status_code=200,
            raw_payload=payload,
        )
    return StockPage(
        items=[Stock.model_validate(item) for item in items],
        total=total,
        page=page,
        page_size=page_size,
    )
