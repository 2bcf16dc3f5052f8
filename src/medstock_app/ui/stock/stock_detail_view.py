from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from medstock_client.exceptions import ApiError, AuthError
from medstock_client.models import Medicine, Stock
from medstock_client.ui_errors import to_user_facing_error
from medstock_client.validation import ClientValidationError, validate_medicine_form

from medstock_app.services.stock_gateway import StockGateway
from medstock_app.sync.list_synchronizer import StockListSynchronizer
from medstock_app.ui.shared.notification_center import NotificationCenter
from medstock_app.ui.shared.view_state import detail_screen_state

logger = logging.getLogger(__name__)

SCHEDULE_COLUMNS: tuple[tuple[str, str, str], ...] = (
    ("morning", "Morning", "take_morning"),
    ("afternoon", "Noon", "take_afternoon"),
    ("evening", "Evening", "take_evening"),
)


def empty_medicine_form() -> dict[str, Any]:
    return {
        "name": "",
        "dose": "",
        "quantity": "",
        "take_morning": False,
        "take_afternoon": False,
        "take_evening": False,
    }


def medicine_form_from(medicine: Medicine) -> dict[str, Any]:
    dose = medicine.dose
    return {
        "name": medicine.name,
        "dose": str(int(dose)) if float(dose).is_integer() else str(dose),
        "quantity": str(medicine.quantity),
        "take_morning": medicine.take_morning,
        "take_afternoon": medicine.take_afternoon,
        "take_evening": medicine.take_evening,
    }


def medicine_card(medicine: Medicine) -> dict[str, Any]:
    return {
        "id": medicine.id,
        "name": medicine.name,
        "dose": medicine.dose,
        "quantity": medicine.quantity,
        "low_stock": medicine.quantity <= 0,
    }


@dataclass
class StockDetailEditor:
    """One stock with its medicines, always loaded fresh from the API.

    Every confirmed change is reported back to the list synchronizer, if one
    is attached, so the dashboard's medicine counts follow along.
    """

    gateway: StockGateway
    stock_id: int
    synchronizer: StockListSynchronizer | None = None
    notifications: NotificationCenter = field(default_factory=NotificationCenter)
    stock: Stock | None = None
    is_loading: bool = False
    is_saving: bool = False
    load_error: str | None = None
    form_open: bool = False
    form: dict[str, Any] = field(default_factory=empty_medicine_form)
    form_error: str | None = None
    editing_medicine_id: int | None = None
    pending_delete_id: int | None = None
    closed: bool = False

    async def load(self) -> bool:
        self.is_loading = True
        self.load_error = None
        try:
            if self.synchronizer is not None:
                previous_error = self.synchronizer.last_mutation_error
                stock = await self.synchronizer.open_detail(self.stock_id)
                last = self.synchronizer.last_mutation_error
                if stock is None and last is not None and last is not previous_error:
                    self.load_error = last.message
            else:
                stock = await self._fetch()
        finally:
            self.is_loading = False
        if self.closed or stock is None:
            return False
        self.stock = stock
        return True

    async def _fetch(self) -> Stock | None:
        try:
            return await self.gateway.get_stock(self.stock_id)
        except ApiError as exc:
            if not isinstance(exc, AuthError):
                self.load_error = to_user_facing_error(exc, "Could not load stock details.").message
            return None

    def close(self) -> None:
        self.closed = True

    # -- form state ------------------------------------------------------

    def open_add(self) -> None:
        self.form = empty_medicine_form()
        self.editing_medicine_id = None
        self.form_error = None
        self.form_open = True

    def open_edit(self, medicine_id: int) -> None:
        medicine = self._medicine(medicine_id)
        if medicine is None:
            raise KeyError(medicine_id)
        self.form = medicine_form_from(medicine)
        self.editing_medicine_id = medicine_id
        self.form_error = None
        self.form_open = True

    def update_form(self, **values: Any) -> None:
        unknown = set(values) - set(self.form)
        if unknown:
            raise KeyError(", ".join(sorted(unknown)))
        self.form.update(values)

    def close_form(self) -> None:
        self.form_open = False
        self.editing_medicine_id = None
        self.form = empty_medicine_form()
        self.form_error = None

    async def submit_form(self) -> bool:
        if self.editing_medicine_id is None:
            saved = await self.add_medicine(self.form)
        else:
            saved = await self.edit_medicine(self.editing_medicine_id, self.form)
        if saved:
            self.close_form()
        return saved

    # -- medicine operations ---------------------------------------------

    async def add_medicine(self, form: Mapping[str, Any]) -> bool:
        if self.is_saving:
            return False
        try:
            fields = validate_medicine_form(form)
        except ClientValidationError as exc:
            self.form_error = str(exc)
            return False
        self.is_saving = True
        try:
            updated = await self.gateway.add_medicine(self.stock_id, fields)
        except ApiError as exc:
            self._report("Add medicine", exc, "Failed to add medicine")
            return False
        finally:
            self.is_saving = False
        if self.closed:
            return False
        self._replace_stock(updated)
        logger.info("medicine_added", extra={"stock_id": self.stock_id})
        return True

    async def edit_medicine(self, medicine_id: int, form: Mapping[str, Any]) -> bool:
        if self.is_saving:
            return False
        try:
            fields = validate_medicine_form(form, partial=True)
        except ClientValidationError as exc:
            self.form_error = str(exc)
            return False
        self.is_saving = True
        try:
            medicine = await self.gateway.edit_medicine(medicine_id, fields)
        except ApiError as exc:
            self._report("Update medicine", exc, "Failed to update medicine")
            return False
        finally:
            self.is_saving = False
        if self.closed or self.stock is None:
            return False
        medicines = [medicine if current.id == medicine.id else current for current in self.stock.medicines]
        self._replace_stock(self.stock.model_copy(update={"medicines": medicines}))
        logger.info("medicine_updated", extra={"stock_id": self.stock_id, "medicine_id": medicine_id})
        return True

    def request_delete(self, medicine_id: int) -> None:
        self.pending_delete_id = medicine_id

    def cancel_delete(self) -> None:
        self.pending_delete_id = None

    async def confirm_delete(self) -> bool:
        medicine_id = self.pending_delete_id
        if medicine_id is None:
            return False
        try:
            return await self.delete_medicine(medicine_id)
        finally:
            self.pending_delete_id = None

    async def delete_medicine(self, medicine_id: int) -> bool:
        if self.is_saving:
            return False
        self.is_saving = True
        try:
            await self.gateway.delete_medicine(medicine_id)
        except ApiError as exc:
            self._report("Delete medicine", exc, "Failed to delete medicine")
            return False
        finally:
            self.is_saving = False
        if self.closed or self.stock is None:
            return False
        medicines = [current for current in self.stock.medicines if current.id != medicine_id]
        self._replace_stock(self.stock.model_copy(update={"medicines": medicines}))
        logger.info("medicine_deleted", extra={"stock_id": self.stock_id, "medicine_id": medicine_id})
        return True

    # -- rendering -------------------------------------------------------

    def schedule(self) -> dict[str, list[dict[str, Any]]]:
        medicines = self.stock.medicines if self.stock else []
        return {
            key: [medicine_card(medicine) for medicine in medicines if getattr(medicine, flag)]
            for key, _label, flag in SCHEDULE_COLUMNS
        }

    def unscheduled(self) -> list[dict[str, Any]]:
        medicines = self.stock.medicines if self.stock else []
        return [
            medicine_card(medicine)
            for medicine in medicines
            if not (medicine.take_morning or medicine.take_afternoon or medicine.take_evening)
        ]

    def render(self) -> dict[str, Any]:
        state = detail_screen_state(
            is_loading=self.is_loading, load_error=self.load_error, found=self.stock is not None
        )
        columns = self.schedule()
        count = self.stock.medicine_count if self.stock else 0
        return {
            "title": self.stock.name if self.stock else None,
            "summary": f"Inventory of {count} medications",
            "columns": [
                {
                    "key": key,
                    "label": label,
                    "medicines": columns[key],
                    "empty_message": f"No {label.lower()} meds" if not columns[key] else None,
                }
                for key, label, _flag in SCHEDULE_COLUMNS
            ],
            "unscheduled": self.unscheduled(),
            "form": {
                "open": self.form_open,
                "title": "Edit Medication" if self.editing_medicine_id is not None else "Add Medication",
                "values": dict(self.form),
                "error": self.form_error,
                "saving": self.is_saving,
            },
            "delete_confirmation": (
                {"medicine_id": self.pending_delete_id} if self.pending_delete_id is not None else None
            ),
            "view_state": state.render(),
            "notifications": self.notifications.render(),
        }

    # -- internals -------------------------------------------------------

    def _medicine(self, medicine_id: int) -> Medicine | None:
        if self.stock is None:
            return None
        return next((medicine for medicine in self.stock.medicines if medicine.id == medicine_id), None)

    def _replace_stock(self, stock: Stock) -> None:
        self.stock = stock
        if self.synchronizer is not None:
            self.synchronizer.apply_detail(stock)

    def _report(self, title: str, exc: ApiError, fallback: str) -> None:
        if isinstance(exc, AuthError):
            return
        error = to_user_facing_error(exc, fallback)
        self.form_error = error.message
        self.notifications.push_error(title, error)
