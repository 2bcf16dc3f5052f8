from __future__ import annotations

import re
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FLOAT_RE = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")


def coerce_dose(value: Any) -> float:
    """Numeric dose from whatever the API or a form hands us; junk becomes 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    match = _LEADING_FLOAT_RE.match(str(value))
    return float(match.group(1)) if match else 0.0


def coerce_quantity(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = _LEADING_INT_RE.match(str(value))
    return int(match.group(1)) if match else 0


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Medicine(ApiModel):
    id: int
    name: str
    dose: float = 0.0
    quantity: int = 0
    take_morning: bool = Field(default=False, alias="takeMorning")
    take_afternoon: bool = Field(default=False, alias="takeAfternoon")
    take_evening: bool = Field(default=False, alias="takeEvening")

    @field_validator("dose", mode="before")
    @classmethod
    def _dose(cls, value: Any) -> float:
        return coerce_dose(value)

    @field_validator("quantity", mode="before")
    @classmethod
    def _quantity(cls, value: Any) -> int:
        return coerce_quantity(value)


class MedicineFields(ApiModel):
    """Request body for insert/patch of a medicine; unset fields are omitted."""

    name: Optional[str] = None
    dose: Optional[float] = None
    quantity: Optional[int] = None
    take_morning: Optional[bool] = Field(default=None, alias="takeMorning")
    take_afternoon: Optional[bool] = Field(default=None, alias="takeAfternoon")
    take_evening: Optional[bool] = Field(default=None, alias="takeEvening")

    @field_validator("dose", mode="before")
    @classmethod
    def _dose(cls, value: Any) -> float | None:
        return None if value is None else coerce_dose(value)

    @field_validator("quantity", mode="before")
    @classmethod
    def _quantity(cls, value: Any) -> int | None:
        return None if value is None else coerce_quantity(value)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class Stock(ApiModel):
    id: int
    name: str
    medicines: List[Medicine] = Field(default_factory=list)
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    @field_validator("medicines", mode="before")
    @classmethod
    def _medicines(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def medicine_count(self) -> int:
        return len(self.medicines)


class StockPage(ApiModel):
    items: List[Stock] = Field(default_factory=list)
    # None when the server answered with the legacy bare array.
    total: Optional[int] = None
    page: int = 1
    page_size: int = 10


class User(ApiModel):
    id: str
    name: str | None = None
    email: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, value: Any) -> str:
        return str(value)


class AuthResponse(ApiModel):
    token: str
    user: Optional[User] = None
