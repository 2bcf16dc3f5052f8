from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from .models import MedicineFields, coerce_dose, coerce_quantity

MAX_NAME_LENGTH = 120
SCHEDULE_FIELDS = ("take_morning", "take_afternoon", "take_evening")


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    reason: str


class ClientValidationError(ValueError):
    def __init__(self, issues: list[ValidationIssue]) -> None:
        self.issues = issues
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if not self.issues:
            return "Validation failed"
        issue = self.issues[0]
        return f"{issue.field}: {issue.reason}"


def _check_name(value: Any, field: str, issues: list[ValidationIssue]) -> str:
    name = str(value or "").strip()
    if not name:
        issues.append(ValidationIssue(field=field, reason=f"{field} is required"))
    elif len(name) > MAX_NAME_LENGTH:
        issues.append(ValidationIssue(field=field, reason=f"{field} must be at most {MAX_NAME_LENGTH} characters"))
    return name


def validate_stock_name(value: Any) -> str:
    issues: list[ValidationIssue] = []
    name = _check_name(value, "name", issues)
    if issues:
        raise ClientValidationError(issues)
    return name


def validate_medicine_form(form: Mapping[str, Any], *, partial: bool = False) -> MedicineFields:
    """Turn raw form input into a request body.

    Dose and quantity arrive as text; anything unparseable counts as 0, but
    negative values are rejected. With ``partial`` only the keys present in
    ``form`` are validated and sent.
    """
    issues: list[ValidationIssue] = []
    values: dict[str, Any] = {}

    if not partial or "name" in form:
        values["name"] = _check_name(form.get("name"), "name", issues)
    if not partial or "dose" in form:
        dose = coerce_dose(form.get("dose"))
        if dose < 0:
            issues.append(ValidationIssue(field="dose", reason="dose must not be negative"))
        values["dose"] = dose
    if not partial or "quantity" in form:
        quantity = coerce_quantity(form.get("quantity"))
        if quantity < 0:
            issues.append(ValidationIssue(field="quantity", reason="quantity must not be negative"))
        values["quantity"] = quantity
    for key in SCHEDULE_FIELDS:
        if not partial or key in form:
            values[key] = bool(form.get(key, False))

    if issues:
        raise ClientValidationError(issues)
    return MedicineFields(**values)
