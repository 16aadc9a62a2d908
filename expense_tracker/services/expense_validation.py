"""Expense payload validation on top of the pydantic payload models.

``ExpenseCreate`` / ``ExpenseUpdate`` carry the field rules; this module turns
their ``ValidationError`` into ``FieldError`` items with stable wording, one per
field, in the order name, amount, currency, category, date.

Callers depend on some of the wording:
- amount bound messages differ ("must be at least" vs "cannot exceed") so a
  caller can tell which boundary failed;
- date failures always contain "valid ISO string".
"""

from __future__ import annotations

from typing import Any, List, Optional, Type, TypeVar, Union

from pydantic import ValidationError

from expense_tracker.models.constants import EMPTY_UPDATE_MESSAGE, INVALID_DATE_MESSAGE
from expense_tracker.models.expense import (
    ExpenseCreate,
    ExpensePayload,
    ExpenseUpdate,
    FieldError,
)

INVALID_ID_MESSAGE = "Invalid expense ID"

PayloadT = TypeVar("PayloadT", bound=ExpensePayload)


def _message(field: str, err: dict) -> str:
    kind = err["type"]
    ctx = err.get("ctx") or {}
    if kind == "missing":
        return f"{field} is required"
    if kind == "string_too_long":
        return f"{field} must be at most {ctx['max_length']} characters long"
    if kind == "string_too_short":
        return f"{field} must be at least {ctx['min_length']} characters long"
    if kind == "greater_than_equal":
        return f"{field} must be at least {ctx['ge']}"
    if kind == "less_than_equal":
        return f"{field} cannot exceed {ctx['le']}"
    return err["msg"]


def field_errors(exc: ValidationError) -> List[FieldError]:
    """Flatten a pydantic error batch; model-level problems land on ``general``."""
    errors: List[FieldError] = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err["loc"]) or "general"
        errors.append(FieldError(field=field, message=_message(field, err)))
    return errors


def parse_payload(
    model: Type[PayloadT], payload: Any
) -> Union[PayloadT, List[FieldError]]:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        return field_errors(exc)


def validate_create_payload(payload: Any) -> List[FieldError]:
    result = parse_payload(ExpenseCreate, payload)
    return result if isinstance(result, list) else []


def validate_update_payload(payload: Any) -> List[FieldError]:
    """Only supplied fields are checked; no recognized field at all is a
    single ``general`` error."""
    result = parse_payload(ExpenseUpdate, payload)
    return result if isinstance(result, list) else []


def parse_expense_id(raw: Any) -> Optional[int]:
    """Return ``raw`` as a positive integer id, or None when malformed.

    Decimal strings ("1.5"), signs, zero and booleans are all malformed.
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw if raw > 0 else None
    if not isinstance(raw, str):
        return None
    text = raw.strip()
    if not text.isdigit() or not text.isascii():
        return None
    value = int(text)
    return value if value > 0 else None


__all__ = [
    "field_errors",
    "parse_payload",
    "validate_create_payload",
    "validate_update_payload",
    "parse_expense_id",
    "INVALID_ID_MESSAGE",
    "EMPTY_UPDATE_MESSAGE",
    "INVALID_DATE_MESSAGE",
]
