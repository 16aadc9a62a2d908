"""Pydantic domain models for the expense tracker."""

from .constants import (
    AMOUNT_MAX,
    AMOUNT_MIN,
    DEFAULT_PAGE_LIMIT,
    MAX_PAGE_LIMIT,
)  # re-export
from .expense import (
    CategoryTotal,
    Expense,
    ExpenseCreate,
    ExpenseListOut,
    ExpenseStats,
    ExpenseUpdate,
    FieldError,
    Page,
)

__all__ = [
    "AMOUNT_MAX",
    "AMOUNT_MIN",
    "DEFAULT_PAGE_LIMIT",
    "MAX_PAGE_LIMIT",
    "CategoryTotal",
    "Expense",
    "ExpenseCreate",
    "ExpenseListOut",
    "ExpenseStats",
    "ExpenseUpdate",
    "FieldError",
    "Page",
]
