"""Storage contract the expense service runs against.

Implementations translate engine failures into ``RepositoryError``; absence
of a row is never an exception (``None`` / ``False`` instead).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from expense_tracker.models.expense import CategoryTotal, Expense


class RepositoryError(Exception):
    """Raised when the storage engine fails unexpectedly."""

    def __init__(self, operation: str, message: str = "storage failure"):
        super().__init__(f"{operation}: {message}")
        self.operation = operation


@dataclass(frozen=True)
class ExpenseFilter:
    """AND-combined listing constraints; a None field means unconstrained."""

    category: Optional[str] = None
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None


@dataclass(frozen=True)
class SortKey:
    column: str
    descending: bool = True


# Occurrence time, newest first; id breaks ties so pages never overlap.
DEFAULT_ORDERING: Tuple[SortKey, ...] = (SortKey("date"), SortKey("id"))


@dataclass(frozen=True)
class NewExpense:
    name: str
    amount: float
    currency: str
    category: str
    date: datetime


@dataclass(frozen=True)
class ExpenseTotals:
    total_amount: float
    total_count: int


class ExpenseRepository(ABC):
    @abstractmethod
    def create(self, record: NewExpense) -> Expense:
        ...

    @abstractmethod
    def find_by_id(self, expense_id: int) -> Optional[Expense]:
        ...

    @abstractmethod
    def find_many(
        self,
        expense_filter: ExpenseFilter,
        ordering: Sequence[SortKey] = DEFAULT_ORDERING,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Expense]:
        ...

    @abstractmethod
    def count(self, expense_filter: ExpenseFilter) -> int:
        ...

    @abstractmethod
    def update(self, expense_id: int, fields: Dict[str, Any]) -> Optional[Expense]:
        """Write only ``fields`` and refresh ``updated_at``; None if the row is gone."""

    @abstractmethod
    def delete(self, expense_id: int) -> bool:
        """Hard delete; True if a row existed."""

    @abstractmethod
    def aggregate_totals(self) -> ExpenseTotals:
        ...

    @abstractmethod
    def aggregate_by_category(self) -> List[CategoryTotal]:
        """Per-category sum and count, largest total first."""

    def ping(self) -> bool:
        return True


__all__ = [
    "RepositoryError",
    "ExpenseFilter",
    "SortKey",
    "DEFAULT_ORDERING",
    "NewExpense",
    "ExpenseTotals",
    "ExpenseRepository",
]
