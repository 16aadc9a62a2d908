"""Outcome variants returned by the validation, query and service layers.

A closed set: ``Ok | ValidationFailure | NotFound | StorageError``. Callers
branch with ``isinstance`` and map each variant onto their own vocabulary
(HTTP status codes in the routers).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, List, Optional, TypeVar, Union

from expense_tracker.models.expense import FieldError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class ValidationFailure:
    errors: List[FieldError]

    @classmethod
    def single(cls, field_name: str, message: str) -> "ValidationFailure":
        return cls([FieldError(field=field_name, message=message)])

    @property
    def messages(self) -> List[str]:
        return [e.message for e in self.errors]


@dataclass(frozen=True)
class NotFound:
    resource: str = "Expense"
    identifier: Optional[int] = None

    @property
    def message(self) -> str:
        if self.identifier is None:
            return f"{self.resource} not found"
        return f"{self.resource} with ID {self.identifier} not found"


@dataclass(frozen=True)
class StorageError:
    operation: str
    cause: Optional[BaseException] = field(default=None, repr=False, compare=False)


Outcome = Union[Ok[T], ValidationFailure, NotFound, StorageError]


__all__ = ["Ok", "ValidationFailure", "NotFound", "StorageError", "Outcome"]
