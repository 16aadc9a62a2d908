"""Expense use cases: validation, query building and storage, composed.

Every public method returns an outcome (``Ok``, ``ValidationFailure``,
``NotFound`` or ``StorageError``) and never raises for bad input or missing
rows. ``RepositoryError`` from the storage layer is logged with the operation
name and id, then surfaced as ``StorageError``; there are no retries.

Update performs a lookup and then a write without a surrounding transaction.
A concurrent delete between the two is reported as ``NotFound``.
"""

from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, List, Mapping, Optional, Union

from expense_tracker.db.repository import (
    DEFAULT_ORDERING,
    ExpenseRepository,
    NewExpense,
    RepositoryError,
)
from expense_tracker.models.expense import (
    CategoryTotal,
    Expense,
    ExpenseCreate,
    ExpenseStats,
    ExpenseUpdate,
    FieldError,
    Page,
)
from expense_tracker.services.expense_validation import (
    INVALID_ID_MESSAGE,
    parse_expense_id,
    parse_payload,
)
from expense_tracker.services.outcomes import (
    NotFound,
    Ok,
    Outcome,
    StorageError,
    ValidationFailure,
)
from expense_tracker.services.query_builder import ListQuery, build_list_query
from expense_tracker.services.timestamps import utc_now

logger = logging.getLogger("expense_tracker.expenses")

PAYLOAD_NOT_OBJECT = "Request body must be a JSON object"
SEARCH_PARAMS_MISSING = (
    "Please provide either category or both startDate and endDate parameters"
)
_SEARCH_PARAM_NAMES = {"fromDate": "startDate", "toDate": "endDate"}


def _round2(value: float) -> float:
    """Half-up to cents, the rounding every reported sum uses."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


class ExpenseService:
    def __init__(self, repository: ExpenseRepository):
        self.repository = repository

    # ------------------------------------------------------------------
    # Helpers
    def _storage_error(
        self, operation: str, exc: RepositoryError, expense_id: Optional[int] = None
    ) -> StorageError:
        logger.error(
            "storage failure",
            exc_info=exc,
            extra={"operation": operation, "expense_id": expense_id},
        )
        return StorageError(operation=operation, cause=exc)

    def _rejected(self, operation: str, failure: ValidationFailure) -> ValidationFailure:
        logger.debug(
            "validation failed: %s",
            ", ".join(e.field for e in failure.errors),
            extra={"operation": operation},
        )
        return failure

    def _invalid_id(self, operation: str) -> ValidationFailure:
        return self._rejected(operation, ValidationFailure.single("id", INVALID_ID_MESSAGE))

    def _run_query(
        self, query: ListQuery, operation: str
    ) -> Outcome[Union[List[Expense], Page]]:
        try:
            if not query.paginated:
                return Ok(self.repository.find_many(query.filter, DEFAULT_ORDERING))
            limit, offset = query.page_limit, query.page_offset
            items = self.repository.find_many(query.filter, DEFAULT_ORDERING, limit, offset)
            total = self.repository.count(query.filter)
        except RepositoryError as exc:
            return self._storage_error(operation, exc)
        return Ok(
            Page(
                items=items,
                total=total,
                limit=limit,
                offset=offset,
                has_next=offset + limit < total,
                has_previous=offset > 0,
            )
        )

    # ------------------------------------------------------------------
    # Operations
    def create(self, payload: Mapping[str, Any]) -> Outcome[Expense]:
        if not isinstance(payload, Mapping):
            return self._rejected(
                "create", ValidationFailure.single("general", PAYLOAD_NOT_OBJECT)
            )
        data = parse_payload(ExpenseCreate, payload)
        if isinstance(data, list):
            return self._rejected("create", ValidationFailure(data))

        record = NewExpense(
            name=data.name,
            amount=data.amount,
            currency=data.currency,
            category=data.category,
            date=data.date or utc_now(),
        )
        try:
            expense = self.repository.create(record)
        except RepositoryError as exc:
            return self._storage_error("create", exc)
        logger.info("expense created", extra={"operation": "create", "expense_id": expense.id})
        return Ok(expense)

    def get_by_id(self, raw_id: Any) -> Outcome[Expense]:
        expense_id = parse_expense_id(raw_id)
        if expense_id is None:
            return self._invalid_id("get_by_id")
        try:
            expense = self.repository.find_by_id(expense_id)
        except RepositoryError as exc:
            return self._storage_error("get_by_id", exc, expense_id)
        if expense is None:
            logger.info(
                "expense not found", extra={"operation": "get_by_id", "expense_id": expense_id}
            )
            return NotFound(identifier=expense_id)
        return Ok(expense)

    def list_expenses(
        self, params: Mapping[str, Optional[str]]
    ) -> Outcome[Union[List[Expense], Page]]:
        """List matching expenses; a ``Page`` when ``limit`` or ``offset`` is given."""
        built = build_list_query(params)
        if isinstance(built, ValidationFailure):
            return self._rejected("list", built)
        return self._run_query(built.value, "list")

    def search(
        self,
        category: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> Outcome[List[Expense]]:
        """Category search when ``category`` is given, else an inclusive date range."""
        if category:
            built = build_list_query({"category": category})
        elif start_date and end_date:
            built = build_list_query({"fromDate": start_date, "toDate": end_date})
        else:
            return self._rejected(
                "search", ValidationFailure.single("general", SEARCH_PARAMS_MISSING)
            )
        if isinstance(built, ValidationFailure):
            renamed = []
            for err in built.errors:
                message = err.message
                for old, new in _SEARCH_PARAM_NAMES.items():
                    message = message.replace(old, new)
                renamed.append(
                    FieldError(field=_SEARCH_PARAM_NAMES.get(err.field, err.field), message=message)
                )
            return self._rejected("search", ValidationFailure(renamed))
        return self._run_query(built.value, "search")

    def update(self, raw_id: Any, payload: Mapping[str, Any]) -> Outcome[Expense]:
        expense_id = parse_expense_id(raw_id)
        if expense_id is None:
            return self._invalid_id("update")
        if not isinstance(payload, Mapping):
            return self._rejected(
                "update", ValidationFailure.single("general", PAYLOAD_NOT_OBJECT)
            )
        data = parse_payload(ExpenseUpdate, payload)
        if isinstance(data, list):
            return self._rejected("update", ValidationFailure(data))

        try:
            if self.repository.find_by_id(expense_id) is None:
                logger.info(
                    "expense not found", extra={"operation": "update", "expense_id": expense_id}
                )
                return NotFound(identifier=expense_id)
            updated = self.repository.update(
                expense_id, data.model_dump(exclude_unset=True)
            )
        except RepositoryError as exc:
            return self._storage_error("update", exc, expense_id)
        if updated is None:
            logger.info(
                "expense vanished before update",
                extra={"operation": "update", "expense_id": expense_id},
            )
            return NotFound(identifier=expense_id)
        logger.info("expense updated", extra={"operation": "update", "expense_id": expense_id})
        return Ok(updated)

    def delete(self, raw_id: Any) -> Outcome[bool]:
        expense_id = parse_expense_id(raw_id)
        if expense_id is None:
            return self._invalid_id("delete")
        try:
            existed = self.repository.delete(expense_id)
        except RepositoryError as exc:
            return self._storage_error("delete", exc, expense_id)
        if not existed:
            logger.info(
                "expense not found", extra={"operation": "delete", "expense_id": expense_id}
            )
            return NotFound(identifier=expense_id)
        logger.info("expense deleted", extra={"operation": "delete", "expense_id": expense_id})
        return Ok(True)

    def stats(self) -> Outcome[ExpenseStats]:
        try:
            totals = self.repository.aggregate_totals()
            by_category = self.repository.aggregate_by_category()
        except RepositoryError as exc:
            return self._storage_error("stats", exc)
        return Ok(
            ExpenseStats(
                total_amount=_round2(totals.total_amount),
                total_count=totals.total_count,
                categories=[
                    CategoryTotal(category=c.category, total=_round2(c.total), count=c.count)
                    for c in by_category
                ],
            )
        )


__all__ = ["ExpenseService"]
