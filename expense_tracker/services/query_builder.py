"""Translate raw listing parameters into a validated ``ListQuery``.

Parameters arrive as optional strings straight from the query string. Checks
run in a fixed order and the first violation wins: a listing request reports
one problem at a time, unlike payload validation which batches.

Supplying either ``limit`` or ``offset`` switches the listing into paginated
mode; the missing half takes its default.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional, Union

from expense_tracker.db.repository import ExpenseFilter
from expense_tracker.models.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from expense_tracker.services.outcomes import Ok, ValidationFailure
from expense_tracker.services.timestamps import parse_timestamp

_INTEGER_RE = re.compile(r"^[+-]?\d+$", re.ASCII)

LIMIT_NOT_POSITIVE = "Limit must be a positive integer"
LIMIT_TOO_LARGE = f"Limit cannot exceed {MAX_PAGE_LIMIT}"
OFFSET_NEGATIVE = "Offset must be a non-negative integer"
DATE_RANGE_INVERTED = "fromDate cannot be after toDate"
CATEGORY_EMPTY = "Category cannot be empty"


@dataclass(frozen=True)
class ListQuery:
    limit: Optional[int] = None
    offset: Optional[int] = None
    category: Optional[str] = None
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None

    @property
    def paginated(self) -> bool:
        return self.limit is not None or self.offset is not None

    @property
    def page_limit(self) -> int:
        return self.limit if self.limit is not None else DEFAULT_PAGE_LIMIT

    @property
    def page_offset(self) -> int:
        return self.offset if self.offset is not None else 0

    @property
    def filter(self) -> ExpenseFilter:
        return ExpenseFilter(
            category=self.category, from_date=self.from_date, to_date=self.to_date
        )


def _parse_int(raw: str) -> Optional[int]:
    text = raw.strip()
    if not _INTEGER_RE.match(text):
        return None
    return int(text)


def build_list_query(
    params: Mapping[str, Optional[str]],
) -> Union[Ok[ListQuery], ValidationFailure]:
    """Validate ``limit``, ``offset``, ``fromDate``, ``toDate`` and ``category``.

    Absent keys and None values both mean "not supplied".
    """
    limit = offset = None
    from_date = to_date = None
    category = None

    raw_limit = params.get("limit")
    if raw_limit is not None:
        limit = _parse_int(raw_limit)
        if limit is None or limit <= 0:
            return ValidationFailure.single("limit", LIMIT_NOT_POSITIVE)
        if limit > MAX_PAGE_LIMIT:
            return ValidationFailure.single("limit", LIMIT_TOO_LARGE)

    raw_offset = params.get("offset")
    if raw_offset is not None:
        offset = _parse_int(raw_offset)
        if offset is None or offset < 0:
            return ValidationFailure.single("offset", OFFSET_NEGATIVE)

    for name in ("fromDate", "toDate"):
        raw = params.get(name)
        if raw is None:
            continue
        parsed = parse_timestamp(raw)
        if parsed is None:
            return ValidationFailure.single(
                name, f"{name} must be a valid ISO date string"
            )
        if name == "fromDate":
            from_date = parsed
        else:
            to_date = parsed

    if from_date is not None and to_date is not None and from_date > to_date:
        return ValidationFailure.single("fromDate", DATE_RANGE_INVERTED)

    raw_category = params.get("category")
    if raw_category is not None:
        category = raw_category.strip()
        if not category:
            return ValidationFailure.single("category", CATEGORY_EMPTY)

    return Ok(
        ListQuery(
            limit=limit,
            offset=offset,
            category=category,
            from_date=from_date,
            to_date=to_date,
        )
    )


__all__ = ["ListQuery", "build_list_query"]
