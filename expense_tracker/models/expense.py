from __future__ import annotations

import math
from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from .constants import (
    AMOUNT_MAX,
    AMOUNT_MIN,
    CATEGORY_MAX_LENGTH,
    CURRENCY_LENGTH,
    CURRENCY_PATTERN,
    EMPTY_UPDATE_MESSAGE,
    INVALID_DATE_MESSAGE,
    NAME_MAX_LENGTH,
)
from expense_tracker.services.timestamps import parse_timestamp


class CamelModel(BaseModel):
    """Base for wire models: snake_case in Python, camelCase in JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Expense(CamelModel):
    id: int
    name: str
    amount: float
    currency: str
    category: str
    date: datetime
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ExpensePayload(BaseModel):
    """Field rules shared by create and update bodies.

    Each field reports at most one problem. Wrong types and blank text fail in
    the ``before`` validators. Length and bound constraints come from
    ``Field``. Currency shape is checked last, so "US" reports its length and
    "usd" its format. Unknown keys are dropped.
    """

    model_config = ConfigDict(extra="ignore")

    creating: ClassVar[bool] = True

    @field_validator("name", "category", mode="before", check_fields=False)
    @classmethod
    def text_present(cls, v: Any, info: ValidationInfo) -> Any:
        if not isinstance(v, str) or not v.strip():
            template = "{field} is required" if cls.creating else "{field} cannot be empty"
            raise PydanticCustomError("text_required", template, {"field": info.field_name})
        return v.strip()

    @field_validator("amount", mode="before", check_fields=False)
    @classmethod
    def amount_is_number(cls, v: Any) -> Any:
        if v is None and cls.creating:
            raise PydanticCustomError("required", "amount is required")
        if isinstance(v, bool) or not isinstance(v, (int, float, Decimal)):
            raise PydanticCustomError("number_type", "amount must be a number")
        if not math.isfinite(v):
            raise PydanticCustomError("number_type", "amount must be a number")
        return float(v)

    @field_validator("currency", mode="before", check_fields=False)
    @classmethod
    def currency_is_text(cls, v: Any) -> Any:
        if cls.creating and (not isinstance(v, str) or not v):
            raise PydanticCustomError("required", "currency is required")
        if not isinstance(v, str):
            raise PydanticCustomError("currency_type", "currency must be a string")
        return v

    @field_validator("currency", check_fields=False)
    @classmethod
    def currency_shape(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not CURRENCY_PATTERN.match(v):
            raise PydanticCustomError("currency_format", "currency format is invalid")
        return v

    @field_validator("date", mode="before", check_fields=False)
    @classmethod
    def iso_timestamp(cls, v: Any) -> datetime:
        parsed = parse_timestamp(v)
        if parsed is None:
            raise PydanticCustomError("iso_timestamp", INVALID_DATE_MESSAGE)
        return parsed


class ExpenseCreate(ExpensePayload):
    name: str = Field(max_length=NAME_MAX_LENGTH)
    amount: float = Field(ge=AMOUNT_MIN, le=AMOUNT_MAX)
    currency: str = Field(min_length=CURRENCY_LENGTH, max_length=CURRENCY_LENGTH)
    category: str = Field(max_length=CATEGORY_MAX_LENGTH)
    date: Optional[datetime] = None  # defaults to now when stored


class ExpenseUpdate(ExpensePayload):
    """Partial update; only supplied fields are validated and written."""

    creating: ClassVar[bool] = False

    name: Optional[str] = Field(None, max_length=NAME_MAX_LENGTH)
    amount: Optional[float] = Field(None, ge=AMOUNT_MIN, le=AMOUNT_MAX)
    currency: Optional[str] = Field(
        None, min_length=CURRENCY_LENGTH, max_length=CURRENCY_LENGTH
    )
    category: Optional[str] = Field(None, max_length=CATEGORY_MAX_LENGTH)
    date: Optional[datetime] = None

    @model_validator(mode="after")
    def at_least_one(self) -> "ExpenseUpdate":
        if not self.model_fields_set:
            raise PydanticCustomError("empty_update", EMPTY_UPDATE_MESSAGE)
        return self


class FieldError(CamelModel):
    """A single field-level problem; ``field`` is ``general`` for payload-wide issues."""

    field: str
    message: str


class Page(CamelModel):
    items: List[Expense]
    total: int
    limit: int
    offset: int
    has_next: bool
    has_previous: bool

    @computed_field  # type: ignore[misc]
    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @computed_field  # type: ignore[misc]
    @property
    def current_page(self) -> int:
        return self.offset // self.limit + 1 if self.limit else 1


class CategoryTotal(CamelModel):
    category: str
    total: float
    count: int


class ExpenseStats(CamelModel):
    total_amount: float
    total_count: int
    categories: List[CategoryTotal]


class PaginationOut(CamelModel):
    total: int
    limit: int
    offset: int
    has_next: bool
    has_previous: bool
    pages: int
    current_page: int


class ExpenseListOut(CamelModel):
    """List envelope; ``pagination`` is null for an unpaginated listing."""

    data: List[Expense]
    count: int
    pagination: Optional[PaginationOut] = None

    @classmethod
    def from_items(cls, items: List[Expense]) -> "ExpenseListOut":
        return cls(data=items, count=len(items), pagination=None)

    @classmethod
    def from_page(cls, page: Page) -> "ExpenseListOut":
        return cls(
            data=page.items,
            count=len(page.items),
            pagination=PaginationOut(
                total=page.total,
                limit=page.limit,
                offset=page.offset,
                has_next=page.has_next,
                has_previous=page.has_previous,
                pages=page.pages,
                current_page=page.current_page,
            ),
        )
