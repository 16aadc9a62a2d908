"""Field rules for the expense entity.

Bounds are fixed and not currency-scaled; currency codes are only checked for
shape, never against a real ISO 4217 list.
"""

import re
from typing import Pattern, Tuple

NAME_MAX_LENGTH = 255
CATEGORY_MAX_LENGTH = 100

AMOUNT_MIN = 0.01
AMOUNT_MAX = 999999.99

CURRENCY_LENGTH = 3
CURRENCY_PATTERN: Pattern[str] = re.compile(r"^[A-Z]{3}$")

# Fields a client may set; anything else in a payload is ignored.
UPDATABLE_FIELDS: Tuple[str, ...] = ("name", "amount", "currency", "category", "date")

# Listing / pagination
DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100

# Payload messages callers match on
INVALID_DATE_MESSAGE = "date must be a valid ISO string"
EMPTY_UPDATE_MESSAGE = "At least one field must be provided for update"
