from dataclasses import dataclass
from typing import Iterable
import re

from .errors import ValidationError
from .logic import is_low_stock
from .validation import CATEGORIES

ALL_CATEGORIES = "All"

# Public sort key -> item attribute
SORT_FIELDS = {
    "name": "name",
    "description": "description",
    "category": "category",
    "quantity": "quantity",
    "price": "price",
    "sku": "sku",
    "lowStockThreshold": "low_stock_threshold",
    "low_stock_threshold": "low_stock_threshold",
    "createdAt": "created_at",
    "created_at": "created_at",
    "updatedAt": "updated_at",
    "updated_at": "updated_at",
}
DEFAULT_SORT = [("created_at", True)]


@dataclass
class ItemQuery:
    search: str | None = None
    category: str | None = None
    low_stock_only: bool = False
    sort: str | None = None


def parse_sort(sort: str | None) -> list[tuple[str, bool]]:
    """
    Parses keys like ``"-price"`` or ``"category -quantity"`` into
    ``[(attribute, descending), ...]``. Unknown keys raise ValidationError.
    """
    if not sort or not sort.strip():
        return list(DEFAULT_SORT)
    keys = []
    for token in re.split(r"[\s,]+", sort.strip()):
        if not token:
            continue
        descending = token.startswith("-")
        name = token[1:] if descending else token.lstrip("+")
        if name not in SORT_FIELDS:
            raise ValidationError.single("sort", f"Unknown sort key: {token}")
        keys.append((SORT_FIELDS[name], descending))
    return keys or list(DEFAULT_SORT)


def _sort_value(item, attribute):
    value = getattr(item, attribute)
    if isinstance(value, str):
        return value.casefold()
    return value


def filter_items(items: Iterable, query: ItemQuery) -> list:
    """Applies search, category, sort and then the low-stock filter."""
    results = list(items)

    search = (query.search or "").strip()
    if search:
        needle = search.casefold()
        results = [
            item for item in results
            if needle in item.name.casefold() or needle in (item.description or "").casefold()
        ]

    category = (query.category or "").strip()
    if category and category != ALL_CATEGORIES:
        if category not in CATEGORIES:
            raise ValidationError.single("category", f"{category} is not a valid category")
        results = [item for item in results if item.category == category]

    # Stable sorts applied last key first give a multi-key ordering
    for attribute, descending in reversed(parse_sort(query.sort)):
        results.sort(key=lambda item: _sort_value(item, attribute), reverse=descending)

    if query.low_stock_only:
        # Derived flag, computed from the current quantity and threshold
        results = [item for item in results if is_low_stock(item)]

    return results
