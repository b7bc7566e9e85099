from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable
import logging

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


@dataclass
class InventoryStats:
    total_items: int = 0
    total_value: Decimal = Decimal("0.00")
    low_stock_items: int = 0
    out_of_stock_items: int = 0
    category_counts: dict[str, int] = field(default_factory=dict)


def is_low_stock(item) -> bool:
    """An item is low on stock when quantity is at or below its threshold."""
    return item.quantity <= item.low_stock_threshold


def summarize(items: Iterable) -> InventoryStats:
    """
    Aggregates an owner's items in a single pass.

    The caller passes one snapshot (a single query result); every figure is
    derived from it so counts and totals always agree with each other.
    """
    stats = InventoryStats()
    total_value = Decimal("0")

    for item in items:
        stats.total_items += 1
        # Decimal(str()) keeps exact cents even if a driver hands back a float
        total_value += Decimal(str(item.price)) * item.quantity
        if is_low_stock(item):
            stats.low_stock_items += 1
        if item.quantity == 0:
            stats.out_of_stock_items += 1
        stats.category_counts[item.category] = stats.category_counts.get(item.category, 0) + 1

    stats.total_value = total_value.quantize(CENTS, rounding=ROUND_HALF_UP)
    logger.debug(f"Summarized {stats.total_items} items: value={stats.total_value}, low={stats.low_stock_items}, out={stats.out_of_stock_items}")
    return stats
