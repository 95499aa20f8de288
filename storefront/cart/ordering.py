"""
Stable display ordering for cart line items.

The cart service returns items in storage order, which can change between
responses. Sorting by (product, weight) keeps rows from jumping around
while several items are being updated at once.
"""
from decimal import Decimal
from typing import Iterable, List

from .models import CartSnapshot, LineItem


def line_item_sort_key(item: LineItem) -> tuple:
    # Items without a weight sort before weighted ones of the same product
    weight = item.selected_weight
    return (
        item.product_id,
        weight is not None,
        weight if weight is not None else Decimal("0"),
        item.id,
    )


def sort_line_items(items: Iterable[LineItem]) -> List[LineItem]:
    """Return a new list ordered by product id, then selected weight."""
    return sorted(items, key=line_item_sort_key)


def stable_snapshot(snapshot: CartSnapshot) -> CartSnapshot:
    """Return a copy of the snapshot with its items in display order."""
    return snapshot.with_items(sort_line_items(snapshot.items))
