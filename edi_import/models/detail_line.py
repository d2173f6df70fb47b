from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

__all__ = [
    "DetailLine",
]


@dataclass(frozen=True)
class DetailLine:
    """Resolved values for one detail insert (after GTIN / ALDI / pallet handling)."""
    part_number: str
    quantity: int
    unit_of_measure: str
    price: Decimal
    purchase_order_line: int
    additional_part_number: str
    customer_po_line: str  # as sent, leading zeros preserved
