"""Checkout info: keeps the checkout summary in sync with cart contents."""
from datetime import datetime, timezone
from typing import List, Sequence, Tuple

from cartstate.cart.models import CartLineItem


class CheckoutInfoService:
    """Latest cart contents as seen by checkout.

    Totals and pricing are computed by checkout itself; this only tracks
    which products and how many units are about to be ordered.
    """

    def __init__(self):
        self.line_items: Tuple[CartLineItem, ...] = ()
        self.updated_at: str = ""

    async def update(self, line_items: Sequence[CartLineItem]) -> None:
        self.line_items = tuple(line_items)
        self.updated_at = datetime.now(timezone.utc).isoformat()

    @property
    def total_items(self) -> int:
        """Total number of units in cart."""
        return sum(item.count for item in self.line_items)

    def summary(self) -> dict:
        """Summary for the checkout screen."""
        if not self.line_items:
            return {"is_empty": True, "total_items": 0, "items": []}

        items: List[dict] = [
            {
                "product_id": item.product_id,
                "product_name": item.product.name,
                "count": item.count,
            }
            for item in self.line_items
        ]
        return {
            "is_empty": False,
            "total_items": self.total_items,
            "items": items,
            "updated_at": self.updated_at,
        }
