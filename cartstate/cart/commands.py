"""Cart commands accepted by the state machine."""
from dataclasses import dataclass, field
from typing import List, Optional, Union

from .models import Product, StockCheckResult


@dataclass(frozen=True)
class AddProduct:
    """Add one unit of a product."""
    product: Product
    sub_category_id: Optional[str] = None
    category_id: Optional[str] = None
    story_id: Optional[str] = None
    source: Optional[str] = None


@dataclass(frozen=True)
class RestoreFromCache:
    """Restore the persisted cart for the current delivery area."""


@dataclass(frozen=True)
class DecreaseCount:
    """Remove one unit of a product."""
    product: Product


@dataclass(frozen=True)
class Adjust:
    """Overwrite counts with freshly learned stock figures."""
    missing_items: List[StockCheckResult] = field(default_factory=list)


@dataclass(frozen=True)
class Clear:
    """Empty the cart."""
    close_cart_screen_hint: bool = True


CartCommand = Union[AddProduct, RestoreFromCache, DecreaseCount, Adjust, Clear]
