"""Cart models: catalog product reference, line items, and state snapshots."""
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field


class Product(BaseModel):
    """Catalog product as seen by the cart.

    Only `product_id` and `in_stock_count` matter to the cart; any other
    catalog fields are carried along untouched.
    """
    model_config = ConfigDict(extra="allow", frozen=True)

    product_id: str
    in_stock_count: int = Field(default=0, ge=0)
    name: Optional[str] = None
    image_url: Optional[str] = None


@dataclass(frozen=True)
class CartLineItem:
    """Single product in the cart with its count and provenance."""
    product: Product
    count: int
    source: Optional[str] = None
    category_id: Optional[str] = None
    sub_category_id: Optional[str] = None
    story_id: Optional[str] = None

    @property
    def product_id(self) -> str:
        return self.product.product_id

    def with_count(self, count: int, product: Optional[Product] = None) -> "CartLineItem":
        """Copy with a new count (and optionally a fresher product), provenance kept."""
        return replace(self, count=count, product=product or self.product)

    def to_dict(self) -> dict:
        """Convert to dictionary for Redis storage."""
        return {
            "product": self.product.model_dump(mode="json"),
            "count": self.count,
            "source": self.source,
            "category_id": self.category_id,
            "sub_category_id": self.sub_category_id,
            "story_id": self.story_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartLineItem":
        """Create from dictionary."""
        return cls(
            product=Product.model_validate(data["product"]),
            count=int(data["count"]),
            source=data.get("source"),
            category_id=data.get("category_id"),
            sub_category_id=data.get("sub_category_id"),
            story_id=data.get("story_id"),
        )


@dataclass(frozen=True)
class CartState:
    """Immutable cart snapshot.

    `items` keeps insertion order and is copied into a read-only mapping on
    construction, so no later transition can change a snapshot someone else
    is holding.
    """
    items: Mapping[str, CartLineItem] = field(default_factory=dict)
    is_close_cart_screen_hint: bool = True

    def __post_init__(self):
        object.__setattr__(self, "items", MappingProxyType(dict(self.items)))

    def __hash__(self) -> int:
        return hash((tuple(self.items.items()), self.is_close_cart_screen_hint))

    @classmethod
    def initial(cls) -> "CartState":
        return cls(items={}, is_close_cart_screen_hint=False)

    def copy_with(
        self,
        items: Optional[Mapping[str, CartLineItem]] = None,
        is_close_cart_screen_hint: Optional[bool] = None,
    ) -> "CartState":
        return CartState(
            items=self.items if items is None else items,
            is_close_cart_screen_hint=(
                self.is_close_cart_screen_hint
                if is_close_cart_screen_hint is None
                else is_close_cart_screen_hint
            ),
        )

    @property
    def line_items(self) -> List[CartLineItem]:
        """Line items in insertion order."""
        return list(self.items.values())

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def total_items(self) -> int:
        """Total number of units in cart."""
        return sum(item.count for item in self.items.values())

    def to_dict(self) -> dict:
        return {
            "items": [item.to_dict() for item in self.items.values()],
            "is_close_cart_screen_hint": self.is_close_cart_screen_hint,
            "total_items": self.total_items,
        }


class StockCheckRequest(BaseModel):
    """One cached line item sent to the stock-check service."""
    product_id: str
    quantity: int
    source: Optional[str] = None
    story_id: Optional[str] = None
    sub_category_id: Optional[str] = None
    category_id: Optional[str] = None

    @classmethod
    def from_line_item(cls, item: CartLineItem) -> "StockCheckRequest":
        return cls(
            product_id=item.product_id,
            quantity=item.count,
            source=item.source,
            story_id=item.story_id,
            sub_category_id=item.sub_category_id,
            category_id=item.category_id,
        )


class StockCheckResult(BaseModel):
    """Stock correction for a product (a "missing item")."""
    product_id: str
    available_quantity: int = 0
