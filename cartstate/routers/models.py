"""
Cart API Pydantic Models

Request bodies for the cart command endpoints.
"""
from typing import List, Optional

from pydantic import BaseModel

from cartstate.cart.models import Product, StockCheckResult
from cartstate.location import GeoInfo, LocationInfo


class AddToCartRequest(BaseModel):
    product: Product
    sub_category_id: Optional[str] = None
    category_id: Optional[str] = None
    story_id: Optional[str] = None
    source: Optional[str] = None


class DecreaseCountRequest(BaseModel):
    product: Product


class AdjustCartRequest(BaseModel):
    missing_items: List[StockCheckResult]


class ClearCartRequest(BaseModel):
    close_cart_screen_hint: bool = True


class LocationChangedRequest(BaseModel):
    location: LocationInfo
    geo: GeoInfo
