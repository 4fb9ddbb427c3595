"""Pytest configuration and fixtures"""
import asyncio
from typing import Dict, List, Optional
from unittest.mock import AsyncMock

import pytest

from cartstate.cart import CartLineItem, CartStateMachine, Product, StockCheckRequest, StockCheckResult
from cartstate.location import DeliveryArea, GeoInfo, LocationInfo, LocationPublisher
from cartstate.services import CheckoutInfoService


class FakeRedis:
    """In-memory stand-in for the Upstash async client."""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.expiry: Dict[str, Optional[int]] = {}
        self.streams: Dict[str, List[dict]] = {}

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self.data[key] = value
        self.expiry[key] = ex
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed

    async def xadd(self, key, id, data):
        self.streams.setdefault(key, []).append(data)
        return f"{len(self.streams[key])}-0"


class FakeStorage:
    """Persistence port keeping saves in memory."""

    def __init__(self, cached: Optional[Dict[str, Dict[str, CartLineItem]]] = None):
        self.cached = cached or {}
        self.saved: List[tuple] = []
        self.fail_save = False

    async def load(self, area_key):
        return dict(self.cached.get(area_key, {}))

    async def save(self, items, area_key):
        if self.fail_save:
            raise RuntimeError("redis down")
        self.saved.append((dict(items), area_key))
        return True


class FakeStockChecker:
    """Stock-check port returning canned results or raising."""

    def __init__(self, results: Optional[List[StockCheckResult]] = None, error: Optional[Exception] = None):
        self.results = results or []
        self.error = error
        self.delay: float = 0
        self.requests: List[List[StockCheckRequest]] = []

    async def check_stocks(self, requests):
        self.requests.append(list(requests))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.results


class RecordingAnalytics:
    """Analytics port recording event names in call order."""

    def __init__(self):
        self.events: List[tuple] = []

    async def log_add_to_cart_click(self):
        self.events.append(("add_to_cart_click", None))

    async def log_cart_created(self):
        self.events.append(("cart_created", None))

    async def log_add_to_cart(self, item, sub_category_id=None):
        self.events.append(("add_to_cart", (item, sub_category_id)))

    async def log_remove_from_cart(self, item):
        self.events.append(("remove_from_cart", item))

    async def log_cart_cleared(self):
        self.events.append(("cart_cleared", None))

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self.events]


def _location(location_id: str, area: str = "express") -> LocationInfo:
    return LocationInfo(location_id=location_id, areas=[DeliveryArea(name=area)])


@pytest.fixture
def make_product():
    """Factory for catalog products"""
    def _make(product_id: str = "prod-1", in_stock_count: int = 5, **extra) -> Product:
        return Product(product_id=product_id, in_stock_count=in_stock_count, name=f"Product {product_id}", **extra)
    return _make


@pytest.fixture
def make_location():
    """Factory for delivery locations (area defaults to express)"""
    return _location


@pytest.fixture
def geo():
    return GeoInfo(latitude=41.01, longitude=28.97)


@pytest.fixture
def location():
    """Location publisher starting in an express zone"""
    return LocationPublisher(current=_location("express-1"))


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def stock_checker():
    return FakeStockChecker()


@pytest.fixture
def analytics():
    return RecordingAnalytics()


@pytest.fixture
def promo_codes():
    promo = AsyncMock()
    promo.cancel = AsyncMock()
    return promo


@pytest.fixture
def checkout_info():
    return CheckoutInfoService()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def machine(storage, stock_checker, checkout_info, promo_codes, analytics, location):
    """Cart state machine wired to in-memory collaborators"""
    return CartStateMachine(
        storage=storage,
        stock_checker=stock_checker,
        checkout_info=checkout_info,
        promo_codes=promo_codes,
        analytics=analytics,
        location=location,
        stock_check_timeout=0.5,
    )
