"""
Delivery Location

Location models, the publisher that announces delivery-location changes,
and the rule deciding when a change invalidates the cart.
"""
from enum import Enum
from typing import Callable, List, Optional

from pydantic import BaseModel

from cartstate.logging import get_logger, sanitize_id_for_logging
from cartstate.subscriptions import Listeners, Subscription

logger = get_logger(__name__)


class LocationType(str, Enum):
    """Delivery mode of an area."""
    EXPRESS = "express"
    STANDARD = "standard"


class DeliveryArea(BaseModel):
    name: str


class LocationInfo(BaseModel):
    """Delivery location resolved for the shopper."""
    location_id: str
    areas: List[DeliveryArea]

    @property
    def area_name(self) -> Optional[str]:
        """Name of the primary delivery area (also the cart storage key)."""
        return self.areas[0].name if self.areas else None

    @property
    def is_express(self) -> bool:
        return self.area_name == LocationType.EXPRESS.value


class GeoInfo(BaseModel):
    """Geocoded position that produced a location change."""
    latitude: float
    longitude: float
    address: Optional[str] = None


LocationListener = Callable[[LocationInfo, GeoInfo], None]


def requires_cart_clear(current: Optional[LocationInfo], new: LocationInfo) -> bool:
    """
    Express-zone inventories differ per location, so a move from one express
    location to another invalidates the cart. Moves into or out of express
    mode, and repeats of the same location, do not.
    """
    if current is None:
        return False
    return current.is_express and new.is_express and current.location_id != new.location_id


class LocationPublisher:
    """
    Holds the shopper's current delivery location and notifies listeners
    about changes.

    Listeners receive the new location while `current` still holds the
    previous one.
    """

    def __init__(self, current: Optional[LocationInfo] = None):
        self.current = current
        self._listeners: Listeners[LocationListener] = Listeners("Location")

    @property
    def current_area_name(self) -> Optional[str]:
        return self.current.area_name if self.current else None

    def subscribe(self, listener: LocationListener) -> Subscription:
        return self._listeners.add(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def update(self, location: LocationInfo, geo: GeoInfo) -> None:
        logger.info(
            f"Delivery location changed to {sanitize_id_for_logging(location.location_id)} "
            f"({location.area_name})"
        )
        self._listeners.notify(location, geo)
        self.current = location
