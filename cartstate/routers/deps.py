"""
Shared Dependencies for Routers

Lazy-loaded singletons: one delivery-location publisher and one cart
machine per process.

This is single-session wiring: every client of the process shares one
cart, and a location change posted by any of them clears it for all.
Deployments that host several shopper sessions override
`get_cart_machine` and `get_location_publisher` through
`app.dependency_overrides` with a per-session lookup.
"""

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from cartstate.cart import CartStateMachine
    from cartstate.location import LocationPublisher


_location_publisher: Optional["LocationPublisher"] = None
_cart_machine: Optional["CartStateMachine"] = None


def get_location_publisher() -> "LocationPublisher":
    """Get or create LocationPublisher singleton"""
    global _location_publisher
    if _location_publisher is None:
        from cartstate.location import LocationPublisher
        _location_publisher = LocationPublisher()
    return _location_publisher


def get_cart_machine() -> "CartStateMachine":
    """Get or create CartStateMachine singleton (lazy loaded)"""
    global _cart_machine
    if _cart_machine is None:
        from cartstate.cart import create_cart_machine
        _cart_machine = create_cart_machine(get_location_publisher())
    return _cart_machine


async def close_cart_machine() -> None:
    """Release the cart machine singleton, if one was created."""
    global _cart_machine
    if _cart_machine is not None:
        await _cart_machine.close()
        _cart_machine = None
