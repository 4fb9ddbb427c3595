"""
Cart State Package

- cart: cart models, commands, reducer, persistence and CartStateMachine
- location: delivery-location publisher and the express-zone clear rule
- services: stock check, analytics, checkout info, promo code collaborators
- routers: FastAPI command intake
- db: Upstash Redis client

Note: Imports are lazy so importing the package doesn't require Redis
credentials or pull in FastAPI.
"""

__all__ = [
    "CartStateMachine",
    "create_cart_machine",
    "LocationPublisher",
    "get_redis",
]


def __getattr__(name):
    """Lazy attribute access."""
    if name == "CartStateMachine":
        from cartstate.cart import CartStateMachine
        return CartStateMachine
    elif name == "create_cart_machine":
        from cartstate.cart import create_cart_machine
        return create_cart_machine
    elif name == "LocationPublisher":
        from cartstate.location import LocationPublisher
        return LocationPublisher
    elif name == "get_redis":
        from cartstate.db import get_redis
        return get_redis
    raise AttributeError(f"module 'cartstate' has no attribute '{name}'")
