"""FastAPI routers for the cart service."""
from .cart import router as cart_router

__all__ = ["cart_router"]
