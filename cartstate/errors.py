"""
Cart Errors

Centralized error messages and the exception hierarchy used by the cart
state machine and its collaborators.
"""

# Machine errors
ERROR_CART_CLOSED = "Cart session is closed"
ERROR_UNKNOWN_PRODUCT = "Product is not in the cart"

# Collaborator errors
ERROR_STORAGE_UNAVAILABLE = "Cart storage unavailable"
ERROR_STOCK_CHECK_FAILED = "Stock check failed"
ERROR_STOCK_CHECK_NOT_CONFIGURED = "STOCK_CHECK_URL must be set"


class CartError(Exception):
    """Base class for cart errors."""


class CartClosedError(CartError):
    """Raised when a command is dispatched after the cart session ended."""

    def __init__(self, message: str = ERROR_CART_CLOSED):
        super().__init__(message)


class InvariantViolation(CartError):
    """A correction referenced a product that is not in the cart.

    Never raised out of the reducer; it is logged as a diagnostic and the
    correction is skipped.
    """

    def __init__(self, product_id: str, message: str = ERROR_UNKNOWN_PRODUCT):
        self.product_id = product_id
        super().__init__(f"{message}: {product_id}")


class StockCheckError(CartError):
    """Stock-check service call failed."""


class CartStorageError(CartError):
    """Persisted cart could not be read or written."""
