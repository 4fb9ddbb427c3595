"""Cart package: models, commands, reducer, storage, and the state machine."""
from .commands import AddProduct, Adjust, CartCommand, Clear, DecreaseCount, RestoreFromCache
from .models import CartLineItem, CartState, Product, StockCheckRequest, StockCheckResult
from .service import CartStateMachine, create_cart_machine
from .storage import CartStorage

__all__ = [
    "AddProduct",
    "Adjust",
    "CartCommand",
    "CartLineItem",
    "CartState",
    "CartStateMachine",
    "CartStorage",
    "Clear",
    "DecreaseCount",
    "Product",
    "RestoreFromCache",
    "StockCheckRequest",
    "StockCheckResult",
    "create_cart_machine",
]
