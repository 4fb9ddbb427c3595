"""
Cart Reducer

Pure transition functions: every function takes a state (or items mapping)
and returns a new one. Nothing here performs I/O; side effects are issued by
CartStateMachine after the new state is in place.
"""
from typing import Dict, Iterable, Mapping, Optional

from cartstate.errors import InvariantViolation
from cartstate.logging import get_logger, sanitize_id_for_logging
from .commands import AddProduct, Adjust, CartCommand, Clear, DecreaseCount
from .models import CartLineItem, CartState, Product, StockCheckResult

logger = get_logger(__name__)


def change_product_count(
    items: Mapping[str, CartLineItem],
    product: Product,
    delta: int,
    *,
    sub_category_id: Optional[str] = None,
    category_id: Optional[str] = None,
    story_id: Optional[str] = None,
    source: Optional[str] = None,
) -> Dict[str, CartLineItem]:
    """
    Return a copy of `items` with the product's count moved by `delta`.

    Counts are capped by the product's stock and entries that drop to zero
    are removed. Provenance is only taken from the arguments when the
    product is new to the cart; an absent product with a negative delta
    leaves the cart as it is.
    """
    updated = dict(items)
    existing = updated.get(product.product_id)

    if existing is not None:
        item = existing.with_count(
            min(existing.count + delta, product.in_stock_count),
            product=product,
        )
    elif delta > 0:
        item = CartLineItem(
            product=product,
            count=min(delta, product.in_stock_count),
            source=source,
            category_id=category_id,
            sub_category_id=sub_category_id,
            story_id=story_id,
        )
    else:
        return updated

    if item.count <= 0:
        updated.pop(product.product_id, None)
    else:
        updated[product.product_id] = item
    return updated


def apply_stock_corrections(
    items: Mapping[str, CartLineItem],
    corrections: Iterable[StockCheckResult],
) -> Dict[str, CartLineItem]:
    """
    Overwrite counts with authoritative stock figures.

    A non-positive figure removes the product. Corrections for products that
    are not in `items` are skipped and logged.
    """
    updated = dict(items)
    for correction in corrections:
        existing = updated.get(correction.product_id)
        if existing is None:
            violation = InvariantViolation(sanitize_id_for_logging(correction.product_id))
            logger.warning(f"Skipping stock correction: {violation}")
            continue
        if correction.available_quantity <= 0:
            del updated[correction.product_id]
        else:
            updated[correction.product_id] = existing.with_count(correction.available_quantity)
    return updated


def add_product(state: CartState, command: AddProduct) -> CartState:
    items = change_product_count(
        state.items,
        command.product,
        1,
        sub_category_id=command.sub_category_id,
        category_id=command.category_id,
        story_id=command.story_id,
        source=command.source,
    )
    return state.copy_with(items=items)


def decrease_count(state: CartState, command: DecreaseCount) -> CartState:
    items = change_product_count(state.items, command.product, -1)
    return state.copy_with(items=items, is_close_cart_screen_hint=True)


def adjust(state: CartState, command: Adjust) -> CartState:
    return state.copy_with(items=apply_stock_corrections(state.items, command.missing_items))


def clear(state: CartState, command: Clear) -> CartState:
    return state.copy_with(items={}, is_close_cart_screen_hint=command.close_cart_screen_hint)


_TRANSITIONS = {
    AddProduct: add_product,
    DecreaseCount: decrease_count,
    Adjust: adjust,
    Clear: clear,
}


def reduce(state: CartState, command: CartCommand) -> CartState:
    """
    Apply a synchronous command.

    RestoreFromCache needs persistence and the stock-check service, so it is
    handled by CartStateMachine and rejected here.
    """
    transition = _TRANSITIONS.get(type(command))
    if transition is None:
        raise TypeError(f"Command {type(command).__name__} cannot be reduced synchronously")
    return transition(state, command)
