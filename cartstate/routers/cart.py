"""
Cart Router

Command intake for the cart state machine. Every endpoint dispatches one
command and returns the resulting cart state:
- items in add order
- is_close_cart_screen_hint
- total_items
"""
from fastapi import APIRouter, Depends, HTTPException

from cartstate.cart import AddProduct, Adjust, CartCommand, CartStateMachine, Clear, DecreaseCount, RestoreFromCache
from cartstate.errors import CartClosedError
from cartstate.location import LocationPublisher
from cartstate.logging import get_logger
from .deps import get_cart_machine, get_location_publisher
from .models import (
    AddToCartRequest,
    AdjustCartRequest,
    ClearCartRequest,
    DecreaseCountRequest,
    LocationChangedRequest,
)

logger = get_logger(__name__)

router = APIRouter(tags=["cart"])


async def _dispatch(machine: CartStateMachine, command: CartCommand) -> dict:
    try:
        state = await machine.dispatch(command)
    except CartClosedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to apply {type(command).__name__}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update cart")
    return state.to_dict()


@router.get("/cart")
async def get_cart(machine: CartStateMachine = Depends(get_cart_machine)):
    """Current cart state."""
    return machine.state.to_dict()


@router.post("/cart/add")
async def add_to_cart(request: AddToCartRequest, machine: CartStateMachine = Depends(get_cart_machine)):
    """Add one unit of a product."""
    command = AddProduct(
        product=request.product,
        sub_category_id=request.sub_category_id,
        category_id=request.category_id,
        story_id=request.story_id,
        source=request.source,
    )
    return await _dispatch(machine, command)


@router.post("/cart/decrease")
async def decrease_count(request: DecreaseCountRequest, machine: CartStateMachine = Depends(get_cart_machine)):
    """Remove one unit of a product."""
    return await _dispatch(machine, DecreaseCount(product=request.product))


@router.post("/cart/adjust")
async def adjust_cart(request: AdjustCartRequest, machine: CartStateMachine = Depends(get_cart_machine)):
    """Apply stock corrections."""
    return await _dispatch(machine, Adjust(missing_items=request.missing_items))


@router.post("/cart/clear")
async def clear_cart(request: ClearCartRequest, machine: CartStateMachine = Depends(get_cart_machine)):
    """Empty the cart."""
    return await _dispatch(machine, Clear(close_cart_screen_hint=request.close_cart_screen_hint))


@router.post("/cart/restore")
async def restore_cart(machine: CartStateMachine = Depends(get_cart_machine)):
    """Restore the persisted cart for the current delivery area."""
    return await _dispatch(machine, RestoreFromCache())


@router.post("/location")
async def change_location(
    request: LocationChangedRequest,
    publisher: LocationPublisher = Depends(get_location_publisher),
    machine: CartStateMachine = Depends(get_cart_machine),
):
    """Announce a delivery-location change; may clear the cart."""
    publisher.update(request.location, request.geo)
    await machine.wait_idle()
    return machine.state.to_dict()
