"""
Cart State Machine

Owns the cart state for one shopper session and applies commands to it one
at a time:
- Add / DecreaseCount / Adjust / Clear are pure transitions (see reducer.py)
- RestoreFromCache reads the persisted cart and reconciles it with the
  stock-check service
- After every transition the checkout info is synced and the items are
  persisted under the current delivery area
- Express-to-express delivery location changes clear the cart

Usage:
    async with create_cart_machine(location_publisher) as machine:
        await machine.dispatch(RestoreFromCache())
        state = await machine.dispatch(AddProduct(product=product, source="search"))
"""
import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Set

from cartstate.errors import CartClosedError, CartStorageError
from cartstate.location import GeoInfo, LocationInfo, LocationPublisher, requires_cart_clear
from cartstate.logging import get_logger, sanitize_id_for_logging
from cartstate.subscriptions import Listeners, Subscription
from . import reducer
from .commands import AddProduct, Adjust, CartCommand, Clear, DecreaseCount, RestoreFromCache
from .models import CartLineItem, CartState, StockCheckRequest, StockCheckResult

logger = get_logger(__name__)

DEFAULT_STOCK_CHECK_TIMEOUT = 10.0


# ==================== PORTS ====================

class CartPersistence(Protocol):
    async def load(self, area_key: str) -> Dict[str, CartLineItem]: ...

    async def save(self, items: Mapping[str, CartLineItem], area_key: str) -> Any: ...


class StockChecker(Protocol):
    async def check_stocks(self, requests: List[StockCheckRequest]) -> List[StockCheckResult]: ...


class CheckoutInfo(Protocol):
    async def update(self, line_items: Sequence[CartLineItem]) -> None: ...


class PromoCodes(Protocol):
    async def cancel(self) -> None: ...


class Analytics(Protocol):
    async def log_add_to_cart_click(self) -> None: ...

    async def log_cart_created(self) -> None: ...

    async def log_add_to_cart(self, item: CartLineItem, sub_category_id: Optional[str] = None) -> None: ...

    async def log_remove_from_cart(self, item: CartLineItem) -> None: ...

    async def log_cart_cleared(self) -> None: ...


StateListener = Callable[[CartState], None]


# ==================== MACHINE ====================

class CartStateMachine:
    """
    Single-writer cart state holder.

    Commands are serialized by an asyncio lock, so a restore waiting on the
    stock-check service holds back every command queued after it. Consumers
    only ever see immutable CartState snapshots.
    """

    def __init__(
        self,
        *,
        storage: CartPersistence,
        stock_checker: StockChecker,
        checkout_info: CheckoutInfo,
        promo_codes: PromoCodes,
        analytics: Analytics,
        location: LocationPublisher,
        stock_check_timeout: float = DEFAULT_STOCK_CHECK_TIMEOUT,
    ):
        self._storage = storage
        self._stock_checker = stock_checker
        self._checkout_info = checkout_info
        self._promo_codes = promo_codes
        self._analytics = analytics
        self._location = location
        self.stock_check_timeout = stock_check_timeout

        self._state = CartState.initial()
        self._lock = asyncio.Lock()
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._state_listeners: Listeners[StateListener] = Listeners("Cart state")
        self._location_subscription = location.subscribe(self._on_delivery_location_changed)

    @property
    def state(self) -> CartState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: StateListener) -> Subscription:
        """Receive every new CartState. Release with `Subscription.close()`."""
        return self._state_listeners.add(listener)

    # ==================== COMMAND INTAKE ====================

    async def dispatch(self, command: CartCommand) -> CartState:
        """
        Apply a command and return the resulting state.

        Raises:
            CartClosedError: If the session has ended
        """
        self._ensure_open()
        self._loop = asyncio.get_running_loop()
        async with self._lock:
            self._ensure_open()
            if isinstance(command, AddProduct):
                await self._on_added(command)
            elif isinstance(command, DecreaseCount):
                await self._on_count_decreased(command)
            elif isinstance(command, Adjust):
                await self._transition(reducer.adjust(self._state, command))
            elif isinstance(command, Clear):
                await self._on_cleared(command)
            elif isinstance(command, RestoreFromCache):
                await self._on_restored_from_cache()
            else:
                raise TypeError(f"Unknown cart command: {type(command).__name__}")
            return self._state

    def submit(self, command: CartCommand) -> "asyncio.Task[CartState]":
        """Schedule a command without waiting for it. Must run inside an event loop."""
        self._ensure_open()
        self._loop = asyncio.get_running_loop()
        task = self._loop.create_task(self.dispatch(command))
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    async def wait_idle(self) -> None:
        """Wait until every submitted command has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None and not isinstance(error, CartClosedError):
            logger.error(f"Submitted cart command failed: {error}", exc_info=error)

    def _ensure_open(self) -> None:
        if self._closed:
            raise CartClosedError()

    # ==================== TRANSITIONS ====================

    async def _on_added(self, command: AddProduct) -> None:
        product_id = command.product.product_id
        was_empty = self._state.is_empty

        await self._fire("Analytics add_to_cart_click", self._analytics.log_add_to_cart_click)
        await self._transition(reducer.add_product(self._state, command))

        item = self._state.items.get(product_id)
        if item is None:
            logger.info(f"Product {sanitize_id_for_logging(product_id)} is out of stock, not added")
            return
        if was_empty:
            await self._fire("Analytics cart_created", self._analytics.log_cart_created)
        await self._fire(
            "Analytics add_to_cart",
            lambda: self._analytics.log_add_to_cart(item, command.sub_category_id),
        )

    async def _on_count_decreased(self, command: DecreaseCount) -> None:
        previous = self._state.items.get(command.product.product_id)
        await self._transition(reducer.decrease_count(self._state, command))

        removed = previous or CartLineItem(product=command.product, count=0)
        await self._fire("Analytics remove_from_cart", lambda: self._analytics.log_remove_from_cart(removed))

    async def _on_cleared(self, command: Clear) -> None:
        await self._fire("Promo code cancel", self._promo_codes.cancel)
        await self._fire("Analytics cart_cleared", self._analytics.log_cart_cleared)
        await self._transition(reducer.clear(self._state, command))

    async def _on_restored_from_cache(self) -> None:
        area_key = self._location.current_area_name
        if area_key is None:
            logger.warning("No delivery area known, skipping cart restore")
            return

        try:
            cached = await self._storage.load(area_key)
        except CartStorageError as e:
            logger.warning(f"Could not read cached cart, skipping restore: {e}")
            return
        if not cached:
            return

        requests = [StockCheckRequest.from_line_item(item) for item in cached.values()]
        items: Mapping[str, CartLineItem] = cached
        try:
            corrections = await asyncio.wait_for(
                self._stock_checker.check_stocks(requests),
                timeout=self.stock_check_timeout,
            )
        except Exception as e:
            logger.warning(f"Stock check failed during restore, keeping cached items: {e!r}", exc_info=True)
        else:
            items = reducer.apply_stock_corrections(cached, corrections)

        if self._closed:
            logger.info("Cart session closed during restore, discarding restored items")
            return

        await self._transition(self._state.copy_with(items=items))

    async def _transition(self, new_state: CartState) -> None:
        self._state = new_state
        self._state_listeners.notify(new_state)
        await self._after_transition(new_state)

    async def _after_transition(self, state: CartState) -> None:
        await self._fire("Checkout info update", lambda: self._checkout_info.update(state.line_items))

        area_key = self._location.current_area_name
        if area_key is None:
            logger.warning("No delivery area known, cart not persisted")
            return
        await self._fire("Cart persist", lambda: self._storage.save(state.items, area_key))

    async def _fire(self, name: str, call: Callable[[], Awaitable[Any]]) -> None:
        try:
            await call()
        except Exception as e:
            logger.warning(f"{name} failed: {e}", exc_info=True)

    # ==================== LOCATION ====================

    def _on_delivery_location_changed(self, location: LocationInfo, geo: GeoInfo) -> None:
        if not requires_cart_clear(self._location.current, location):
            return
        logger.info(
            f"Express location changed to {sanitize_id_for_logging(location.location_id)}, clearing cart"
        )
        self._schedule(Clear(close_cart_screen_hint=True))

    def _schedule(self, command: CartCommand) -> None:
        """Submit a command from any thread, onto the loop the machine runs on."""
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is not None and (self._loop is None or running is self._loop):
            self.submit(command)
        elif self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._submit_if_open, command)
        else:
            logger.error(f"No event loop to run {type(command).__name__} on, command dropped")

    def _submit_if_open(self, command: CartCommand) -> None:
        if not self._closed:
            self.submit(command)

    # ==================== LIFECYCLE ====================

    async def close(self) -> None:
        """
        End the session: stop listening to location changes and drop
        queued commands. A restore that is still waiting on I/O will not
        apply its result.
        """
        if self._closed:
            return
        self._closed = True
        self._location_subscription.close()

        pending = list(self._tasks)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def __aenter__(self) -> "CartStateMachine":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()


def create_cart_machine(location: LocationPublisher, redis_client=None) -> CartStateMachine:
    """Build a CartStateMachine wired to the Redis and HTTP collaborators."""
    from cartstate.services import CartAnalytics, CheckoutInfoService, PromoCodeService, StockCheckClient
    from .storage import CartStorage

    stock_checker = StockCheckClient()
    return CartStateMachine(
        storage=CartStorage(redis_client),
        stock_checker=stock_checker,
        checkout_info=CheckoutInfoService(),
        promo_codes=PromoCodeService(redis_client),
        analytics=CartAnalytics(redis_client),
        location=location,
        stock_check_timeout=stock_checker.total_timeout,
    )
