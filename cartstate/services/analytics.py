"""Cart Analytics - marketing and analytics event emission.

Events are appended to a Redis Stream that the analytics pipeline consumes.
Every emitter is fire-and-forget: failures are logged and never reach the
cart state machine.
"""

import json
from datetime import datetime, timezone
from typing import Any, Optional

from cartstate.cart.models import CartLineItem
from cartstate.db import get_redis, RedisKeys
from cartstate.logging import get_logger, sanitize_id_for_logging

logger = get_logger(__name__)


class AnalyticsEvents:
    """Analytics event names."""
    ADD_TO_CART_CLICK = "add_to_cart_click"
    CART_CREATED = "cart_created"
    ADD_TO_CART = "add_to_cart"
    REMOVE_FROM_CART = "remove_from_cart"
    CART_CLEARED = "cart_cleared"


def _line_item_payload(item: CartLineItem) -> dict[str, Any]:
    return {
        "product_id": item.product_id,
        "product_name": item.product.name,
        "count": item.count,
        "source": item.source,
        "category_id": item.category_id,
        "sub_category_id": item.sub_category_id,
        "story_id": item.story_id,
    }


class CartAnalytics:
    """Emits cart milestones (add, remove, create, clear) to a Redis Stream."""

    def __init__(self, redis_client=None, stream_key: str = RedisKeys.ANALYTICS_STREAM):
        self._redis = redis_client
        self.stream_key = stream_key

    async def _emit(self, event: str, data: Optional[dict[str, Any]] = None) -> None:
        try:
            redis = self._redis or get_redis()
            payload = {
                "event": event,
                "data": data or {},
                "emitted_at": datetime.now(timezone.utc).isoformat(),
            }
            await redis.xadd(self.stream_key, "*", {"data": json.dumps(payload)})
            logger.debug(f"Emitted {event}")
        except Exception as e:
            logger.warning(f"Failed to emit {event}: {e}", exc_info=True)

    async def log_add_to_cart_click(self) -> None:
        await self._emit(AnalyticsEvents.ADD_TO_CART_CLICK)

    async def log_cart_created(self) -> None:
        await self._emit(AnalyticsEvents.CART_CREATED)

    async def log_add_to_cart(self, item: CartLineItem, sub_category_id: Optional[str] = None) -> None:
        """Emit add_to_cart with the resulting line item.

        Args:
            item: Line item after the add
            sub_category_id: Sub-category the add came from (not the stored provenance)
        """
        payload = _line_item_payload(item)
        payload["sub_category_id"] = sub_category_id
        await self._emit(AnalyticsEvents.ADD_TO_CART, payload)

    async def log_remove_from_cart(self, item: CartLineItem) -> None:
        logger.debug(f"Removing one unit of {sanitize_id_for_logging(item.product_id)}")
        await self._emit(AnalyticsEvents.REMOVE_FROM_CART, _line_item_payload(item))

    async def log_cart_cleared(self) -> None:
        await self._emit(AnalyticsEvents.CART_CLEARED)
