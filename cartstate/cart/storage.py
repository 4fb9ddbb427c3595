"""Redis persistence for cart items, keyed by delivery area."""
import json
from typing import Dict, Mapping

from cartstate.db import get_redis, RedisKeys, TTL
from cartstate.errors import CartStorageError, ERROR_STORAGE_UNAVAILABLE
from cartstate.logging import get_logger
from .models import CartLineItem

logger = get_logger(__name__)


class CartStorage:
    """
    Stores cart line items in Redis.

    Items are saved as an ordered JSON list so restore keeps the add order.
    Each delivery area has its own cart.
    """

    def __init__(self, redis_client=None):
        self._redis = redis_client  # Lazy initialization when None

    @property
    def redis(self):
        """Get Redis client (lazy initialization)."""
        if self._redis is None:
            try:
                self._redis = get_redis()
            except ValueError as e:
                raise CartStorageError(f"Redis not available: {e}") from e
        return self._redis

    async def load(self, area_key: str) -> Dict[str, CartLineItem]:
        """
        Load persisted items for a delivery area.

        Args:
            area_key: Delivery area name

        Returns:
            Ordered mapping of product id to line item (empty if nothing cached)

        Raises:
            CartStorageError: If Redis is unavailable
        """
        key = RedisKeys.cart_key(area_key)
        try:
            data = await self.redis.get(key)
        except CartStorageError:
            raise
        except Exception as e:
            logger.error(f"Failed to load cart from Redis: {e}")
            raise CartStorageError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e

        if not data:
            return {}

        try:
            items = [CartLineItem.from_dict(raw) for raw in json.loads(data)]
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            # Corrupted data - drop it so the next save starts clean
            logger.warning(f"Corrupted cart data for area {area_key}: {e}")
            try:
                await self.redis.delete(key)
            except Exception as delete_error:
                logger.warning(f"Failed to drop corrupted cart data: {delete_error}")
            return {}

        return {item.product_id: item for item in items if item.count > 0}

    async def save(self, items: Mapping[str, CartLineItem], area_key: str) -> bool:
        """
        Save items for a delivery area with TTL.

        Raises:
            CartStorageError: If Redis is unavailable
        """
        key = RedisKeys.cart_key(area_key)
        payload = json.dumps([item.to_dict() for item in items.values()])
        try:
            await self.redis.set(key, payload, ex=TTL.CART)
            return True
        except CartStorageError:
            raise
        except Exception as e:
            logger.error(f"Failed to save cart to Redis: {e}")
            raise CartStorageError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e
