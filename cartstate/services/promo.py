"""Applied promo code for the active cart.

Checkout validates and applies promo codes and stores the applied one under
`RedisKeys.PROMO`. The cart only drops it when it is cleared.
"""
from cartstate.db import get_redis, RedisKeys
from cartstate.logging import get_logger

logger = get_logger(__name__)


class PromoCodeService:
    """Cancels the promo code checkout applied to this cart."""

    def __init__(self, redis_client=None, key: str = RedisKeys.PROMO):
        self._redis = redis_client
        self.key = key

    async def cancel(self) -> None:
        """Drop the applied promo code. Failures are logged, never raised."""
        try:
            redis = self._redis or get_redis()
            await redis.delete(self.key)
        except Exception as e:
            logger.warning(f"Failed to cancel promo code: {e}", exc_info=True)
