"""
Database Module - Upstash Redis Client

Provides a singleton async Upstash Redis client used for:
- Persisted carts (keyed by delivery area)
- Analytics event streams
- Applied promo codes
"""

import os
from typing import Optional

from upstash_redis.asyncio import Redis as AsyncRedis


# Upstash Redis - standard env var names per docs
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")


_redis_client: Optional[AsyncRedis] = None


def get_redis() -> AsyncRedis:
    """
    Get async Upstash Redis client (singleton).

    Uses standard Upstash env var names:
    - UPSTASH_REDIS_REST_URL
    - UPSTASH_REDIS_REST_TOKEN
    """
    global _redis_client

    if _redis_client is None:
        if not UPSTASH_REDIS_REST_URL or not UPSTASH_REDIS_REST_TOKEN:
            raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
        _redis_client = AsyncRedis(url=UPSTASH_REDIS_REST_URL, token=UPSTASH_REDIS_REST_TOKEN)

    return _redis_client


class RedisKeys:
    """Redis key prefixes for different data types."""

    # Persisted cart items
    CART = "cart:"  # cart:{area_name}

    # Applied promo code
    PROMO = "cart:promo"

    # Analytics events (Redis Stream)
    ANALYTICS_STREAM = "stream:analytics:cart"

    @staticmethod
    def cart_key(area_name: str) -> str:
        return f"{RedisKeys.CART}{area_name}"


class TTL:
    """Time-to-live constants for Redis keys (seconds)."""

    CART = int(os.environ.get("CART_TTL_SECONDS", "604800"))  # 7 days
