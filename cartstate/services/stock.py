"""
Stock Check Client

Asks the catalog service which cached cart items are no longer available in
the requested quantity. Only products whose stock changed need to come back,
but a full list is accepted too.
"""
import os
from typing import List, Optional

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from cartstate.cart.models import StockCheckRequest, StockCheckResult
from cartstate.errors import ERROR_STOCK_CHECK_FAILED, ERROR_STOCK_CHECK_NOT_CONFIGURED, StockCheckError
from cartstate.logging import get_logger

logger = get_logger(__name__)

STOCK_CHECK_URL = os.environ.get("STOCK_CHECK_URL", "")
STOCK_CHECK_TIMEOUT = float(os.environ.get("STOCK_CHECK_TIMEOUT", "10"))
MAX_RETRY_WAIT = 4


class StockCheckClient:
    """HTTP client for the stock-check endpoint.

    Transport errors (connection resets, timeouts) are retried with
    exponential backoff; HTTP error responses are not.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        attempts: int = 3,
        backoff: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url if url is not None else STOCK_CHECK_URL
        self.timeout = timeout if timeout is not None else STOCK_CHECK_TIMEOUT
        self.attempts = attempts
        self.backoff = backoff
        self._transport = transport

    @property
    def total_timeout(self) -> float:
        """Upper bound for one `check_stocks` call, every attempt and backoff included."""
        waits = sum(min(self.backoff * 2 ** n, MAX_RETRY_WAIT) for n in range(self.attempts - 1))
        return self.attempts * self.timeout + waits

    async def check_stocks(self, requests: List[StockCheckRequest]) -> List[StockCheckResult]:
        """
        Check stock for cached cart items.

        Args:
            requests: One entry per cached line item

        Returns:
            Stock corrections ("missing items")

        Raises:
            StockCheckError: If the service is not configured or the call fails
        """
        if not self.url:
            raise StockCheckError(ERROR_STOCK_CHECK_NOT_CONFIGURED)

        payload = {"items": [request.model_dump() for request in requests]}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                async for attempt in AsyncRetrying(
                    stop=stop_after_attempt(self.attempts),
                    wait=wait_exponential(multiplier=self.backoff, max=MAX_RETRY_WAIT),
                    retry=retry_if_exception_type(httpx.TransportError),
                    reraise=True,
                ):
                    with attempt:
                        response = await client.post(self.url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise StockCheckError(f"{ERROR_STOCK_CHECK_FAILED}: {e}") from e
        except ValueError as e:
            raise StockCheckError(f"{ERROR_STOCK_CHECK_FAILED}: invalid response body") from e

        if isinstance(data, dict):
            data = data.get("missing_items")
        results = [StockCheckResult.model_validate(raw) for raw in data or []]
        logger.debug(f"Stock check returned {len(results)} corrections for {len(requests)} items")
        return results
