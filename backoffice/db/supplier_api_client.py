"""
HTTP client for supplier order-notification endpoints.

Suppliers that expose an ``api_endpoint`` receive new orders as a JSON POST,
authenticated with their ``api_key`` as a bearer token.
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional

import aiohttp
from aiohttp import ClientTimeout

from backoffice.core.config import get_settings
from backoffice.core.logging_config import log_api_call
from backoffice.utils.error_handler import ExternalServiceException

logger = logging.getLogger(__name__)


class SupplierApiClient:
    """
    Client for pushing orders to supplier APIs.

    The session is created lazily and reused; call ``close()`` on shutdown.
    """

    def __init__(self, timeout: Optional[int] = None, max_retries: int = 3):
        self.settings = get_settings()
        self.timeout = timeout or self.settings.SUPPLIER_API_TIMEOUT
        self.max_retries = max_retries
        self.session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=ClientTimeout(total=self.timeout, connect=10),
                connector=aiohttp.TCPConnector(limit=50, limit_per_host=10),
                headers={
                    "Content-Type": "application/json",
                    "User-Agent": f"FulfillmentBackOffice/{self.settings.APP_VERSION}",
                },
            )
        return self.session

    async def close(self):
        """Close the HTTP session and clean up resources."""
        if self.session:
            await self.session.close()
            self.session = None
            logger.info("Supplier API client closed")

    async def notify_new_order(
        self, endpoint: str, payload: Dict[str, Any], api_key: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        POST a new order to the supplier endpoint.

        Args:
            endpoint: Supplier API URL
            payload: Order payload
            api_key: Supplier API key, sent as bearer token

        Returns:
            Dict: Decoded JSON response (empty when the body is not JSON)

        Raises:
            ExternalServiceException: If the supplier rejects the order or is unreachable after retries
        """
        session = await self._get_session()
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        last_exception: Optional[Exception] = None

        for attempt in range(self.max_retries):
            start_time = time.time()
            try:
                async with session.post(endpoint, json=payload, headers=headers) as response:
                    log_api_call("POST", endpoint, response.status, time.time() - start_time, attempt=attempt + 1)

                    if response.status == 429:
                        retry_after = int(response.headers.get("Retry-After", 2))
                        logger.warning(f"Supplier rate limit, waiting {retry_after}s (attempt {attempt + 1})")
                        await asyncio.sleep(retry_after)
                        continue

                    if response.status >= 400:
                        body = await response.text()
                        raise ExternalServiceException(
                            f"Supplier API returned HTTP {response.status}: {body[:200]}",
                            service="supplier_api",
                            response_code=response.status,
                            endpoint=endpoint,
                        )

                    try:
                        return await response.json(content_type=None)
                    except ValueError:
                        return {}

            except ExternalServiceException as e:
                # Client errors are not retried
                if e.response_code and e.response_code < 500:
                    raise
                last_exception = e

            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_exception = ExternalServiceException(
                    f"Network error calling supplier API: {e}",
                    service="supplier_api",
                    endpoint=endpoint,
                )

            if attempt < self.max_retries - 1:
                wait_time = min(2**attempt, 10)
                logger.warning(f"Supplier API error, retrying in {wait_time}s (attempt {attempt + 1})")
                await asyncio.sleep(wait_time)

        raise last_exception or ExternalServiceException(
            "Supplier API call failed after retries", service="supplier_api", endpoint=endpoint
        )


_supplier_api_client: Optional[SupplierApiClient] = None


def get_supplier_api_client() -> SupplierApiClient:
    global _supplier_api_client

    if _supplier_api_client is None:
        _supplier_api_client = SupplierApiClient()
    return _supplier_api_client


async def close_supplier_api_client():
    global _supplier_api_client

    if _supplier_api_client is not None:
        await _supplier_api_client.close()
        _supplier_api_client = None
