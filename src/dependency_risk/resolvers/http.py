import asyncio
import logging
from typing import Any, Optional

import aiohttp

from dependency_risk.config import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY, USER_AGENT
from dependency_risk.resolvers.base import BaseResolver

logger = logging.getLogger(__name__)

# Rate limiting and transient server errors
RETRYABLE_STATUSES = frozenset({403, 429, 500, 502, 503, 504})


class HttpResolver(BaseResolver):
    """Base class for resolvers that make HTTP requests.

    Manages a shared aiohttp.ClientSession for connection pooling and reuse,
    and retries failing requests a bounded number of times.

    Attributes:
        proxy: Optional proxy URL used for every request.
        max_retries: Retries after the first failed attempt.
        retry_delay: Base delay in seconds for exponential backoff.
    """

    def __init__(
        self,
        proxy: Optional[str] = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
    ) -> None:
        """Initialize the HttpResolver.

        Args:
            proxy: Optional proxy URL (e.g. "http://10.0.0.1:3128").
            max_retries: Retries after the first failed attempt.
            retry_delay: Base delay in seconds for exponential backoff.
        """
        self.proxy = proxy
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session.

        Returns:
            The shared aiohttp ClientSession.
        """
        if self._session is None or self._session.closed:
            self._session = self._create_session()
        return self._session

    def _create_session(self) -> aiohttp.ClientSession:
        """Create a new aiohttp.ClientSession.

        Subclasses can override this to provide custom session configuration.

        Returns:
            A new aiohttp.ClientSession instance.
        """
        # Enable DNS cache to reduce latency for repeated host lookups
        connector = aiohttp.TCPConnector(ttl_dns_cache=300)
        return aiohttp.ClientSession(
            connector=connector,
            headers={"User-Agent": USER_AGENT},
            timeout=aiohttp.ClientTimeout(total=10),
        )

    async def _get_json(
        self,
        url: str,
        headers: Optional[dict[str, str]] = None,
        params: Optional[dict[str, str]] = None,
    ) -> Optional[Any]:
        """GET a JSON document, retrying on rate limits and transient errors.

        Args:
            url: URL to fetch.
            headers: Extra request headers.
            params: Query parameters.

        Returns:
            The decoded JSON body, or None if the request did not succeed.
        """
        session = await self._get_session()

        for attempt in range(self.max_retries + 1):
            retry_after: Optional[str] = None
            try:
                async with session.get(
                    url, headers=headers, params=params, proxy=self.proxy
                ) as response:
                    if response.status == 200:
                        try:
                            return await response.json()
                        except (aiohttp.ContentTypeError, ValueError) as e:
                            logger.debug("Invalid JSON from %s: %s", url, e)
                            return None

                    if response.status not in RETRYABLE_STATUSES:
                        logger.debug("%s returned status %d", url, response.status)
                        return None

                    retry_after = response.headers.get("Retry-After")
                    logger.debug("%s returned status %d", url, response.status)

            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.debug("Request to %s failed: %s", url, e)

            if attempt >= self.max_retries:
                break

            if retry_after and retry_after.isdigit():
                wait_time = float(retry_after)
            else:
                # Exponential backoff: 1s, 2s, 4s
                wait_time = self.retry_delay * 2**attempt
            await asyncio.sleep(wait_time)

        logger.warning(
            "%s: giving up on %s after %d attempt(s)",
            self.name,
            url,
            self.max_retries + 1,
        )
        return None

    async def close(self) -> None:
        """Close the aiohttp session.

        Should be called when done using the resolver to release resources.
        """
        if self._session is not None and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "HttpResolver":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
