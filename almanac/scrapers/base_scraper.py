import asyncio
from abc import ABC
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx
from loguru import logger

from almanac.utils.retry import retry_async

# Define common HTTP status codes that warrant a retry
RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


class ScraperError(Exception):
    """Custom exception for scraper-related errors."""

    pass


class AuthenticationError(ScraperError):
    """Exception raised for authentication failures (401, 403)."""

    pass


class RateLimitError(ScraperError):
    """Exception raised for rate limit errors (429)."""

    pass


def is_retryable_fetch_error(exc: BaseException) -> bool:
    if isinstance(exc, RateLimitError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRYABLE_STATUS_CODES
    # Network errors, timeouts etc.
    return isinstance(exc, httpx.RequestError)


class BaseScraper(ABC):
    """Base class for HTTP data sources sharing one async client and retry policy."""

    source_name: str = "unknown"

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        max_retries: int = 2,
        base_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(30.0),
            follow_redirects=True,
            headers={"User-Agent": BROWSER_USER_AGENT},
        )
        self.max_retries = max_retries
        self.base_delay = base_delay
        self._sleep = sleep

    async def _make_request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        **kwargs,
    ) -> httpx.Response:
        """Makes an asynchronous HTTP request with retry logic."""

        async def attempt() -> httpx.Response:
            logger.debug(f"Making request", method=method, url=url, params=params)
            response = await self.client.request(
                method, url, headers=headers, params=params, **kwargs
            )

            if response.status_code in {401, 403}:
                logger.warning(
                    f"Authentication error ({response.status_code}) for {self.source_name} at {url}."
                )
                # Don't retry auth errors further, raise specific exception
                raise AuthenticationError(
                    f"Authentication failed ({response.status_code}) for {self.source_name}"
                )

            if response.status_code == 429:
                retry_after = response.headers.get("Retry-After")
                logger.warning(
                    f"Rate limit hit (429) for {self.source_name} at {url}. Retry-After: {retry_after}"
                )
                raise RateLimitError(f"Rate limited by {self.source_name}")

            response.raise_for_status()  # Raises HTTPStatusError for 4xx/5xx
            logger.debug(f"Request successful: {response.status_code} for {url}")
            return response

        try:
            return await retry_async(
                attempt,
                max_retries=self.max_retries,
                base_delay=self.base_delay,
                should_retry=is_retryable_fetch_error,
                sleep=self._sleep,
                description=f"{self.source_name} {method} {url}",
            )
        except ScraperError:
            raise
        except httpx.HTTPStatusError as e:
            logger.error(
                f"HTTP error during request for {self.source_name}: {e.response.status_code}"
            )
            raise ScraperError(f"HTTP error: {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error(f"Request error for {self.source_name} at {url}: {e!r}")
            raise ScraperError(f"Request to {self.source_name} failed") from e

    async def close(self):
        """Closes the underlying HTTP client if this scraper created it."""
        if self._owns_client:
            await self.client.aclose()
            logger.info(f"Closed HTTP client for {self.source_name}")
