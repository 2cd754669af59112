# almanac/utils/retry.py
import asyncio
from typing import Awaitable, Callable, TypeVar

import httpx
from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

T = TypeVar("T")

MAX_BACKOFF_SECONDS = 30.0


def is_transient_error(exc: BaseException) -> bool:
    """HTTP 429, any 5xx, or a timeout. Everything else fails fast."""
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or 500 <= status < 600
    return isinstance(exc, httpx.TimeoutException)


def _log_before_sleep(description: str) -> Callable[[RetryCallState], None]:
    def log(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(
            f"{description} failed (attempt {retry_state.attempt_number}): {exc!r}. "
            f"Retrying in {delay:.1f}s"
        )

    return log


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    max_retries: int = 2,
    base_delay: float = 1.0,
    should_retry: Callable[[BaseException], bool] = is_transient_error,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    description: str = "Request",
) -> T:
    """Runs ``operation`` with exponential backoff (base_delay, 2x base_delay, ...).

    ``max_retries`` counts attempts after the first one. The last exception is
    re-raised once retries are exhausted or a non-retryable error occurs.
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=base_delay, min=0, max=MAX_BACKOFF_SECONDS),
        retry=retry_if_exception(should_retry),
        before_sleep=_log_before_sleep(description),
        sleep=sleep,
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            return await operation()
    raise RuntimeError("unreachable")  # pragma: no cover
